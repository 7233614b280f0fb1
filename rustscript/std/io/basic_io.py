import builtins
import os

from rustscript.errors import ModuleImportError


class BasicIO:
    """Console and file access used by the interpreter.

    ``read_source`` backs ``imp``; ``write`` and ``read_line`` back the
    ``print``/``println``/``input`` builtins. Tests can swap in a subclass.
    """

    def read_source(self, path: str) -> str:
        if not os.path.isfile(path):
            raise ModuleImportError(path, f"Could not find file {path}")
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ModuleImportError(path, f"Error reading file {path}: {e}") from e

    def write(self, text: str) -> None:
        print(text, end='', flush=True)

    def read_line(self, prompt: str) -> str:
        try:
            return builtins.input(prompt)
        except EOFError:
            return ''
