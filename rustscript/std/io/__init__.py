from .basic_io import BasicIO
from rustscript.builtin_function import ProgramFunction
from rustscript.errors import TypeMismatchError
from rustscript.types import CharVal, ListVal, UNIT, Value, to_string, type_name
from typing import List


def populate_io_functions(basic_io: BasicIO) -> List[ProgramFunction]:
    """Build the console builtins bound to ``basic_io``."""

    def std_print(args: List[Value]) -> Value:
        basic_io.write(' '.join(to_string(a) for a in args))
        return UNIT

    def std_println(args: List[Value]) -> Value:
        basic_io.write(' '.join(to_string(a) for a in args) + '\n')
        return UNIT

    def std_input(args: List[Value]) -> Value:
        prompt = args[0]
        if not (isinstance(prompt, CharVal) or isinstance(prompt, ListVal) and prompt.is_str):
            raise TypeMismatchError('input', (prompt,),
                                    f"input expects a Str or Char prompt, got {type_name(prompt)}")
        return ListVal.from_string(basic_io.read_line(to_string(prompt)))

    return [
        ProgramFunction('print', None, std_print),
        ProgramFunction('println', None, std_println),
        ProgramFunction('input', 1, std_input),
    ]
