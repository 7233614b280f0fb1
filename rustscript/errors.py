"""Error types raised by the RustScript lexer, parser and evaluator.

Every failure is a subclass of :class:`RustScriptError` and carries the
structured fields a caller needs to branch on the kind of failure without
parsing the message.
"""

from typing import Any, Optional, Sequence


class RustScriptError(Exception):
    """Base class for all RustScript errors."""
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        if line is not None:
            super().__init__(f"Error at line {line} column {column}: {message}")
        else:
            super().__init__(message)
        self.message = message
        self.line = line
        self.column = column

    @property
    def kind(self) -> str:
        return type(self).__name__


class LexError(RustScriptError):
    pass


class ParseError(RustScriptError):
    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None,
                 expected: Optional[str] = None, found: Optional[str] = None):
        super().__init__(message, line, column)
        self.expected = expected
        self.found = found


class UndefinedVariableError(RustScriptError):
    def __init__(self, name: str, scope_name: str = 'Global', message: Optional[str] = None):
        super().__init__(message or f"Tried to access nonexistent variable {name}")
        self.name = name
        self.scope_name = scope_name


class UndefinedModuleMemberError(RustScriptError):
    def __init__(self, module: str, member: str, message: Optional[str] = None):
        super().__init__(message or f"Module {module} has no public member {member}")
        self.module = module
        self.member = member


class TypeMismatchError(RustScriptError):
    """An operation was applied to operands it is not defined for."""
    def __init__(self, operation: str, operands: Sequence[Any] = (), message: Optional[str] = None):
        if message is None:
            rendered = ', '.join(str(o) for o in operands)
            message = f"{operation}: unsupported operands ({rendered})" if operands else operation
        super().__init__(message)
        self.operation = operation
        self.operands = tuple(operands)


class CoercionError(TypeMismatchError):
    def __init__(self, value: Any):
        super().__init__('Coerce', (value,), f"Can't coerce {value} to a boolean")
        self.value = value


class CharRangeError(TypeMismatchError):
    def __init__(self, operation: str, codepoint: int):
        super().__init__(operation, (), f"{operation}: codepoint {codepoint} is outside the unicode range")
        self.codepoint = codepoint


class ArityError(RustScriptError):
    def __init__(self, name: str, expected: Any, got: int, message: Optional[str] = None):
        super().__init__(message or f"Expected {expected} argument(s) to call of function {name}, got {got}")
        self.name = name
        self.expected = expected
        self.got = got


class NoMatchingArityError(ArityError):
    def __init__(self, name: str, arities: Sequence[int], got: int):
        super().__init__(name, tuple(sorted(arities)), got,
                         f"Could not find function variation matching {name}/{got}")


class DuplicateArityError(RustScriptError):
    def __init__(self, name: str, arity: int):
        super().__init__(f"Lambda {name} already has a variation with arity {arity}")
        self.name = name
        self.arity = arity


class VariationError(RustScriptError):
    def __init__(self, name: str, message: str):
        super().__init__(message)
        self.name = name


class NoMatchError(RustScriptError):
    def __init__(self, value: Any):
        super().__init__(f"No match found for value: {value}")
        self.value = value


class ModuleImportError(RustScriptError):
    def __init__(self, path: str, message: str, name: Optional[str] = None):
        super().__init__(message)
        self.path = path
        self.name = name


class ListIndexError(RustScriptError):
    def __init__(self, operation: str, message: Optional[str] = None):
        super().__init__(message or f"{operation}: list is empty")
        self.operation = operation


class DivisionByZeroError(RustScriptError):
    def __init__(self, operation: str):
        super().__init__(f"{operation}: division by zero")
        self.operation = operation


class StackOverflowError(RustScriptError):
    def __init__(self, depth: int):
        super().__init__(f"Stack overflow: maximum call depth ({depth}) exceeded")
        self.depth = depth
