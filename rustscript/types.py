"""Runtime values of RustScript and the operations defined over them.

The value type is a closed set of dataclasses. A string is not a separate
class: it is a :class:`ListVal` whose items are all :class:`CharVal`, and
``ListVal.is_str`` is the single classification rule. Because every list
operation builds a fresh ``ListVal``, the classification is re-derived
after concatenation automatically.

Operators are plain functions over pairs of values. Each accepts a closed
set of operand kinds and raises :class:`TypeMismatchError` for the rest,
using a distinct operation name per operator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Tuple, Union, TYPE_CHECKING

from .errors import (
    CharRangeError, CoercionError, DivisionByZeroError, DuplicateArityError,
    ListIndexError, TypeMismatchError,
)
from .lexer import escape

if TYPE_CHECKING:
    from .ast import Node
    from .scope import Scope, ModuleScope


MAX_CODEPOINT = 0x10FFFF


@dataclass(frozen=True)
class IntVal:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class FloatVal:
    value: float

    def __str__(self) -> str:
        return repr(self.value)


@dataclass(frozen=True)
class BoolVal:
    value: bool

    def __str__(self) -> str:
        return 'true' if self.value else 'false'


@dataclass(frozen=True)
class CharVal:
    value: str

    def __str__(self) -> str:
        return f"'{escape(self.value)}'"


@dataclass(frozen=True)
class ListVal:
    """A list of already-evaluated values.

    A list whose items are all characters is a string: it prints quoted and
    ``typeof`` reports it as ``Str``. The empty list is vacuously a string.
    """
    items: Tuple[Value, ...] = ()

    @staticmethod
    def of(items: Iterable[Value]) -> ListVal:
        return ListVal(tuple(items))

    @staticmethod
    def from_string(text: str) -> ListVal:
        return ListVal(tuple(CharVal(c) for c in text))

    @property
    def is_str(self) -> bool:
        return all(isinstance(item, CharVal) for item in self.items)

    @property
    def text(self) -> str:
        return ''.join(item.value for item in self.items)

    def __len__(self) -> int:
        return len(self.items)

    def __str__(self) -> str:
        if self.is_str:
            return f'"{escape(self.text)}"'
        return '[' + ', '.join(str(item) for item in self.items) + ']'


@dataclass(frozen=True)
class IdentVal:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class IdentListVal:
    names: Tuple[str, ...]

    def __str__(self) -> str:
        return '.'.join(self.names)


@dataclass(frozen=True)
class Variation:
    params: Tuple[str, ...]
    body: Node


@dataclass(eq=False)
class LambdaVal:
    """A function value: one body per arity, plus the scope it closes over.

    The lambda literal in the AST has no scope. Evaluating it produces a
    bound copy via :meth:`bind`, so two evaluations of the same literal never
    share a variation table.
    """
    variations: Dict[int, Variation]
    name: Optional[str] = None
    scope: Optional[Scope] = field(default=None, repr=False)

    @staticmethod
    def single(params: Iterable[str], body: Node, name: Optional[str] = None) -> LambdaVal:
        params = tuple(params)
        return LambdaVal({len(params): Variation(params, body)}, name)

    def bind(self, scope: Scope) -> LambdaVal:
        return replace(self, variations=dict(self.variations), scope=scope)

    def add_variation(self, params: Tuple[str, ...], body: Node) -> None:
        arity = len(params)
        if arity in self.variations:
            raise DuplicateArityError(self.name or '<lambda>', arity)
        self.variations[arity] = Variation(params, body)

    def variation_for(self, arity: int) -> Optional[Variation]:
        return self.variations.get(arity)

    def __str__(self) -> str:
        arities = ','.join(str(a) for a in sorted(self.variations))
        return f"<lambda {self.name}/{arities}>" if self.name else f"<lambda/{arities}>"


@dataclass(eq=False)
class ModuleVal:
    name: str
    body: Tuple[Node, ...]
    scope: ModuleScope = field(repr=False)

    def __str__(self) -> str:
        return f"<module {self.name}>"


@dataclass(frozen=True)
class UnitVal:
    def __str__(self) -> str:
        return '()'


@dataclass(frozen=True)
class MatchResult:
    """Outcome of a single match case; never visible to programs."""
    matched: bool
    value: Optional[Value] = None

    @staticmethod
    def match(value: Value) -> MatchResult:
        return MatchResult(True, value)

    @staticmethod
    def no_match() -> MatchResult:
        return MatchResult(False)


UNIT = UnitVal()

Value = Union[IntVal, FloatVal, BoolVal, CharVal, ListVal, IdentVal, IdentListVal,
              LambdaVal, ModuleVal, UnitVal, MatchResult]

Number = (IntVal, FloatVal)


def type_name(value: Value) -> str:
    """Name reported by the ``typeof`` builtin."""
    if isinstance(value, IntVal):
        return 'Integer'
    if isinstance(value, FloatVal):
        return 'Float'
    if isinstance(value, BoolVal):
        return 'Bool'
    if isinstance(value, CharVal):
        return 'Char'
    if isinstance(value, ListVal):
        return 'Str' if value.is_str else 'List'
    if isinstance(value, LambdaVal):
        return 'Lambda'
    if isinstance(value, ModuleVal):
        return 'Module'
    if isinstance(value, UnitVal):
        return 'Unit'
    if isinstance(value, (IdentVal, IdentListVal)):
        return 'Ident'
    return type(value).__name__


def to_string(value: Value) -> str:
    """Text of a value as written by ``print``: strings and chars unquoted."""
    if isinstance(value, CharVal):
        return value.value
    if isinstance(value, ListVal) and value.is_str:
        return value.text
    return str(value)


def _char_shift(operation: str, char: CharVal, offset: int) -> CharVal:
    codepoint = ord(char.value) + offset
    if not 0 <= codepoint <= MAX_CODEPOINT:
        raise CharRangeError(operation, codepoint)
    return CharVal(chr(codepoint))


def _numeric(operation: str, a: Value, b: Value, int_op, float_op) -> Value:
    if isinstance(a, IntVal) and isinstance(b, IntVal):
        return IntVal(int_op(a.value, b.value))
    if isinstance(a, Number) and isinstance(b, Number):
        return FloatVal(float_op(float(a.value), float(b.value)))
    raise TypeMismatchError(operation, (a, b))


def add(a: Value, b: Value) -> Value:
    if isinstance(a, ListVal) and a.is_str and not isinstance(b, ListVal):
        # string-like lists absorb any non-list right operand as text
        return ListVal.from_string(a.text + to_string(b))
    if isinstance(a, ListVal) and isinstance(b, ListVal):
        return ListVal(a.items + b.items)
    if isinstance(a, CharVal) and isinstance(b, IntVal):
        return _char_shift('Badd', a, b.value)
    return _numeric('Badd', a, b, lambda x, y: x + y, lambda x, y: x + y)


def sub(a: Value, b: Value) -> Value:
    if isinstance(a, CharVal) and isinstance(b, IntVal):
        return _char_shift('Bad Sub', a, -b.value)
    return _numeric('Bad Sub', a, b, lambda x, y: x - y, lambda x, y: x - y)


def mul(a: Value, b: Value) -> Value:
    return _numeric('Bad Mul', a, b, lambda x, y: x * y, lambda x, y: x * y)


def _truncating_div(x: int, y: int) -> int:
    if y == 0:
        raise DivisionByZeroError('Bad Div')
    q = abs(x) // abs(y)
    return q if (x < 0) == (y < 0) else -q


def _float_div(x: float, y: float) -> float:
    if y == 0.0:
        if x == 0.0 or math.isnan(x):
            return math.nan
        return math.copysign(math.inf, x) * math.copysign(1.0, y)
    return x / y


def round_half_away_from_zero(x: float) -> int:
    """Round to the nearest integer, with halves going away from zero.

    Python's ``round`` sends halves to the even neighbour instead.
    """
    return math.floor(x + 0.5) if x >= 0 else math.ceil(x - 0.5)


def div(a: Value, b: Value) -> Value:
    return _numeric('Bad Div', a, b, _truncating_div, _float_div)


def mod(a: Value, b: Value) -> Value:
    if isinstance(a, IntVal) and isinstance(b, IntVal):
        if b.value == 0:
            raise DivisionByZeroError('Bad Mod')
        return IntVal(a.value - b.value * _truncating_div(a.value, b.value))
    raise TypeMismatchError('Bad Mod', (a, b))


def _ordering(a: Value, b: Value):
    if isinstance(a, Number) and isinstance(b, Number):
        return a.value, b.value
    if isinstance(a, CharVal) and isinstance(b, CharVal):
        return ord(a.value), ord(b.value)
    raise TypeMismatchError('Bad Cmp', (a, b))


def lt(a: Value, b: Value) -> BoolVal:
    x, y = _ordering(a, b)
    return BoolVal(x < y)


def gt(a: Value, b: Value) -> BoolVal:
    x, y = _ordering(a, b)
    return BoolVal(x > y)


def eq(a: Value, b: Value) -> BoolVal:
    """Equality; more permissive than ordering when a Bool is involved."""
    return BoolVal(values_equal(a, b))


def values_equal(a: Value, b: Value) -> bool:
    if isinstance(a, Number) and isinstance(b, Number):
        return a.value == b.value
    if isinstance(a, BoolVal) or isinstance(b, BoolVal):
        return is_truthy(a) == is_truthy(b)
    if isinstance(a, CharVal) and isinstance(b, CharVal):
        return a.value == b.value
    if isinstance(a, ListVal) and isinstance(b, ListVal):
        if len(a.items) != len(b.items):
            return False
        for x, y in zip(a.items, b.items):
            if not values_equal(x, y):
                return False
        return True
    raise TypeMismatchError('Bad Cmp', (a, b))


def neq(a: Value, b: Value) -> BoolVal:
    return negate(eq(a, b))


def and_(a: Value, b: Value) -> BoolVal:
    for operand in (a, b):
        if not isinstance(operand, BoolVal):
            raise CoercionError(operand)
    return BoolVal(a.value and b.value)


def or_(a: Value, b: Value) -> BoolVal:
    for operand in (a, b):
        if not isinstance(operand, BoolVal):
            raise CoercionError(operand)
    return BoolVal(a.value or b.value)


def negate(value: Value) -> Value:
    if isinstance(value, IntVal):
        return IntVal(-value.value)
    if isinstance(value, BoolVal):
        return BoolVal(not value.value)
    raise TypeMismatchError('Bad Negate', (value,))


def head(value: Value) -> Value:
    if not isinstance(value, ListVal):
        raise TypeMismatchError('Bad Head', (value,))
    if not value.items:
        raise ListIndexError('Bad Head', 'Bad Head: cannot take the head of an empty list')
    return value.items[0]


def tail(value: Value) -> ListVal:
    if not isinstance(value, ListVal):
        raise TypeMismatchError('Bad Tail', (value,))
    return ListVal(value.items[1:])


def is_truthy(value: Value) -> bool:
    if isinstance(value, BoolVal):
        return value.value
    if isinstance(value, ListVal):
        return len(value.items) > 0
    raise CoercionError(value)
