"""Standard library: host builtins plus the prelude written in RustScript."""

import math
from typing import List

from rustscript.builtin_function import ProgramFunction
from rustscript.errors import ListIndexError, TypeMismatchError
from rustscript.types import (
    BoolVal, FloatVal, IntVal, ListVal, UNIT, Value, round_half_away_from_zero, type_name,
)


PRELUDE = [
    'let range = fn(a, b) => if (a < b) then ([a] + range(a + 1, b)) else ([])',
    'let fmap = fn(f, ls) => if (ls) then ([f(^ls)] + fmap(f, $ls)) else ([])',
    'let filter = fn(f, ls) => if (ls) then (if (f(^ls)) then ([^ls] + filter(f, $ls)) '
    'else (filter(f, $ls))) else ([])',
    'let fold = fn(f, acc, ls) => if (ls) then (fold(f, f(acc, ^ls), $ls)) else (acc)',
    'let sum = fn(ls) => fold(fn (a, b) => a + b, 0, ls)',
    'let product = fn(ls) => fold(fn (a, b) => a * b, 1, ls)',
    'let reverse = fn(ls) => fold(fn (rs, el) => [el] + rs, [], ls)',
    'let seq = fn(ls) => ^reverse(ls)',
    'let has = fn(val) => typeof(val) != "Unit"',
]


def _expect_str(name: str, value: Value) -> str:
    if isinstance(value, ListVal) and value.is_str:
        return value.text
    raise TypeMismatchError(name, (value,), f"{name} expects a Str, got {type_name(value)}")


def _expect_int(name: str, value: Value) -> int:
    if isinstance(value, IntVal):
        return value.value
    raise TypeMismatchError(name, (value,), f"{name} expects an Integer, got {type_name(value)}")


def _expect_number(name: str, value: Value) -> float:
    if isinstance(value, (IntVal, FloatVal)):
        if isinstance(value, FloatVal) and not math.isfinite(value.value):
            raise TypeMismatchError(name, (value,), f"{name} cannot convert {value} to an Integer")
        return value.value
    raise TypeMismatchError(name, (value,), f"{name} expects a number, got {type_name(value)}")


def std_typeof(args: List[Value]) -> Value:
    return ListVal.from_string(type_name(args[0]))


def std_upper(args: List[Value]) -> Value:
    return ListVal.from_string(_expect_str('upper', args[0]).upper())


def std_lower(args: List[Value]) -> Value:
    return ListVal.from_string(_expect_str('lower', args[0]).lower())


def std_round(args: List[Value]) -> Value:
    x = _expect_number('round', args[0])
    if isinstance(x, int):
        return IntVal(x)
    return IntVal(round_half_away_from_zero(x))


def std_floor(args: List[Value]) -> Value:
    return IntVal(math.floor(_expect_number('floor', args[0])))


def std_ceil(args: List[Value]) -> Value:
    return IntVal(math.ceil(_expect_number('ceil', args[0])))


def std_substr(args: List[Value]) -> Value:
    text = _expect_str('substr', args[0])
    start = _expect_int('substr', args[1])
    end = _expect_int('substr', args[2])
    if not 0 <= start <= end <= len(text):
        raise ListIndexError('substr', f"substr: range {start}..{end} out of bounds for length {len(text)}")
    return ListVal.from_string(text[start:end])


def std_parse_int(args: List[Value]) -> Value:
    text = _expect_str('parseInt', args[0]).strip()
    try:
        return IntVal(int(text))
    except ValueError:
        return UNIT


def std_parse_bool(args: List[Value]) -> Value:
    text = _expect_str('parseBool', args[0]).strip().lower()
    if text == 'true':
        return BoolVal(True)
    if text == 'false':
        return BoolVal(False)
    return UNIT


def populate_std_functions() -> List[ProgramFunction]:
    return [
        ProgramFunction('typeof', 1, std_typeof),
        ProgramFunction('upper', 1, std_upper),
        ProgramFunction('lower', 1, std_lower),
        ProgramFunction('round', 1, std_round),
        ProgramFunction('floor', 1, std_floor),
        ProgramFunction('ceil', 1, std_ceil),
        ProgramFunction('substr', 3, std_substr),
        ProgramFunction('parseInt', 1, std_parse_int),
        ProgramFunction('parseBool', 1, std_parse_bool),
    ]
