# RustScript language package
# This package provides the lexer, parser and interpreter for RustScript.
from .errors import RustScriptError
from .lexer import Token, tokenize
from .parser import parse_expr, parse_exprs
from .scope import GlobalScope, ModuleScope, Scope
from .interpreter import Interpreter, evaluate, evaluate_all, new_global_scope, run_file
from .types import (
    BoolVal, CharVal, FloatVal, IdentListVal, IdentVal, IntVal, LambdaVal, ListVal,
    ModuleVal, UnitVal, UNIT, Value,
)

__all__ = [
    'RustScriptError',
    'Token',
    'tokenize',
    'parse_expr',
    'parse_exprs',
    'Scope',
    'GlobalScope',
    'ModuleScope',
    'Interpreter',
    'evaluate',
    'evaluate_all',
    'new_global_scope',
    'run_file',
    'BoolVal',
    'CharVal',
    'FloatVal',
    'IdentListVal',
    'IdentVal',
    'IntVal',
    'LambdaVal',
    'ListVal',
    'ModuleVal',
    'UnitVal',
    'UNIT',
    'Value',
]
