"""Tree-walking evaluator for RustScript.

:class:`Interpreter` evaluates AST nodes against a :class:`Scope`. Each top
level statement is evaluated on its own: a failing statement raises a
:class:`RustScriptError` to the caller, and the bindings made by earlier
statements stay in place.

Lambda calls recurse through the host stack. ``RECURSION_LIMIT`` raises the
host limit far enough for the recursive prelude (``range``, ``fold``...) to
handle lists of a few thousand elements; going deeper is reported as a
:class:`StackOverflowError` rather than crashing.
"""

from __future__ import annotations

import os
import sys
from typing import List, Optional, Sequence

from .ast import (
    AssignExpr, AtomicExpr, BinaryExpr, BinOp, BlockExpr, IfExpr, ImportExpr,
    LambdaCall, ListExpr, MatchCaseExpr, MatchExpr, ModuleExpr, Node, PrefixExpr,
    PrefixOp, PublicExpr, VariationExpr,
)
from .errors import (
    ModuleImportError, NoMatchError, NoMatchingArityError, StackOverflowError,
    UndefinedVariableError, VariationError,
)
from .parser import parse_expr, parse_exprs
from .scope import GlobalScope, ModuleScope, Scope, resolve_path
from .std import PRELUDE, populate_std_functions
from .std.io import BasicIO, populate_io_functions
from . import types
from .types import (
    IdentListVal, IdentVal, LambdaVal, ListVal, MatchResult, ModuleVal, UNIT, Value,
)


RECURSION_LIMIT = 100_000

BINARY_OPERATIONS = {
    BinOp.ADD: types.add,
    BinOp.SUB: types.sub,
    BinOp.MUL: types.mul,
    BinOp.DIV: types.div,
    BinOp.MOD: types.mod,
    BinOp.LT: types.lt,
    BinOp.GT: types.gt,
    BinOp.EQ: types.eq,
    BinOp.NEQ: types.neq,
    BinOp.AND: types.and_,
    BinOp.OR: types.or_,
}

PREFIX_OPERATIONS = {
    PrefixOp.NEGATE: types.negate,
    PrefixOp.HEAD: types.head,
    PrefixOp.TAIL: types.tail,
}

_prelude: Optional[List[Node]] = None


def prelude() -> List[Node]:
    """Parsed prelude, shared by every global scope."""
    global _prelude
    if _prelude is None:
        _prelude = parse_exprs('\n'.join(PRELUDE))
    return _prelude


class Interpreter:
    """Core interpreter that evaluates RustScript ASTs."""
    def __init__(self, debug_level: int = 0, debug_file: str = 'debug.txt',
                 source_dir: Optional[str] = None, basic_io: Optional[BasicIO] = None,
                 global_scope: Optional[GlobalScope] = None):
        self.debug_level = debug_level
        self.debug_fp = open(debug_file, 'w', encoding='utf-8') if debug_level > 0 else None
        if sys.getrecursionlimit() < RECURSION_LIMIT:
            sys.setrecursionlimit(RECURSION_LIMIT)
        if global_scope is not None:
            # evaluate against a scope built earlier
            self.source_dir = global_scope.source_dir
            self.basic_io = global_scope.basic_io
            self.global_scope = global_scope
        else:
            self.source_dir = source_dir
            self.basic_io = basic_io or BasicIO()
            self.global_scope = self.new_global_scope(source_dir)

    def debug(self, msg: str, level: int = 1):
        if self.debug_level >= level:
            if self.debug_fp:
                self.debug_fp.write(msg + '\n')
                self.debug_fp.flush()
            else:
                print(msg)

    def close(self):
        if self.debug_fp:
            self.debug_fp.close()
            self.debug_fp = None

    def __enter__(self) -> Interpreter:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def new_global_scope(self, source_dir: Optional[str] = None,
                         importing: frozenset = frozenset()) -> GlobalScope:
        """Fresh global scope with the builtins and the prelude loaded."""
        scope = GlobalScope(source_dir, self.basic_io, importing)
        for function in populate_io_functions(self.basic_io) + populate_std_functions():
            scope.add_program_function(function)
        for statement in prelude():
            self.evaluate(statement, scope)
        return scope

    def clear(self):
        """Drop every binding by starting over with a fresh global scope."""
        self.global_scope = self.new_global_scope(self.source_dir)

    # Statement level entry points

    def run(self, statements: Sequence[Node], scope: Optional[Scope] = None) -> List[Value]:
        scope = scope or self.global_scope
        results: List[Value] = []
        for statement in statements:
            results.append(self.run_statement(statement, scope))
        return results

    def run_statement(self, statement: Node, scope: Scope) -> Value:
        if self.debug_level >= 1:
            self.debug(f"[{scope.name}] {statement}")
        try:
            return self.evaluate(statement, scope)
        except RecursionError:
            raise StackOverflowError(sys.getrecursionlimit()) from None

    def eval(self, source: str, scope: Optional[Scope] = None) -> Value:
        return self.run_statement(parse_expr(source), scope or self.global_scope)

    def eval_all(self, source: str, scope: Optional[Scope] = None) -> List[Value]:
        return self.run(parse_exprs(source), scope)

    def run_file(self, path: str) -> List[Value]:
        """Evaluate a script file with imports resolved relative to it."""
        path = os.path.abspath(path)
        source = self.basic_io.read_source(path)
        self.source_dir = os.path.dirname(path)
        self.global_scope = self.new_global_scope(self.source_dir, frozenset([path]))
        return self.eval_all(source)

    # Evaluation

    def evaluate(self, node: Node, scope: Scope) -> Value:
        if isinstance(node, AtomicExpr):
            return self.evaluate_atom(node.value, scope)
        if isinstance(node, BinaryExpr):
            left = self.evaluate(node.left, scope)
            right = self.evaluate(node.right, scope)
            return BINARY_OPERATIONS[node.op](left, right)
        if isinstance(node, PrefixExpr):
            return PREFIX_OPERATIONS[node.op](self.evaluate(node.operand, scope))
        if isinstance(node, LambdaCall):
            return self.call(node, scope)
        if isinstance(node, IfExpr):
            condition = types.is_truthy(self.evaluate(node.condition, scope))
            if self.debug_level >= 3:
                self.debug(f"if ({node.condition}) -> {'then' if condition else 'else'}", 3)
            return self.evaluate(node.then_branch if condition else node.else_branch, scope)
        if isinstance(node, ListExpr):
            items = []
            for element in node.elements:
                items.append(self.evaluate(element, scope))
            return ListVal(tuple(items))
        if isinstance(node, AssignExpr):
            value = self.evaluate(node.value, scope)
            scope.set(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"let {node.name} = {value} in {scope!r}", 2)
            return UNIT
        if isinstance(node, VariationExpr):
            return self.add_variation(node, scope)
        if isinstance(node, BlockExpr):
            block_scope = scope.derive('Block')
            result: Value = UNIT
            for statement in node.statements:
                result = self.evaluate(statement, block_scope)
            return result
        if isinstance(node, MatchExpr):
            return self.match(node, scope)
        if isinstance(node, ModuleExpr):
            return self.define_module(node, scope)
        if isinstance(node, ImportExpr):
            return self.import_names(node, scope)
        if isinstance(node, PublicExpr):
            return self.publish(node, scope)
        raise TypeError(f"Unknown node type {type(node).__name__}")

    def evaluate_atom(self, value: Value, scope: Scope) -> Value:
        if isinstance(value, IdentVal):
            return scope.get(value.name)
        if isinstance(value, IdentListVal):
            return resolve_path(value.names, scope)
        if isinstance(value, LambdaVal):
            # closure capture point
            return value.bind(scope)
        return value

    def call(self, node: LambdaCall, scope: Scope) -> Value:
        callee = node.callee
        if isinstance(callee, IdentListVal):
            function = resolve_path(callee.names, scope)
            name = str(callee)
        else:
            name = callee.name
            function = scope.lookup(name)
        if isinstance(function, LambdaVal):
            return self.call_lambda(function, name, node.args, scope)
        program_function = scope.get_program_function(name) if isinstance(callee, IdentVal) else None
        if program_function is None:
            raise UndefinedVariableError(name, scope.name, f"Tried to call undefined function {name}")
        call_scope = scope.derive(f"Builtin call {name}")
        args = []
        for arg in node.args:
            args.append(self.evaluate(arg, call_scope))
        if self.debug_level >= 3:
            self.debug(f"call builtin {name}/{len(args)}", 3)
        return program_function(args)

    def call_lambda(self, function: LambdaVal, name: str, arg_nodes: Sequence[Node],
                    scope: Scope) -> Value:
        variation = function.variation_for(len(arg_nodes))
        if variation is None:
            raise NoMatchingArityError(name, function.variations.keys(), len(arg_nodes))
        call_scope = function.scope.derive(f"Lambda call {name}")
        for param, arg in zip(variation.params, arg_nodes):
            call_scope.set(param, self.evaluate(arg, scope))
        if self.debug_level >= 3:
            self.debug(f"call {name}/{len(arg_nodes)} in {call_scope!r}", 3)
        return self.evaluate(variation.body, call_scope)

    def add_variation(self, node: VariationExpr, scope: Scope) -> Value:
        existing = scope.lookup(node.name)
        if existing is None:
            raise VariationError(node.name, f"Cannot add a variation to undefined function {node.name}")
        if not isinstance(existing, LambdaVal):
            raise VariationError(node.name, f"Cannot add a variation to {node.name}, "
                                            f"it is a {types.type_name(existing)} and not a Lambda")
        value = self.evaluate(node.value, scope)
        if not isinstance(value, LambdaVal) or len(value.variations) != 1:
            raise VariationError(node.name, f"Variation of {node.name} must be a single lambda")
        (variation,) = value.variations.values()
        existing.add_variation(variation.params, variation.body)
        self.debug(f"var {node.name}/{len(variation.params)}", 2)
        return UNIT

    def match(self, node: MatchExpr, scope: Scope) -> Value:
        value = self.evaluate(node.scrutinee, scope)
        for case in node.cases:
            result = self.match_case(case, value, scope)
            if result.matched:
                return result.value
        raise NoMatchError(value)

    def match_case(self, case: MatchCaseExpr, value: Value, scope: Scope) -> MatchResult:
        case_scope = scope.derive('Match case')
        case_scope.set(case.name, value)
        if case.guard is not None and not types.is_truthy(self.evaluate(case.guard, case_scope)):
            return MatchResult.no_match()
        if self.debug_level >= 3:
            self.debug(f"match {value} -> {case}", 3)
        return MatchResult.match(self.evaluate(case.body, case_scope))

    def define_module(self, node: ModuleExpr, scope: Scope) -> Value:
        module_scope = ModuleScope(node.name, scope)
        module = ModuleVal(node.name, tuple(node.body), module_scope)
        # bound first so members can refer to themselves as Name.member
        scope.set(node.name, module)
        for statement in node.body:
            self.evaluate(statement, module_scope)
        self.debug(f"mod {node.name}: public {sorted(module_scope.public)}", 2)
        return UNIT

    def publish(self, node: PublicExpr, scope: Scope) -> Value:
        inner = node.inner
        if not isinstance(inner, (AssignExpr, ModuleExpr)):
            return self.evaluate(inner, scope)
        self.evaluate(inner, scope)
        value = scope.lookup_local(inner.name)
        if isinstance(scope, ModuleScope):
            scope.set(inner.name, value, public=True)
        elif scope.is_global:
            scope.root.export(inner.name, value)
        if self.debug_level >= 2:
            self.debug(f"pub {inner.name} in {scope!r}", 2)
        return UNIT

    def import_names(self, node: ImportExpr, scope: Scope) -> Value:
        root = scope.root
        path = os.path.normpath(os.path.join(root.source_dir, node.path))
        self.debug(f"imp {', '.join(node.names)} from {path}")
        if path in root.importing:
            raise ModuleImportError(path, f"Circular import of {node.path}")
        source = root.basic_io.read_source(path)
        module_scope = self.new_global_scope(os.path.dirname(path), root.importing | {path})
        self.run(parse_exprs(source), module_scope)
        for name in node.names:
            if name not in module_scope.exports:
                raise ModuleImportError(path, f"{node.path} does not export {name}", name)
            scope.set(name, module_scope.exports[name])
        return UNIT


def new_global_scope(source_dir: Optional[str] = None, basic_io: Optional[BasicIO] = None) -> GlobalScope:
    return Interpreter(source_dir=source_dir, basic_io=basic_io).global_scope


def evaluate(source: str, scope: Scope) -> Value:
    """Evaluate one statement of ``source`` in ``scope``."""
    return Interpreter(global_scope=scope.root).eval(source, scope)


def evaluate_all(source: str, scope: Scope) -> List[Value]:
    """Evaluate every statement of ``source`` in order, stopping at the first error."""
    return Interpreter(global_scope=scope.root).eval_all(source, scope)


def run_file(path: str, debug_level: int = 0, basic_io: Optional[BasicIO] = None) -> List[Value]:
    with Interpreter(debug_level=debug_level, basic_io=basic_io) as interpreter:
        return interpreter.run_file(path)
