"""Pratt parser producing the RustScript AST.

Binary operators are parsed by precedence climbing over the binding power
table below; every other construct has a dedicated sub-parser selected by
the token that introduces it. A few forms are desugared while parsing:

* ``[a..b]`` becomes ``range(a, b)``,
* ``[e for x in ls]`` becomes ``fmap(fn(x) => e, ls)``,
* ``[e for x in ls if c]`` becomes ``fmap(fn(x) => e, filter(fn(x) => c, ls))``.

Newlines are only significant between statements. Inside an expression the
parser looks past them, so operator chains, lists and ``match`` cases can
span several lines.
"""

from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple, Union

from .ast import (
    AssignExpr, AtomicExpr, BinaryExpr, BinOp, BlockExpr, IfExpr, ImportExpr,
    LambdaCall, ListExpr, MatchCaseExpr, MatchExpr, ModuleExpr, Node, PrefixExpr,
    PrefixOp, PublicExpr, VariationExpr,
)
from .errors import ParseError
from .lexer import SEPARATORS, Token, tokenize
from .types import (
    BoolVal, CharVal, FloatVal, IdentListVal, IdentVal, IntVal, LambdaVal, ListVal, UNIT,
)


BINARY_OPERATORS = {
    'ANDAND': BinOp.AND,
    'OROR': BinOp.OR,
    'LT': BinOp.LT,
    'GT': BinOp.GT,
    'EQ': BinOp.EQ,
    'NEQ': BinOp.NEQ,
    'PLUS': BinOp.ADD,
    'MINUS': BinOp.SUB,
    'STAR': BinOp.MUL,
    'SLASH': BinOp.DIV,
    'PERCENT': BinOp.MOD,
}

BINDING_POWER = {
    BinOp.AND: (0, 1),
    BinOp.OR: (0, 1),
    BinOp.LT: (2, 3),
    BinOp.GT: (2, 3),
    BinOp.EQ: (2, 3),
    BinOp.NEQ: (2, 3),
    BinOp.ADD: (4, 5),
    BinOp.SUB: (4, 5),
    BinOp.MUL: (6, 7),
    BinOp.DIV: (6, 7),
    BinOp.MOD: (6, 7),
}

PREFIX_OPERATORS = {
    'MINUS': PrefixOp.NEGATE,
    'CARET': PrefixOp.HEAD,
    'DOLLAR': PrefixOp.TAIL,
}

PREFIX_BINDING_POWER = 10


class Parser:
    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0
        self.last_end = 0

    # Token helpers

    def peek(self, skip_newlines: bool = True) -> Token:
        pos = self.pos
        if skip_newlines:
            while self.tokens[pos].type == 'NEWLINE':
                pos += 1
        return self.tokens[pos]

    def skip_newlines(self) -> None:
        while self.tokens[self.pos].type == 'NEWLINE':
            self.pos += 1

    def skip_separators(self) -> None:
        while self.tokens[self.pos].type in SEPARATORS:
            self.pos += 1

    def advance(self) -> Token:
        self.skip_newlines()
        token = self.tokens[self.pos]
        if token.type != 'EOF':
            self.pos += 1
        self.last_end = token.offset + token.length
        return token

    def match(self, expected: Union[str, Tuple[str, ...]]) -> bool:
        token = self.peek()
        if isinstance(expected, tuple):
            return token.type in expected
        return token.type == expected

    def consume(self, expected: str, description: Optional[str] = None) -> Token:
        if not self.match(expected):
            raise self.error(description or expected)
        return self.advance()

    def error(self, expected: str, token: Optional[Token] = None,
              message: Optional[str] = None) -> ParseError:
        token = token or self.peek()
        found = str(token)
        return ParseError(message or f"Expected {expected}, found {found}",
                          token.line, token.column, expected, found)

    # Statements

    def parse_statements(self, closing: str) -> List[Node]:
        """Parse separator-delimited statements up to (not including) ``closing``."""
        statements: List[Node] = []
        while True:
            self.skip_separators()
            if self.tokens[self.pos].type == closing:
                return statements
            statements.append(self.expr_bp(0))
            token = self.tokens[self.pos]
            if token.type in SEPARATORS:
                continue
            if token.type == closing:
                return statements
            raise self.error("';' or newline", token,
                             f"Expressions must end with ';' or newline, found {token}")

    def parse_program(self) -> List[Node]:
        statements = self.parse_statements('EOF')
        self.consume('EOF', 'end of input')
        return statements

    def parse_single(self) -> Node:
        self.skip_separators()
        if self.tokens[self.pos].type == 'EOF':
            return AtomicExpr(UNIT, start=0, end=0)
        expr = self.expr_bp(0)
        self.skip_separators()
        token = self.tokens[self.pos]
        if token.type != 'EOF':
            raise self.error('end of input', token,
                             f"Expected a single expression, found {token} after it")
        return expr

    # Expressions

    def expr_bp(self, min_bp: int) -> Node:
        lhs = self.parse_prefix()
        while True:
            token = self.peek()
            op = BINARY_OPERATORS.get(token.type)
            if op is None:
                break
            l_bp, r_bp = BINDING_POWER[op]
            if l_bp < min_bp:
                break
            self.advance()
            rhs = self.expr_bp(r_bp)
            lhs = BinaryExpr(op, lhs, rhs, start=lhs.start, end=rhs.end)
        return lhs

    def parse_prefix(self) -> Node:
        token = self.peek()
        kind = token.type
        start = token.offset
        if kind in PREFIX_OPERATORS:
            self.advance()
            operand = self.expr_bp(PREFIX_BINDING_POWER)
            return PrefixExpr(PREFIX_OPERATORS[kind], operand, start=start, end=operand.end)
        if kind == 'INT':
            self.advance()
            return self.atomic(IntVal(int(token.value)), start)
        if kind == 'FLOAT':
            self.advance()
            return self.atomic(FloatVal(float(token.value)), start)
        if kind == 'BOOL':
            self.advance()
            return self.atomic(BoolVal(token.value == 'true'), start)
        if kind == 'CHAR':
            self.advance()
            return self.atomic(CharVal(token.value), start)
        if kind == 'STRING':
            self.advance()
            return self.atomic(ListVal.from_string(token.value), start)
        if kind in ('IDENT', 'IDENT_PATH'):
            return self.parse_identifier()
        if kind == 'LPAREN':
            return self.parse_group()
        if kind == 'LBRACKET':
            return self.parse_list()
        if kind == 'LBRACE':
            return self.parse_block()
        if kind == 'IF':
            return self.parse_if()
        if kind == 'FN':
            return self.parse_lambda()
        if kind == 'LET':
            return self.parse_assignment()
        if kind == 'VAR':
            return self.parse_variation()
        if kind == 'MATCH':
            return self.parse_match()
        if kind == 'MOD':
            return self.parse_module()
        if kind == 'IMP':
            return self.parse_import()
        if kind == 'PUB':
            self.advance()
            inner = self.expr_bp(0)
            return PublicExpr(inner, start=start, end=inner.end)
        raise self.error('expression', token, f"Unexpected token {token}, expected an expression")

    def atomic(self, value, start: int) -> AtomicExpr:
        return AtomicExpr(value, start=start, end=self.last_end)

    def parse_identifier(self) -> Node:
        token = self.advance()
        if token.type == 'IDENT_PATH':
            callee = IdentListVal(tuple(token.value.split('.')))
        else:
            callee = IdentVal(token.value)
        # only a '(' directly after the name makes a call
        if self.peek(skip_newlines=False).type != 'LPAREN':
            return self.atomic(callee, token.offset)
        self.advance()
        args = self.parse_arguments('RPAREN')
        return LambdaCall(callee, args, start=token.offset, end=self.last_end)

    def parse_arguments(self, closing: str) -> List[Node]:
        """Comma separated expressions, consuming the closing token."""
        args: List[Node] = []
        if self.match(closing):
            self.advance()
            return args
        while True:
            args.append(self.expr_bp(0))
            if self.match('COMMA'):
                self.advance()
                continue
            self.consume(closing, f"',' or {closing_text(closing)}")
            return args

    def parse_group(self) -> Node:
        start = self.advance().offset
        if self.match('RPAREN'):
            self.advance()
            return self.atomic(UNIT, start)
        inner = self.expr_bp(0)
        self.consume('RPAREN', "')'")
        return inner

    def parse_block(self) -> BlockExpr:
        start = self.advance().offset
        statements = self.parse_statements('RBRACE')
        self.consume('RBRACE', "'}'")
        return BlockExpr(statements, start=start, end=self.last_end)

    def parse_list(self) -> Node:
        start = self.advance().offset
        if self.match('RBRACKET'):
            self.advance()
            return ListExpr([], start=start, end=self.last_end)
        first = self.expr_bp(0)
        if self.match('FOR'):
            return self.parse_comprehension(first, start)
        if self.match('DOTDOT'):
            self.advance()
            end = self.expr_bp(0)
            self.consume('RBRACKET', "']'")
            return LambdaCall(IdentVal('range'), [first, end], start=start, end=self.last_end)
        elements = [first]
        while self.match('COMMA'):
            self.advance()
            if self.match('RBRACKET'):
                break
            elements.append(self.expr_bp(0))
        self.consume('RBRACKET', "',' or ']'")
        return ListExpr(elements, start=start, end=self.last_end)

    def parse_comprehension(self, element: Node, start: int) -> Node:
        self.consume('FOR')
        name = self.consume('IDENT', 'loop variable').value
        self.consume('IN', "'in'")
        source = self.expr_bp(0)
        if self.match('IF'):
            self.advance()
            condition = self.expr_bp(0)
            predicate = AtomicExpr(LambdaVal.single([name], condition),
                                   start=condition.start, end=condition.end)
            source = LambdaCall(IdentVal('filter'), [predicate, source],
                                start=source.start, end=condition.end)
        self.consume('RBRACKET', "']'")
        mapper = AtomicExpr(LambdaVal.single([name], element), start=element.start, end=element.end)
        return LambdaCall(IdentVal('fmap'), [mapper, source], start=start, end=self.last_end)

    def parse_if(self) -> IfExpr:
        start = self.advance().offset
        condition = self.expr_bp(0)
        self.consume('THEN', "'then'")
        then_branch = self.expr_bp(0)
        self.consume('ELSE', "'else'")
        else_branch = self.expr_bp(0)
        return IfExpr(condition, then_branch, else_branch, start=start, end=else_branch.end)

    def parse_lambda(self) -> AtomicExpr:
        start = self.advance().offset
        self.consume('LPAREN', "'(' after fn")
        params: List[str] = []
        if not self.match('RPAREN'):
            while True:
                params.append(self.consume('IDENT', 'parameter name').value)
                if not self.match('COMMA'):
                    break
                self.advance()
        self.consume('RPAREN', "')'")
        self.consume('ARROW', "'=>'")
        body = self.expr_bp(0)
        return AtomicExpr(LambdaVal.single(params, body), start=start, end=body.end)

    def parse_binding(self) -> Tuple[int, str, Node]:
        start = self.advance().offset
        name = self.consume('IDENT', 'identifier').value
        self.consume('ASSIGN', "'='")
        value = self.expr_bp(0)
        if isinstance(value, AtomicExpr) and isinstance(value.value, LambdaVal) and not value.value.name:
            value = replace(value, value=replace(value.value, name=name))
        return start, name, value

    def parse_assignment(self) -> AssignExpr:
        start, name, value = self.parse_binding()
        return AssignExpr(name, value, start=start, end=value.end)

    def parse_variation(self) -> VariationExpr:
        start, name, value = self.parse_binding()
        return VariationExpr(name, value, start=start, end=value.end)

    def parse_match(self) -> MatchExpr:
        token = self.advance()
        scrutinee = self.expr_bp(0)
        cases: List[MatchCaseExpr] = []
        while self.match('PIPE'):
            case_start = self.advance().offset
            pattern = self.peek()
            if pattern.type != 'IDENT':
                raise self.error('identifier', pattern,
                                 f"Match patterns must be a single identifier, found {pattern}; "
                                 f"use an 'and' guard to compare values")
            self.advance()
            guard = None
            if self.match('AND'):
                self.advance()
                guard = self.expr_bp(0)
            self.consume('THEN', "'then'")
            body = self.expr_bp(0)
            cases.append(MatchCaseExpr(scrutinee, pattern.value, guard, body,
                                       start=case_start, end=body.end))
        if not cases:
            raise self.error("'|'", message=f"Match expression requires at least one case, "
                                            f"found {self.peek()}")
        return MatchExpr(scrutinee, cases, start=token.offset, end=self.last_end)

    def parse_module(self) -> ModuleExpr:
        start = self.advance().offset
        name = self.consume('IDENT', 'module name').value
        self.consume('LBRACE', "'{'")
        body = self.parse_statements('RBRACE')
        self.consume('RBRACE', "'}'")
        return ModuleExpr(name, body, start=start, end=self.last_end)

    def parse_import(self) -> ImportExpr:
        start = self.advance().offset
        names = [self.consume('IDENT', 'identifier to import').value]
        while self.match('COMMA'):
            self.advance()
            names.append(self.consume('IDENT', 'identifier to import').value)
        self.consume('FROM', "'from'")
        path = self.consume('STRING', 'file path string').value
        return ImportExpr(names, path, start=start, end=self.last_end)


def closing_text(kind: str) -> str:
    return {'RPAREN': "')'", 'RBRACKET': "']'", 'RBRACE': "'}'"}.get(kind, kind)


def parse_exprs(source: str) -> List[Node]:
    """Parse every statement of ``source``."""
    return Parser(tokenize(source)).parse_program()


def parse_expr(source: str) -> Node:
    """Parse ``source`` as exactly one statement."""
    return Parser(tokenize(source)).parse_single()
