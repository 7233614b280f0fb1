"""Abstract Syntax Tree (AST) definitions for RustScript.

RustScript is expression based: every node produces a value when it is
evaluated, even if that value is just unit. Nodes are built once by the
parser and never mutated afterwards, so a lambda body can be evaluated any
number of times.

Each node records the ``start``/``end`` character offsets of the source it
was parsed from. The offsets are excluded from equality so that trees can be
compared structurally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .types import Value


class PrefixOp(Enum):
    NEGATE = '-'
    HEAD = '^'
    TAIL = '$'


class BinOp(Enum):
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = '%'
    LT = '<'
    GT = '>'
    EQ = '=='
    NEQ = '!='
    AND = '&&'
    OR = '||'


@dataclass
class Node:
    """Base class for all AST nodes."""
    start: int = field(default=-1, kw_only=True, compare=False, repr=False)
    end: int = field(default=-1, kw_only=True, compare=False, repr=False)


@dataclass
class AtomicExpr(Node):
    value: Value

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class ListExpr(Node):
    elements: List[Node]

    def __str__(self) -> str:
        return '[' + ', '.join(str(e) for e in self.elements) + ']'


@dataclass
class PrefixExpr(Node):
    op: PrefixOp
    operand: Node

    def __str__(self) -> str:
        return f"{self.op.value}({self.operand})"


@dataclass
class BinaryExpr(Node):
    op: BinOp
    left: Node
    right: Node

    def __str__(self) -> str:
        return f"({self.left} {self.op.value} {self.right})"


@dataclass
class IfExpr(Node):
    condition: Node
    then_branch: Node
    else_branch: Node

    def __str__(self) -> str:
        return f"if ({self.condition}) then ({self.then_branch}) else ({self.else_branch})"


@dataclass
class BlockExpr(Node):
    statements: List[Node]

    def __str__(self) -> str:
        return '{ ' + '; '.join(str(s) for s in self.statements) + ' }'


@dataclass
class MatchCaseExpr(Node):
    scrutinee: Node
    name: str
    guard: Optional[Node]
    body: Node

    def __str__(self) -> str:
        pattern = self.name if self.guard is None else f"{self.name} and {self.guard}"
        return f"| {pattern} then {self.body}"


@dataclass
class MatchExpr(Node):
    scrutinee: Node
    cases: List[MatchCaseExpr]

    def __str__(self) -> str:
        return f"match {self.scrutinee} " + ' '.join(str(c) for c in self.cases)


@dataclass
class LambdaCall(Node):
    callee: Value  # IdentVal or IdentListVal
    args: List[Node]

    def __str__(self) -> str:
        return f"{self.callee}(" + ', '.join(str(a) for a in self.args) + ')'


@dataclass
class AssignExpr(Node):
    name: str
    value: Node

    def __str__(self) -> str:
        return f"let {self.name} = {self.value}"


@dataclass
class VariationExpr(Node):
    name: str
    value: Node

    def __str__(self) -> str:
        return f"var {self.name} = {self.value}"


@dataclass
class ModuleExpr(Node):
    name: str
    body: List[Node]

    def __str__(self) -> str:
        return f"mod {self.name} {{ " + '; '.join(str(s) for s in self.body) + ' }'


@dataclass
class ImportExpr(Node):
    names: List[str]
    path: str

    def __str__(self) -> str:
        return f"imp {', '.join(self.names)} from \"{self.path}\""


@dataclass
class PublicExpr(Node):
    inner: Node

    def __str__(self) -> str:
        return f"pub {self.inner}"
