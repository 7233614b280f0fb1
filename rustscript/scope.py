"""Binding environments for the evaluator.

Lookup only ever walks parent links. Module-qualified names (``a.b.c``) are
resolved by :func:`resolve_path`, which steps into module scopes explicitly
and never goes through the general parent walk for anything but the first
component.
"""

from __future__ import annotations

import itertools
import os
from typing import Dict, FrozenSet, Optional, Sequence, TYPE_CHECKING

from .errors import UndefinedModuleMemberError, UndefinedVariableError
from .std.io import BasicIO
from .types import ModuleVal, Value

if TYPE_CHECKING:
    from .builtin_function import ProgramFunction


_scope_ids = itertools.count()


class Scope:
    """Represents a scope mapping identifiers to values."""
    def __init__(self, name: str, parent: Optional[Scope] = None):
        self.id = next(_scope_ids)
        self.name = name
        self.parent = parent
        self.values: Dict[str, Value] = {}

    def __repr__(self) -> str:
        return f"<Scope {self.name}#{self.id}>"

    def lookup_local(self, name: str) -> Optional[Value]:
        return self.values.get(name)

    def lookup(self, name: str) -> Optional[Value]:
        scope: Optional[Scope] = self
        while scope is not None:
            value = scope.lookup_local(name)
            if value is not None:
                return value
            scope = scope.parent
        return None

    def get(self, name: str) -> Value:
        value = self.lookup(name)
        if value is None:
            raise UndefinedVariableError(name, self.name)
        return value

    def has(self, name: str) -> bool:
        return self.lookup(name) is not None

    def set(self, name: str, value: Value, public: bool = False) -> None:
        # Always binds here; an outer binding of the same name is shadowed.
        self.values[name] = value

    def derive(self, name: str) -> Scope:
        return Scope(name, self)

    @property
    def root(self) -> GlobalScope:
        scope = self
        while scope.parent is not None:
            scope = scope.parent
        return scope  # type: ignore[return-value]

    @property
    def is_global(self) -> bool:
        return self.parent is None

    def is_within(self, other: Scope) -> bool:
        scope: Optional[Scope] = self
        while scope is not None:
            if scope is other:
                return True
            scope = scope.parent
        return False

    def get_program_function(self, name: str) -> Optional[ProgramFunction]:
        return self.root.functions.get(name)


class GlobalScope(Scope):
    """Top-level scope of one program.

    Holds the builtin function table, the export table used by ``imp`` and
    the configuration shared by every scope below it.
    """
    def __init__(self, source_dir: Optional[str] = None, basic_io: Optional[BasicIO] = None,
                 importing: FrozenSet[str] = frozenset()):
        super().__init__('Global')
        if basic_io is None:
            basic_io = BasicIO()
        self.source_dir = os.path.abspath(source_dir or os.getcwd())
        self.basic_io = basic_io
        self.importing = importing
        self.functions: Dict[str, ProgramFunction] = {}
        self.exports: Dict[str, Value] = {}

    def add_program_function(self, function: ProgramFunction) -> None:
        self.functions[function.name] = function

    def export(self, name: str, value: Value) -> None:
        self.exports[name] = value


class ModuleScope(Scope):
    """Scope of a module body, split into public and private bindings."""
    def __init__(self, name: str, parent: Scope):
        super().__init__(name, parent)
        self.public: Dict[str, Value] = {}
        self.values = self.private = {}

    def lookup_local(self, name: str) -> Optional[Value]:
        if name in self.public:
            return self.public[name]
        return self.private.get(name)

    def set(self, name: str, value: Value, public: bool = False) -> None:
        if public:
            self.private.pop(name, None)
            self.public[name] = value
        else:
            self.public.pop(name, None)
            self.private[name] = value

    def member(self, name: str, include_private: bool = False) -> Value:
        if name in self.public:
            return self.public[name]
        if include_private and name in self.private:
            return self.private[name]
        raise UndefinedModuleMemberError(self.name, name)


def resolve_path(names: Sequence[str], scope: Scope) -> Value:
    """Resolve a dotted identifier path such as ``math.consts.pi``.

    The first component is looked up through the scope chain; every further
    component must be a member of the module named so far. Private members
    are visible only to code running inside that module.
    """
    value = scope.get(names[0])
    path = names[0]
    for name in names[1:]:
        if not isinstance(value, ModuleVal):
            raise UndefinedModuleMemberError(
                path, name, f"{path} is not a module, cannot access member {name}")
        value = value.scope.member(name, include_private=scope.is_within(value.scope))
        path = f"{path}.{name}"
    return value
