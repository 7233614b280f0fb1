from dataclasses import dataclass
from typing import Callable, List, Optional

from rustscript.errors import ArityError
from rustscript.types import Value


@dataclass
class ProgramFunction:
    """A host-implemented function stored in the global builtin table.

    ``arity`` of ``None`` marks a variadic function.
    """
    name: str
    arity: Optional[int]
    fn: Callable[[List[Value]], Value]

    def __call__(self, args: List[Value]) -> Value:
        if self.arity is not None and len(args) != self.arity:
            raise ArityError(self.name, self.arity, len(args))
        return self.fn(args)

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
