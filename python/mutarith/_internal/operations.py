"""The closed set of operations understood by the operate protocol.

Each operation is a singleton ``Operation`` object. Calling it applies the
operation with plain (allocating, non-mutating) semantics, so
``add_mul(a, b, c)`` is ``a + b * c`` for any supported operands.
"""

from __future__ import annotations

import builtins
import operator
from typing import Any


class Operation:
    __slots__ = ("name", "min_args", "max_args", "doc")

    def __init__(self, name: str, min_args: int, max_args: int | None, doc: str) -> None:
        self.name = name
        self.min_args = min_args
        self.max_args = max_args
        self.doc = doc

    def check_arity(self, nargs: int) -> None:
        if nargs < self.min_args or (self.max_args is not None and nargs > self.max_args):
            if self.max_args is None:
                expected = f"at least {self.min_args}"
            elif self.max_args == self.min_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise TypeError(f"{self.name} expects {expected} operand(s), got {nargs}")

    def __call__(self, *args: Any) -> Any:
        from .engine import operate

        return operate(self, *args)

    def __repr__(self) -> str:
        return f"mutarith.{self.name}"

    def __reduce__(self) -> str:
        return self.name.upper()


ZERO = Operation("zero", 1, 1, "Additive identity of the operand's type.")
ONE = Operation("one", 1, 1, "Multiplicative identity of the operand's type.")
NEG = Operation("neg", 1, 1, "Negation.")
ADD = Operation("add", 1, None, "Sum of all operands, folded left to right.")
SUB = Operation("sub", 2, 2, "Difference of two operands.")
MUL = Operation("mul", 1, None, "Product of all operands, folded left to right.")
ADD_MUL = Operation("add_mul", 2, None, "a + b * c * ...")
SUB_MUL = Operation("sub_mul", 2, None, "a - b * c * ...")
DOT = Operation("dot", 2, 2, "conj(a) * b for scalars; fused reduction for containers.")
ADD_DOT = Operation("add_dot", 3, 3, "a + dot(b, c)")
SUM = Operation("sum", 1, 1, "Sum of the elements of a container.")

ALL_OPERATIONS: tuple[Operation, ...] = (
    ZERO,
    ONE,
    NEG,
    ADD,
    SUB,
    MUL,
    ADD_MUL,
    SUB_MUL,
    DOT,
    ADD_DOT,
    SUM,
)

_BY_NAME: dict[str, Operation] = {op.name: op for op in ALL_OPERATIONS}
_BY_NAME.update({"+": ADD, "-": SUB, "*": MUL, "muladd": ADD_MUL})

_BY_CALLABLE: dict[Any, Operation] = {
    operator.add: ADD,
    operator.sub: SUB,
    operator.mul: MUL,
    operator.neg: NEG,
    builtins.sum: SUM,
}


def normalize_operation(op: Any) -> Operation:
    """Normalize user-provided operation tokens into an ``Operation``.

    Accepted inputs include:
    - ``Operation`` singletons (``mutarith.add_mul``)
    - Case-insensitive names and symbols: "add", "ADD_MUL", "+", "*", ...
    - ``operator.add``/``sub``/``mul``/``neg`` and builtin ``sum``
    """
    if isinstance(op, Operation):
        return op
    if isinstance(op, str):
        found = _BY_NAME.get(op.strip().lower())
        if found is not None:
            return found
        raise TypeError(f"unknown operation {op!r}")
    try:
        found = _BY_CALLABLE.get(op)
    except TypeError:
        found = None
    if found is not None:
        return found
    raise TypeError(f"unknown operation {op!r}")


def add_sub_op(op: Operation) -> Operation:
    """``add`` for ``add_mul``/``add_dot``, ``sub`` for ``sub_mul``."""
    if op is ADD_MUL or op is ADD_DOT:
        return ADD
    if op is SUB_MUL:
        return SUB
    raise TypeError(f"{op.name} is not a multiply-accumulate operation")

