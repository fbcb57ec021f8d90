"""Internal: executable element-type/operation support matrix.

Makes "what is supported" explicit and enforceable: every case names a
container kind, an operation and the element types involved, and ``run_case``
executes it through all three entry points (``operate``, ``operate_inplace``,
``operate_to``) and checks them against each other and a plain-Python
reference.

Shapes are kept tiny; the point is surface area, not runtime.
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass
from fractions import Fraction
from typing import Any, Callable, Dict, List

import numpy as np


@dataclass(frozen=True)
class SupportCase:
    kind: str  # "vector" | "matrix" | "sparse" | "symmetric" | "matvec"
    op: str
    a_eltype: str
    b_eltype: str | None = None


ELTYPES: List[str] = [
    "int",
    "float",
    "fraction",
    "bigint",
    "int64",
    "float64",
]


_VECTOR_OPS: List[str] = ["add", "sub", "neg", "zero", "scale", "add_mul_scalar", "dot", "sum"]
_MATRIX_OPS: List[str] = ["add", "sub", "neg", "zero", "one", "matmul", "add_mul", "add_uniform", "sum"]
_SPARSE_OPS: List[str] = ["add", "neg", "zero", "scale", "matvec", "add_mul"]
_SYMMETRIC_OPS: List[str] = ["add", "scale", "matmul"]


def _same_eltype_cases() -> List[SupportCase]:
    cases: List[SupportCase] = []
    for et in ELTYPES:
        for op in _VECTOR_OPS:
            cases.append(SupportCase("vector", op, et, et))
        for op in _MATRIX_OPS:
            cases.append(SupportCase("matrix", op, et, et))
        for op in _SPARSE_OPS:
            cases.append(SupportCase("sparse", op, et, et))
        for op in _SYMMETRIC_OPS:
            cases.append(SupportCase("symmetric", op, et, et))
        cases.append(SupportCase("matvec", "matvec", et, et))
    return cases


def _mixed_eltype_pairs() -> List[tuple[str, str]]:
    # Representative mixed pairs to catch asymmetric promotion.
    pairs: List[tuple[str, str]] = [
        ("int", "float"),
        ("int", "fraction"),
        ("bigint", "int"),
        ("int64", "float64"),
        ("int", "int64"),
        ("float", "float64"),
    ]
    pairs += [(b, a) for (a, b) in pairs if a != b]
    return pairs


def _mixed_eltype_cases() -> List[SupportCase]:
    cases: List[SupportCase] = []
    for a_et, b_et in _mixed_eltype_pairs():
        for op in ("add", "sub", "dot"):
            cases.append(SupportCase("vector", op, a_et, b_et))
        for op in ("add", "matmul"):
            cases.append(SupportCase("matrix", op, a_et, b_et))
        cases.append(SupportCase("matvec", "matvec", a_et, b_et))
    return cases


SUPPORTED: List[SupportCase] = _same_eltype_cases() + _mixed_eltype_cases()


def summarize() -> Dict[str, int]:
    out: Dict[str, int] = {}
    for c in SUPPORTED:
        key = f"{c.kind}:{c.op}"
        out[key] = out.get(key, 0) + 1
    return out


# ---------------------------------------------------------------------------
# execution


def _eltype_class(token: str) -> Any:
    from .bigint import BigInt

    return {
        "int": int,
        "float": float,
        "fraction": Fraction,
        "bigint": BigInt,
        "int64": np.int64,
        "float64": np.float64,
    }[token]


_VECTOR_VALUES = [2, -3, 5]
_MATRIX_VALUES = [[2, -3], [4, 5]]
_SPARSE_ENTRIES = ([0, 1, 1], [0, 0, 1], [3, -1, 2])


def _reference(x: Any) -> Any:
    """Plain Python view of a value, used for comparisons."""
    if getattr(type(x), "_mutarith_container", False):
        arr = np.empty(x.shape, dtype=object)
        for idx in np.ndindex(*x.shape):
            arr[idx] = _reference(x.get(*idx))
        return arr.tolist()
    if isinstance(x, np.generic):
        return x.item()
    if hasattr(x, "value") and type(x).__name__ == "BigInt":
        return x.value
    return x


def _make(kind: str, token: str) -> Any:
    from .containers import Matrix, Symmetric, Vector
    from .sparse import sparse

    T = _eltype_class(token)
    if kind == "vector":
        return Vector([T(v) for v in _VECTOR_VALUES], eltype=T)
    if kind == "matrix":
        return Matrix([[T(v) for v in row] for row in _MATRIX_VALUES], eltype=T)
    if kind == "symmetric":
        return Symmetric(Matrix([[T(v) for v in row] for row in _MATRIX_VALUES], eltype=T))
    if kind == "sparse":
        I, J, V = _SPARSE_ENTRIES
        return sparse(I, J, [T(v) for v in V], 2, 2, eltype=T)
    raise ValueError(f"Unknown kind: {kind}")


def _case_args(case: SupportCase) -> tuple[Any, tuple[Any, ...]]:
    from .containers import I
    from .operations import ADD, ADD_MUL, DOT, MUL, NEG, ONE, SUB, SUM, ZERO

    a_et = case.a_eltype
    b_et = case.b_eltype or a_et
    kind = case.kind
    if kind == "matvec":
        return MUL, (_make("matrix", a_et), _make_short_vector(b_et))

    a = _make(kind, a_et)
    if case.op in ("add", "sub"):
        return (ADD if case.op == "add" else SUB), (a, _make(kind, b_et))
    if case.op == "neg":
        return NEG, (a,)
    if case.op == "zero":
        return ZERO, (a,)
    if case.op == "one":
        return ONE, (a,)
    if case.op == "sum":
        return SUM, (a,)
    if case.op == "scale":
        return MUL, (a, _eltype_class(b_et)(3))
    if case.op == "add_mul_scalar":
        return ADD_MUL, (a, _make(kind, b_et), _eltype_class(b_et)(2))
    if case.op == "dot":
        return DOT, (a, _make(kind, b_et))
    if case.op == "matmul":
        return MUL, (a, _make(kind if kind != "symmetric" else "matrix", b_et))
    if case.op == "matvec":
        return MUL, (a, _make_short_vector(b_et))
    if case.op == "add_mul":
        return ADD_MUL, (a, a.copy(), _make(kind, b_et))
    if case.op == "add_uniform":
        return ADD, (a, I)
    raise ValueError(f"Unknown op: {case.op}")


def _make_short_vector(token: str) -> Any:
    from .containers import Vector

    T = _eltype_class(token)
    return Vector([T(v) for v in _VECTOR_VALUES[:2]], eltype=T)


def run_case(case: SupportCase) -> None:
    """Execute ``case``; raises ``AssertionError`` when the entry points disagree."""
    from .engine import operate, operate_inplace, operate_to
    from .mutability import Mutability, is_mutable, mutability
    from .promotion import promote_operation
    from .types import typeof

    op, args = _case_args(case)
    types = [typeof(a) for a in args]
    R = promote_operation(op, *types)

    expected = operate(op, *args)
    if typeof(expected) != R:
        raise AssertionError(f"{case}: result type {typeof(expected)!r} != promoted {R!r}")
    reference = _reference(expected)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore")
        first = args[0]
        target = first.copy() if getattr(type(first), "_mutarith_container", False) else first
        out = operate_inplace(op, target, *args[1:])
        if _reference(out) != reference:
            raise AssertionError(f"{case}: operate_inplace disagrees with operate")
        if mutability(types[0], op, *types[1:]) is Mutability.MUTABLE:
            if out is not target:
                raise AssertionError(f"{case}: mutable target was not reused")

        if getattr(type(expected), "_mutarith_container", False) and is_mutable(expected):
            output = _zero_copy(expected)
            for _ in range(2):
                operate_to(output, op, *args)
                if _reference(output) != reference:
                    raise AssertionError(f"{case}: operate_to disagrees with operate")


def _zero_copy(x: Any) -> Any:
    from .engine import operate
    from .operations import ZERO

    return operate(ZERO, x)


def run_all(cases: List[SupportCase] | None = None, *, on_failure: Callable[[SupportCase, BaseException], None] | None = None) -> List[str]:
    failures: List[str] = []
    for case in SUPPORTED if cases is None else cases:
        try:
            run_case(case)
        except Exception as exc:
            if on_failure is not None:
                on_failure(case, exc)
            failures.append(f"{case}: {type(exc).__name__}: {exc}")
    return failures
