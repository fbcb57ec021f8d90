"""Operation-aware result-type inference.

``promote_operation(op, *types)`` works on type descriptors only. Resolution
order:

1. exact rules from ``register_promotion``;
2. ``_promote_operation`` class hooks (``AbstractMutable`` subclasses);
3. container rules (shape-free, driven by container kind);
4. reductions of the fused/variadic operations to binary ones;
5. evaluating the operation on additive identities of the operand types.

Results are memoized per ``(op, types)``; registering a rule clears the cache.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

from .errors import UnknownResultTypeError
from .operations import (
    ADD,
    ADD_DOT,
    ADD_MUL,
    DOT,
    MUL,
    NEG,
    ONE,
    SUB,
    SUB_MUL,
    SUM,
    ZERO,
    Operation,
    add_sub_op,
    normalize_operation,
)
from .types import (
    ContainerType,
    conj,
    is_array_type,
    is_row_vector_type,
    is_uniform_type,
    is_vector_type,
    one_of,
    type_name,
    zero_of,
)


_RULES: dict[tuple[Operation, tuple[Any, ...]], Any] = {}


def register_promotion(op: Any, *types: Any, result: Any = None) -> Any:
    """Register the result type of ``op`` applied to exactly ``types``.

    Used either directly, ``register_promotion(add, A, B, result=C)``, or as a
    decorator on a function ``fn(*types) -> result_type``.
    """
    operation = normalize_operation(op)
    operation.check_arity(len(types))

    if result is not None:
        _RULES[(operation, tuple(types))] = result
        _promote_cached.cache_clear()
        return result

    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        _RULES[(operation, tuple(types))] = fn(*types)
        _promote_cached.cache_clear()
        return fn

    return decorator


def clear_promotion_cache() -> None:
    _promote_cached.cache_clear()


def promote_operation(op: Any, *types: Any) -> Any:
    operation = normalize_operation(op)
    operation.check_arity(len(types))
    return _promote_cached(operation, tuple(types))


@functools.lru_cache(maxsize=None)
def _promote_cached(op: Operation, types: tuple[Any, ...]) -> Any:
    return _promote(op, types)


def _unknown(op: Operation, types: tuple[Any, ...], detail: str = "") -> UnknownResultTypeError:
    names = ", ".join(type_name(t) for t in types)
    msg = f"no known result type for {op.name}({names})"
    if detail:
        msg += f": {detail}"
    return UnknownResultTypeError(msg)


def _promote(op: Operation, types: tuple[Any, ...]) -> Any:
    rule = _RULES.get((op, types))
    if rule is not None:
        return rule

    for T in types:
        hook = getattr(T, "_promote_operation", None) if isinstance(T, type) else None
        if callable(hook):
            found = hook(op, *types)
            if found is not NotImplemented:
                return found

    if any(isinstance(T, ContainerType) for T in types):
        return _promote_container(op, types)
    return _promote_scalar(op, types)


def _fold(op: Operation, types: tuple[Any, ...]) -> Any:
    acc = types[0]
    for T in types[1:]:
        acc = promote_operation(op, acc, T)
    return acc


def _reduce_fused(op: Operation, types: tuple[Any, ...]) -> Any | None:
    if op in (ADD, MUL) and len(types) > 2:
        return _fold(op, types)
    if op in (ADD_MUL, SUB_MUL):
        return promote_operation(add_sub_op(op), types[0], promote_operation(MUL, *types[1:]))
    if op is ADD_DOT:
        return promote_operation(ADD, types[0], promote_operation(DOT, types[1], types[2]))
    return None


def _promote_scalar(op: Operation, types: tuple[Any, ...]) -> Any:
    reduced = _reduce_fused(op, types)
    if reduced is not None:
        return reduced
    if op in (ADD, MUL, SUM) and len(types) == 1:
        return types[0]
    if op is ZERO:
        return types[0]

    try:
        values = [zero_of(T) for T in types]
    except TypeError as exc:
        raise _unknown(op, types, str(exc)) from None

    try:
        if op is ONE:
            result = one_of(types[0])
        elif op is NEG:
            result = -values[0]
        elif op is ADD:
            result = values[0] + values[1]
        elif op is SUB:
            result = values[0] - values[1]
        elif op is MUL:
            result = values[0] * values[1]
        elif op is DOT:
            result = conj(values[0]) * values[1]
        else:
            raise _unknown(op, types)
    except TypeError as exc:
        raise _unknown(op, types, str(exc)) from None
    return type(result)


def similar_container_type(T: ContainerType, S: Any) -> ContainerType:
    """Same container kind as ``T`` (recursively through wrappers) with element type ``S``."""
    if not isinstance(T, ContainerType):
        raise TypeError(f"{T!r} is not a container type")
    if T.parent is None:
        return ContainerType(T.kind, S)
    return ContainerType(T.kind, S, similar_container_type(T.parent, S))


def _plain_kind(ndim: int) -> type:
    from .containers import Matrix, Vector

    return Vector if ndim == 1 else Matrix


def _sum_mul(S: Any, T: Any) -> Any:
    m = promote_operation(MUL, S, T)
    return promote_operation(ADD, m, m)


def _promote_container(op: Operation, types: tuple[Any, ...]) -> Any:
    if op in (ZERO, NEG):
        (T,) = types
        if op is ZERO:
            return T
        return similar_container_type(T, promote_operation(NEG, T.eltype))

    if op is ONE:
        (T,) = types
        if is_vector_type(T) or is_row_vector_type(T):
            raise _unknown(op, types, "one is only defined for square matrices")
        return similar_container_type(T, promote_operation(ONE, T.eltype))

    if op is SUM:
        (T,) = types
        if not isinstance(T, ContainerType):
            return T
        e = T.eltype
        return promote_operation(ADD, e, e)

    if op in (ADD, MUL) and len(types) == 1:
        return types[0]

    reduced = _reduce_fused(op, types)
    if reduced is not None:
        return reduced

    if op in (ADD, SUB):
        return _promote_add_sub(op, types[0], types[1])
    if op is MUL:
        return _promote_mul(types[0], types[1])
    if op is DOT:
        A, B = types
        if not (is_array_type(A) and is_array_type(B)):
            raise _unknown(op, types, "dot needs two arrays")
        d = promote_operation(DOT, A.eltype, B.eltype)
        return promote_operation(ADD, d, d)
    raise _unknown(op, types)


def _promote_add_sub(op: Operation, A: Any, B: Any) -> Any:
    types = (A, B)
    if not (isinstance(A, ContainerType) and isinstance(B, ContainerType)):
        raise _unknown(op, types, "containers do not broadcast with scalars")

    e = promote_operation(op, A.eltype, B.eltype)
    if is_uniform_type(A) and is_uniform_type(B):
        return ContainerType(A.kind, e)
    if is_uniform_type(A) or is_uniform_type(B):
        other = B if is_uniform_type(A) else A
        if other.ndim != 2:
            raise _unknown(op, types, "UniformScaling only combines with matrices")
        return ContainerType(_plain_kind(2), e)
    if A.name == "sparse" and B.name == "sparse":
        return ContainerType(A.kind, e)
    return ContainerType(_plain_kind(max(A.ndim, B.ndim)), e)


def _promote_mul(A: Any, B: Any) -> Any:
    a_scalar = not isinstance(A, ContainerType) or is_uniform_type(A)
    b_scalar = not isinstance(B, ContainerType) or is_uniform_type(B)

    if a_scalar and b_scalar:
        kind = A.kind if is_uniform_type(A) else B.kind
        s = A.eltype if isinstance(A, ContainerType) else A
        t = B.eltype if isinstance(B, ContainerType) else B
        return ContainerType(kind, promote_operation(MUL, s, t))
    if a_scalar:
        s = A.eltype if isinstance(A, ContainerType) else A
        return similar_container_type(B, promote_operation(MUL, s, B.eltype))
    if b_scalar:
        s = B.eltype if isinstance(B, ContainerType) else B
        return similar_container_type(A, promote_operation(MUL, A.eltype, s))
    return promote_array_mul(A, B)


def promote_array_mul(A: ContainerType, B: ContainerType) -> Any:
    """Result type of the product of two shaped containers."""
    if is_row_vector_type(A):
        if is_vector_type(B):
            return _sum_mul(A.eltype, B.eltype)
        sm = _sum_mul(A.eltype, B.eltype)
        return ContainerType(A.kind, sm, ContainerType(A.parent.kind, sm))
    if is_vector_type(A):
        if is_vector_type(B):
            raise _unknown(MUL, (A, B), "vector * vector is undefined; use dot or a transpose")
        return ContainerType(_plain_kind(2), promote_operation(MUL, A.eltype, B.eltype))
    sm = _sum_mul(A.eltype, B.eltype)
    if is_vector_type(B):
        return ContainerType(_plain_kind(1), sm)
    if A.name == "sparse" and B.name == "sparse":
        return ContainerType(A.kind, sm)
    return ContainerType(_plain_kind(2), sm)
