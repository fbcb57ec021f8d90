from __future__ import annotations

from typing import Any

from .mutability import AbstractMutable
from .operations import ADD_DOT, ADD_MUL, DOT, MUL, SUB_MUL, Operation, normalize_operation
from .promotion import promote_operation
from .types import ContainerType, eltype, is_array_type, is_uniform_type, zero_of


def buffer_type(op: Any, *types: Any) -> Any:
    """Type of the scratch value that makes ``op`` on ``types`` allocation-free.

    ``None`` means buffering brings no benefit (immutable scalars, fixed-size
    numbers, operations that never need scratch space).
    """
    operation = normalize_operation(op)
    if not types:
        return None
    if any(isinstance(T, ContainerType) for T in types):
        return _container_buffer_type(operation, types)
    target = types[0]
    if isinstance(target, type) and issubclass(target, AbstractMutable):
        return target.buffer_type(operation, *types)
    return None


def _element_type(T: Any) -> Any:
    return T.eltype if isinstance(T, ContainerType) else T


def _container_buffer_type(op: Operation, types: tuple[Any, ...]) -> Any:
    if op is DOT:
        A, B = types
        R = promote_operation(DOT, A, B)
        return buffer_type(ADD_DOT, R, eltype(A), eltype(B))

    if op is ADD_DOT:
        T, A, B = types
        if is_array_type(A) and is_array_type(B):
            return buffer_type(ADD_DOT, _element_type(T), A.eltype, B.eltype)
        return None

    if op is MUL:
        arrays = [T for T in types if is_array_type(T)]
        if len(types) == 2 and len(arrays) == 2:
            R = promote_operation(MUL, *types)
            return buffer_type(ADD_MUL, _element_type(R), types[0].eltype, types[1].eltype)
        return None

    if op in (ADD_MUL, SUB_MUL):
        target, factors = types[0], types[1:]
        arrays = [T for T in factors if is_array_type(T)]
        if len(arrays) >= 2 and len(factors) > 2:
            rest = promote_operation(MUL, *factors[1:])
            return buffer_type(op, target, factors[0], rest)
        if len(arrays) == 2:
            A, B = factors
            return buffer_type(op, _element_type(target), A.eltype, B.eltype)
        if len(arrays) == 1 or any(is_uniform_type(T) for T in factors):
            return buffer_type(op, _element_type(target), *[_element_type(T) for T in factors])
        return None

    return None


def buffer_for(op: Any, *types: Any) -> Any:
    """Freshly allocated buffer for ``op`` on ``types``, or ``None``."""
    T = buffer_type(op, *types)
    if T is None:
        return None
    return zero_of(T)
