from __future__ import annotations

import threading
import warnings
from typing import Any

import numpy as np

from . import config
from .buffers import buffer_for
from .errors import DimensionMismatch, ImmutableValueError, IncompatibleOutputError, UnknownResultTypeError
from .mutability import (
    Mutability,
    buffered_primitive,
    copy_if_mutable,
    inplace_primitive,
    is_mutable,
    mutability,
    to_primitive,
)
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
from .promotion import promote_operation
from .types import ContainerType, conj, eltype, is_bits_type, is_container, one_of, type_name, typeof, zero_of
from .warnings import MutArithPerformanceWarning, MutArithPromotionWarning


_trace = threading.local()


def _set_trace(tag: str) -> None:
    _trace.last = tag


def _debug_last_dispatch_trace() -> str:
    """Internal/test helper: tag of the strategy chosen by the last operate call on this thread."""
    return getattr(_trace, "last", "")


def _debug_clear_dispatch_trace() -> None:
    _trace.last = ""


def _prepare(op: Any, nargs: int) -> Operation:
    operation = normalize_operation(op)
    operation.check_arity(nargs)
    return operation


def operate(op: Any, *args: Any) -> Any:
    """Plain semantics: never mutates an argument, returns an owned result."""
    operation = _prepare(op, len(args))
    if any(is_container(a) for a in args):
        from . import linear_algebra

        return linear_algebra.operate(operation, *args)
    return _operate_scalar(operation, args)


def _operate_scalar(op: Operation, args: tuple[Any, ...]) -> Any:
    promote_operation(op, *_arg_types(args))
    x = args[0]
    if op is ZERO:
        return zero_of(typeof(x))
    if op is ONE:
        return one_of(typeof(x))
    if op is NEG:
        return -x
    if op is SUM:
        return copy_if_mutable(x)
    if op in (ADD, MUL) and len(args) == 1:
        return copy_if_mutable(x)
    if op in (ADD, SUB, MUL):
        acc = _binary(op, x, args[1])
        for y in args[2:]:
            acc = operate_inplace(op, acc, y)
        return acc
    if op in (ADD_MUL, SUB_MUL):
        return _binary(add_sub_op(op), x, operate(MUL, *args[1:]))
    if op is DOT:
        return conj(x) * args[1]
    if op is ADD_DOT:
        return x + conj(args[1]) * args[2]
    raise TypeError(f"unsupported operation {op.name}")


def _binary(op: Operation, a: Any, b: Any) -> Any:
    if op is ADD:
        return a + b
    if op is SUB:
        return a - b
    return a * b


def _arg_types(args: tuple[Any, ...]) -> tuple[Any, ...]:
    return tuple(typeof(a) for a in args)


def operate_inplace(op: Any, x: Any, *args: Any) -> Any:
    """Compute ``op(x, *args)``, reusing ``x`` when its type can hold the result.

    Always use the return value: immutable ``x`` (or ``x`` whose type cannot
    hold the result) is left untouched and a new value is returned.
    """
    operation = _prepare(op, 1 + len(args))
    T = typeof(x)
    arg_types = _arg_types(args)
    if mutability(T, operation, *arg_types) is Mutability.MUTABLE:
        return inplace_primitive(x, operation, *args)
    if not is_container(x):
        return operate(operation, x, *args)
    # no result type: raise before warning about the fallback
    promote_operation(operation, T, *arg_types)
    if config.settings.warn_on_fallback:
        warnings.warn(
            f"operate_inplace({operation.name}) cannot reuse {T!r}; allocating a new result",
            MutArithPerformanceWarning,
            stacklevel=2,
        )
    return operate(operation, x, *args)


def mutable_operate(op: Any, x: Any, *args: Any) -> Any:
    """Strict ``operate_inplace``: raises instead of allocating."""
    operation = _prepare(op, 1 + len(args))
    T = typeof(x)
    if mutability(T, operation, *_arg_types(args)) is not Mutability.MUTABLE:
        raise ImmutableValueError(
            f"cannot modify {type_name(T)} in place to hold the result of {operation.name}"
        )
    return inplace_primitive(x, operation, *args)


def buffered_operate_inplace(buffer: Any, op: Any, x: Any, *args: Any) -> Any:
    """One fused step of ``op`` into ``x`` using scratch space ``buffer``."""
    if buffer is None:
        return operate_inplace(op, x, *args)
    operation = _prepare(op, 1 + len(args))
    if mutability(typeof(x), operation, *_arg_types(args)) is Mutability.MUTABLE:
        return buffered_primitive(x, buffer, operation, *args)
    return operate(operation, x, *args)


def can_hold(T: Any, R: Any) -> bool:
    """Whether a value of type ``T`` can store a result of type ``R``."""
    if T == R:
        return True
    if isinstance(T, ContainerType) or isinstance(R, ContainerType):
        if not (isinstance(T, ContainerType) and isinstance(R, ContainerType)):
            return False
        if T.kind is not R.kind:
            if T.name not in ("vector", "matrix") or T.ndim != R.ndim:
                return False
        return can_hold(T.eltype, R.eltype)
    try:
        return promote_operation(ADD, T, R) == T
    except UnknownResultTypeError:
        return False


def _storage_of(x: Any) -> list[Any]:
    fn = getattr(x, "_storage_arrays", None)
    if callable(fn):
        return list(fn())
    return []


def shares_storage(a: Any, b: Any) -> bool:
    if a is b:
        return True
    for sa in _storage_of(a):
        for sb in _storage_of(b):
            if sa.size and sb.size and np.may_share_memory(sa, sb):
                return True
    return False


def operate_to(output: Any, op: Any, *args: Any) -> Any:
    """Write ``op(*args)`` into the caller-supplied ``output`` and return it."""
    operation = _prepare(op, len(args))
    T = typeof(output)
    if not is_mutable(output):
        raise IncompatibleOutputError(f"output of type {type_name(T)} is not mutable")
    R = promote_operation(operation, *_arg_types(args))
    if not can_hold(T, R):
        raise IncompatibleOutputError(
            f"output of type {type_name(T)} cannot hold {operation.name} result of type {type_name(R)}"
        )
    for a in args:
        if shares_storage(output, a):
            raise IncompatibleOutputError("output must not alias an argument")
    if isinstance(T, ContainerType) and isinstance(R, ContainerType):
        if is_bits_type(T.eltype) and is_bits_type(R.eltype) and T.eltype != R.eltype:
            warnings.warn(
                f"operate_to converts {type_name(R.eltype)} results to {type_name(T.eltype)} elements",
                MutArithPromotionWarning,
                stacklevel=2,
            )
    return to_primitive(output, operation, *args)


def _check_same_length(arrays: tuple[Any, ...]) -> int:
    shapes = [a.shape for a in arrays]
    if any(s != shapes[0] for s in shapes[1:]):
        raise DimensionMismatch(f"reduction over arrays of shapes {shapes}")
    n = 1
    for d in shapes[0]:
        n *= d
    return n


def _reduction_type(op: Operation, elts: list[Any]) -> Any:
    if op is ADD:
        return promote_operation(ADD, elts[0], elts[0])
    if op is ADD_MUL:
        m = promote_operation(MUL, *elts)
        return promote_operation(ADD, m, m)
    d = promote_operation(DOT, *elts)
    return promote_operation(ADD, d, d)


def fused_map_reduce(op: Any, *arrays: Any) -> Any:
    """Fused reduction over the elements of ``arrays``.

    ``add`` sums one array, ``add_mul`` sums pairwise products and ``add_dot``
    sums ``conj(x) * y``. Every step goes through one shared buffer.
    """
    operation = normalize_operation(op)
    expected = {ADD: 1, ADD_MUL: 2, ADD_DOT: 2}.get(operation)
    if expected is None:
        raise TypeError(f"fused_map_reduce supports add, add_mul and add_dot, not {operation.name}")
    if len(arrays) != expected or not all(is_container(a) for a in arrays):
        raise TypeError(f"fused_map_reduce({operation.name}) expects {expected} array(s)")
    _check_same_length(arrays)

    elts = [eltype(a) for a in arrays]
    R = _reduction_type(operation, elts)

    if config.settings.numpy_fast_path and is_bits_type(R) and all(is_bits_type(e) for e in elts):
        _set_trace(f"numpy:reduce:{operation.name}")
        flat = [a.to_numpy().ravel() for a in arrays]
        if operation is ADD:
            return R(np.add.reduce(flat[0], dtype=np.dtype(R)))
        if operation is ADD_MUL:
            return R(np.dot(flat[0], flat[1]))
        return R(np.vdot(flat[0], flat[1]))

    _set_trace(f"buffered:reduce:{operation.name}")
    acc = zero_of(R)
    if operation is ADD:
        for value in arrays[0]._iter_elements():
            acc = operate_inplace(ADD, acc, value)
        return acc
    buffer = buffer_for(operation, R, *elts)
    for x, y in zip(arrays[0]._iter_dense(), arrays[1]._iter_dense()):
        acc = buffered_operate_inplace(buffer, operation, acc, x, y)
    return acc
