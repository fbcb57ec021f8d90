"""Container arithmetic for the operate engine.

``operate``, ``operate_inplace`` and ``operate_to`` here are only reached
through the engine, which has already normalized the operation, checked its
arity and (for the mutating entry points) established that the target can
hold the result. Every function validates shapes before writing anything.
"""

from __future__ import annotations

from typing import Any, Callable

import numpy as np

from . import config
from . import engine
from . import sparse as _sparse
from .buffers import buffer_for
from .containers import (
    Adjoint,
    Diagonal,
    Matrix,
    Symmetric,
    Transpose,
    UniformScaling,
    Vector,
    _DenseArray,
    convert_element,
    new_storage,
    zeros,
)
from .errors import DimensionMismatch
from .mutability import copy_if_mutable, is_mutable, to_primitive
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
)
from .promotion import promote_operation
from .sparse import SparseMatrix
from .types import (
    ContainerType,
    conj,
    is_bits_type,
    is_container,
    is_row_vector_type,
    one_of,
    typeof,
    zero_of,
)


# ---------------------------------------------------------------------------
# helpers


def _kind(x: Any) -> str:
    return x.value_type().name


def _is_uniform(x: Any) -> bool:
    return is_container(x) and _kind(x) == "uniform"


def _is_array(x: Any) -> bool:
    return is_container(x) and _kind(x) != "uniform"


def _scalar_value(x: Any) -> Any:
    return x.value if _is_uniform(x) else x


def _elem(X: Any, idx: tuple[int, ...]) -> Any:
    if _is_uniform(X):
        return X.get(*idx)
    return X.get(*idx[: len(X.shape)])


def _as_element(value: Any, T: Any) -> Any:
    if typeof(value) == T:
        return value
    return convert_element(value, T)


def _square(shape: tuple[int, ...], what: str) -> int:
    if len(shape) != 2 or shape[0] != shape[1]:
        raise DimensionMismatch(f"{what} needs a square matrix, got shape {shape}")
    return shape[0]


def promote_shape(a: tuple[int, ...], b: tuple[int, ...]) -> tuple[int, ...]:
    """Common shape of two arrays; only trailing singleton axes may differ."""
    longer, shorter = (a, b) if len(a) >= len(b) else (b, a)
    for d, size in enumerate(longer):
        other = shorter[d] if d < len(shorter) else 1
        if size != other:
            raise DimensionMismatch(f"dimensions must match: shapes {a} and {b}")
    return longer


def _product_shape(sa: tuple[int, ...], sb: tuple[int, ...]) -> tuple[int, ...]:
    if len(sa) == 2 and len(sb) == 1:
        if sa[1] != sb[0]:
            raise DimensionMismatch(f"matrix A has dimensions {sa}, vector B has length {sb[0]}")
        return (sa[0],)
    if len(sa) == 2 and len(sb) == 2:
        if sa[1] != sb[0]:
            raise DimensionMismatch(f"matrix A has dimensions {sa}, matrix B has dimensions {sb}")
        return (sa[0], sb[1])
    if len(sa) == 1 and len(sb) == 2:
        if sb[0] != 1:
            raise DimensionMismatch(f"vector A of length {sa[0]} cannot multiply matrix of dimensions {sb}")
        return (sa[0], sb[1])
    raise DimensionMismatch(f"cannot multiply shapes {sa} and {sb}")


def _sum_shape(args: tuple[Any, ...], what: str) -> tuple[int, ...] | None:
    shape: tuple[int, ...] | None = None
    for x in args:
        if _is_array(x):
            shape = x.shape if shape is None else promote_shape(shape, x.shape)
    if shape is not None and any(_is_uniform(x) for x in args):
        _square(shape, what)
    return shape


def _mul_shape(factors: tuple[Any, ...]) -> tuple[int, ...] | None:
    shape: tuple[int, ...] | None = None
    for x in factors:
        if _is_array(x):
            shape = x.shape if shape is None else _product_shape(shape, x.shape)
    return shape


def _result_shape(op: Operation, args: tuple[Any, ...]) -> tuple[int, ...] | None:
    if op in (ZERO, NEG):
        return args[0].shape
    if op is ONE:
        shape = args[0].shape
        _square(shape, "one")
        return shape
    if op in (ADD, SUB):
        return _sum_shape(args, op.name)
    if op is MUL:
        return _mul_shape(args)
    if op in (ADD_MUL, SUB_MUL):
        prod = _mul_shape(args[1:])
        target = args[0].shape if _is_array(args[0]) else None
        if target is None:
            if prod is not None and _is_uniform(args[0]):
                _square(prod, op.name)
            return prod
        if prod is None:
            if any(_is_uniform(x) for x in args[1:]):
                _square(target, op.name)
            return target
        return promote_shape(target, prod)
    return None


def _check_target_shape(C: Any, shape: tuple[int, ...] | None, what: str) -> None:
    if shape is not None and tuple(shape) != C.shape:
        raise DimensionMismatch(f"{what}: result of shape {shape} does not fit output of shape {C.shape}")


def _is_number(x: Any) -> bool:
    return isinstance(x, (int, float, complex, np.number, np.bool_))


def _fast(C: Any, *xs: Any) -> bool:
    """NumPy ufuncs can compute the update of dense ``C`` from ``xs`` directly."""
    if not config.settings.numpy_fast_path:
        return False
    if not isinstance(C, _DenseArray) or not is_bits_type(C.eltype):
        return False
    for x in xs:
        if is_container(x):
            if _is_uniform(x) or not is_bits_type(x.eltype):
                return False
        elif not _is_number(x):
            return False
    return True


def _dense(X: Any, shape: tuple[int, ...] | None = None) -> np.ndarray:
    arr = X._data if isinstance(X, _DenseArray) else X.to_numpy()
    if shape is not None and arr.shape != tuple(shape):
        arr = arr.reshape(shape)
    return arr


def _unalias(C: Any, X: Any, *, allow_identical: bool = False) -> Any:
    if not _is_array(X):
        return X
    if X is C and allow_identical:
        return X
    if engine.shares_storage(C, X):
        return X.mutable_copy()
    return X


def _element_types(xs: Any) -> list[Any]:
    return [x.eltype if is_container(x) else typeof(x) for x in xs]


# ---------------------------------------------------------------------------
# allocation


def _new_container(R: ContainerType, shape: tuple[int, ...]) -> Any:
    if R.name == "sparse":
        return SparseMatrix.empty(R.eltype, *shape)
    return zeros(R.eltype, *shape)


def _materialize(R: ContainerType, src: Any, shape: tuple[int, ...]) -> Any:
    """Fresh container of type ``R`` holding the values of ``src``."""
    T = R.eltype
    if R.name == "sparse":
        return _sparse.map_values(src, copy_if_mutable, T)
    if is_bits_type(T) and _is_array(src) and is_bits_type(src.eltype):
        data = np.array(_dense(src, shape), dtype=np.dtype(T))
    else:
        data = np.empty(shape, dtype=np.dtype(T) if is_bits_type(T) else object)
        for idx in np.ndindex(*shape):
            data[idx] = convert_element(_elem(src, idx), T)
    kind = Vector if len(shape) == 1 else Matrix
    return kind._from_storage(data, T)


def _zero_like(A: Any) -> Any:
    kind = _kind(A)
    if kind in ("vector", "matrix"):
        return zeros(A.eltype, *A.shape)
    if kind == "sparse":
        return SparseMatrix.empty(A.eltype, *A.shape)
    if kind == "uniform":
        return UniformScaling(zero_of(A.eltype))
    if kind == "symmetric":
        return Symmetric(_zero_like(A.parent), A.uplo)
    return type(A)(_zero_like(A.parent))


def _identity_dense(T: Any, n: int) -> Matrix:
    C = zeros(T, n, n)
    for i in range(n):
        C._data[i, i] = one_of(T)
    return C


def _one_like(A: Any) -> Any:
    kind = _kind(A)
    if kind == "uniform":
        return UniformScaling(one_of(A.eltype))
    n = _square(A.shape, "one")
    T = promote_operation(ONE, A.eltype)
    if kind == "sparse":
        return SparseMatrix.identity(one_of(T), n)
    if kind == "diagonal":
        return Diagonal(Vector._from_storage(_fill(T, n, one_of), T))
    if kind == "symmetric":
        return Symmetric(_one_like(A.parent), A.uplo)
    if kind in ("transpose", "adjoint"):
        return type(A)(_one_like(A.parent))
    return _identity_dense(T, n)


def _fill(T: Any, n: int, make: Callable[[Any], Any]) -> np.ndarray:
    data = new_storage(T, (n,))
    for i in range(n):
        data[i] = make(T)
    return data


def _map_structure(A: Any, f: Callable[[Any], Any], T: Any) -> Any:
    """Container of the same structure as ``A`` with ``f`` applied to every stored element."""
    kind = _kind(A)
    if kind in ("vector", "matrix"):
        data = np.empty(A.shape, dtype=np.dtype(T) if is_bits_type(T) else object)
        for idx in np.ndindex(*A.shape):
            data[idx] = _as_element(f(A._data[idx]), T)
        return type(A)._from_storage(data, T)
    if kind == "sparse":
        return _sparse.map_values(A, f, T)
    if kind == "uniform":
        return UniformScaling(f(A.value))
    if kind == "adjoint":
        return Adjoint(_map_structure(A.parent, lambda p: conj(f(conj(p))), T))
    if kind == "symmetric":
        return Symmetric(_map_structure(A.parent, f, T), A.uplo)
    return type(A)(_map_structure(A.parent, f, T))


# ---------------------------------------------------------------------------
# in-place kernels


def _zero_inplace(C: Any) -> Any:
    if isinstance(C, SparseMatrix):
        C._replace(np.zeros(C.cols() + 1, dtype=np.int64), [], [])
        return C
    C._data[...] = new_storage(C.eltype, C.shape)
    return C


def _one_inplace(C: Any) -> Any:
    n = _square(C.shape, "one")
    if isinstance(C, SparseMatrix):
        C._replace(np.arange(n + 1), np.arange(n), [one_of(C.eltype) for _ in range(n)])
        return C
    _zero_inplace(C)
    for i in range(n):
        C._data[i, i] = one_of(C.eltype)
    return C


def _neg_inplace(C: Any) -> Any:
    if isinstance(C, SparseMatrix):
        C._replace(C._colptr, C._rowval, [engine.operate_inplace(NEG, v) for v in C._nzval])
        return C
    if _fast(C):
        engine._set_trace("numpy:neg")
        np.negative(C._data, out=C._data)
        return C
    data = C._data
    for idx in np.ndindex(*C.shape):
        data[idx] = engine.operate_inplace(NEG, data[idx])
    return C


def _validate_add_sub(C: Any, B: Any, op: Operation) -> None:
    if _is_uniform(B):
        _square(C.shape, op.name)
        return
    if promote_shape(C.shape, B.shape) != C.shape:
        raise DimensionMismatch(f"{op.name}: cannot update shape {C.shape} with shape {B.shape}")


def _add_sub_into(C: Any, B: Any, op: Operation) -> Any:
    """``C = op(C, B)`` for ``op`` in (add, sub)."""
    _validate_add_sub(C, B, op)
    if _is_uniform(B):
        lam = copy_if_mutable(B.value)
        data = C._data
        for i in range(C.shape[0]):
            data[i, i] = engine.operate_inplace(op, data[i, i], lam)
        engine._set_trace(f"uniform:{op.name}")
        return C

    B = _unalias(C, B, allow_identical=True)
    if isinstance(C, SparseMatrix):
        engine._set_trace(f"sparse:{op.name}")
        return _sparse.add_sub_into(C, B, op)

    if _fast(C, B):
        engine._set_trace(f"numpy:{op.name}")
        ufunc = np.add if op is ADD else np.subtract
        ufunc(C._data, _dense(B, C.shape), out=C._data)
        return C

    data = C._data
    if isinstance(B, SparseMatrix):
        engine._set_trace(f"sparse:{op.name}")
        for i, j, v in B.nonzeros():
            idx = (i, j) if len(C.shape) == 2 else (i,)
            data[idx] = engine.operate_inplace(op, data[idx], v)
        return C

    engine._set_trace(f"elementwise:{op.name}")
    for idx in np.ndindex(*C.shape):
        data[idx] = engine.operate_inplace(op, data[idx], _elem(B, idx))
    return C


def _getter_rows(A: Any) -> Callable[[int, int], Any]:
    if isinstance(A, _DenseArray):
        data = A._data
        if data.ndim == 1:
            return lambda i, k: data[i]
        return lambda i, k: data[i, k]
    if len(A.shape) == 1:
        return lambda i, k: A.get(i)
    return A.get


def _getter_cols(B: Any) -> Callable[[int, int], Any]:
    if isinstance(B, _DenseArray):
        data = B._data
        if data.ndim == 1:
            return lambda k, j: data[k]
        return lambda k, j: data[k, j]
    if len(B.shape) == 1:
        return lambda k, j: B.get(k)
    return B.get


def _add_mul_product(C: Any, A: Any, B: Any, op: Operation) -> Any:
    """``C = op(C, A, B)`` where ``A * B`` is a matrix-vector or matrix-matrix product."""
    shape = _product_shape(A.shape, B.shape)
    _check_target_shape(C, shape, op.name)
    A = _unalias(C, A)
    B = _unalias(C, B)

    if isinstance(C, SparseMatrix):
        engine._set_trace("sparse:spgemm")
        buf = buffer_for(op, C.eltype, A.eltype, B.eltype)
        return _sparse.add_mul_sparse_into(C, A, B, op, buf)

    if _fast(C, A, B):
        engine._set_trace("numpy:matmul")
        a = _dense(A)
        b = _dense(B)
        prod = np.outer(a, b.reshape(-1)) if a.ndim == 1 else a @ b
        ufunc = np.add if op is ADD_MUL else np.subtract
        ufunc(C._data, prod, out=C._data)
        return C

    buf = buffer_for(op, C.eltype, A.eltype, B.eltype)
    step = engine.buffered_operate_inplace
    data = C._data
    if len(A.shape) == 1:
        m, K = A.shape[0], 1
    else:
        m, K = A.shape
    vector_target = len(C.shape) == 1
    n = 1 if vector_target else C.shape[1]
    ga = _getter_rows(A)
    gb = _getter_cols(B)

    if isinstance(A, SparseMatrix):
        engine._set_trace("sparse:spmm")
        for j in range(n):
            for k in range(K):
                b = gb(k, j)
                for i, a in A.column(k):
                    idx = (i,) if vector_target else (i, j)
                    data[idx] = step(buf, op, data[idx], a, b)
        return C

    if isinstance(B, SparseMatrix):
        engine._set_trace("sparse:dense_spmm")
        for j in range(n):
            for k, b in B.column(j):
                for i in range(m):
                    data[i, j] = step(buf, op, data[i, j], ga(i, k), b)
        return C

    if vector_target:
        engine._set_trace("buffered:matvec")
        for k in range(K):
            b = gb(k, 0)
            for i in range(m):
                data[i] = step(buf, op, data[i], ga(i, k), b)
        return C

    engine._set_trace("buffered:matmul")
    for i in range(m):
        for j in range(n):
            tmp = data[i, j]
            for k in range(K):
                tmp = step(buf, op, tmp, ga(i, k), gb(k, j))
            data[i, j] = tmp
    return C


def _elementwise_add_mul(C: Any, op: Operation, factors: list[Any]) -> Any:
    """``C = op(C, *factors)`` with exactly one shaped factor, multiplied elementwise."""
    pos = next(k for k, f in enumerate(factors) if _is_array(f))
    F = factors[pos]
    _validate_add_sub(C, F, op)
    F = _unalias(C, F, allow_identical=True)
    factors = list(factors)
    factors[pos] = F

    if isinstance(C, SparseMatrix):
        scaled = engine.operate(MUL, *factors)
        engine._set_trace(f"sparse:{op.name}")
        return _sparse.add_sub_into(C, scaled, add_sub_op(op))

    # scalar factors may be elements of C
    values = [f if k == pos else copy_if_mutable(_scalar_value(f)) for k, f in enumerate(factors)]
    if _fast(C, *values):
        engine._set_trace(f"numpy:{op.name}")
        prod = _dense(F, C.shape)
        for k, v in enumerate(values):
            if k != pos:
                prod = np.multiply(prod, v)
        ufunc = np.add if op is ADD_MUL else np.subtract
        ufunc(C._data, prod, out=C._data)
        return C

    engine._set_trace(f"buffered:{op.name}")
    buf = buffer_for(op, C.eltype, *_element_types(values))
    data = C._data
    for idx in np.ndindex(*C.shape):
        row = list(values)
        row[pos] = _elem(F, idx)
        data[idx] = engine.buffered_operate_inplace(buf, op, data[idx], *row)
    return C


def _add_mul_inplace(C: Any, op: Operation, factors: list[Any]) -> Any:
    arrays = [f for f in factors if _is_array(f)]
    if len(factors) > 2 and len(arrays) >= 2:
        folded = engine.operate(MUL, *factors[1:])
        return _add_mul_inplace(C, op, [factors[0], folded])
    if len(arrays) == 2:
        return _add_mul_product(C, arrays[0], arrays[1], op)
    if len(arrays) == 1:
        return _elementwise_add_mul(C, op, factors)

    lam = engine.operate(MUL, *[_scalar_value(f) for f in factors])
    return _add_sub_into(C, UniformScaling(lam), add_sub_op(op))


def _mul_inplace(C: Any, args: tuple[Any, ...]) -> Any:
    if all(not _is_array(a) for a in args):
        values = [copy_if_mutable(_scalar_value(a)) for a in args]
        if isinstance(C, SparseMatrix):
            C._replace(C._colptr, C._rowval, [engine.operate_inplace(MUL, v, *values) for v in C._nzval])
            return C
        if _fast(C, *values):
            engine._set_trace("numpy:scale")
            for v in values:
                np.multiply(C._data, v, out=C._data)
            return C
        engine._set_trace("elementwise:scale")
        data = C._data
        for idx in np.ndindex(*C.shape):
            data[idx] = engine.operate_inplace(MUL, data[idx], *values)
        return C

    tmp = engine.operate(MUL, C, *args)
    _check_target_shape(C, tmp.shape, "mul")
    return _assign(C, tmp)


def _write_element(c: Any, op: Operation, values: list[Any], T: Any) -> Any:
    """New value for a slot currently holding ``c``, reusing ``c`` when it is mutable."""
    if is_mutable(c):
        R = promote_operation(op, *[typeof(v) for v in values])
        if engine.can_hold(typeof(c), R):
            return to_primitive(c, op, *values)
    return _as_element(engine.operate(op, *values), T)


def _assign(C: Any, src: Any) -> Any:
    """Overwrite the values of ``C`` with those of ``src`` (same shape)."""
    T = C.eltype
    if isinstance(C, SparseMatrix):
        if not isinstance(src, SparseMatrix):
            src = SparseMatrix.from_dense(src, T)
        C._replace(src._colptr.copy(), src._rowval.copy(), [convert_element(v, T) for v in src._nzval])
        return C
    if _fast(C, src):
        C._data[...] = _dense(src, C.shape)
        return C
    data = C._data
    for idx in np.ndindex(*C.shape):
        data[idx] = _write_element(data[idx], ADD, [_elem(src, idx)], T)
    return C


# ---------------------------------------------------------------------------
# entry points


def operate(op: Operation, *args: Any) -> Any:
    if op is ZERO:
        engine._set_trace("container:zero")
        return _zero_like(args[0])
    if op is ONE:
        promote_operation(ONE, typeof(args[0]))
        engine._set_trace("container:one")
        return _one_like(args[0])
    if op is SUM:
        if not _is_array(args[0]):
            raise TypeError("sum needs a shaped container")
        return engine.fused_map_reduce(ADD, args[0])
    if op in (ADD, MUL) and len(args) == 1:
        return copy_if_mutable(args[0])

    R = promote_operation(op, *[typeof(a) for a in args])

    if op is NEG:
        (A,) = args
        if _kind(A) in ("vector", "matrix", "sparse"):
            C = _materialize(R, A, A.shape)
            return _neg_inplace(C)
        return _map_structure(A, lambda e: engine.operate(NEG, e), R.eltype)
    if op in (ADD, SUB):
        return _add_sub_new(op, args, R)
    if op is MUL:
        return _mul_new(args, R)
    if op in (ADD_MUL, SUB_MUL):
        return _add_mul_new(op, args, R)
    if op is DOT:
        A, B = args
        if A.shape != B.shape:
            raise DimensionMismatch(f"dot: shapes {A.shape} and {B.shape}")
        return engine.fused_map_reduce(ADD_DOT, A, B)
    if op is ADD_DOT:
        a, b, c = args
        return engine.operate(ADD, a, engine.operate(DOT, b, c))
    raise TypeError(f"unsupported operation {op.name}")


def _add_sub_new(op: Operation, args: tuple[Any, ...], R: Any) -> Any:
    if len(args) > 2:
        _sum_shape(args, op.name)
        acc = engine.operate(op, args[0], args[1])
        for x in args[2:]:
            acc = engine.operate(op, acc, x)
        return acc

    A, B = args
    if R.name == "uniform":
        return UniformScaling(engine.operate(op, A.value, B.value))
    shape = _sum_shape(args, op.name)
    C = _materialize(R, A, shape)
    return _add_sub_into(C, B, op)


def _mul_new(args: tuple[Any, ...], R: Any) -> Any:
    positions = [k for k, a in enumerate(args) if _is_array(a)]
    if not positions:
        return UniformScaling(engine.operate(MUL, *[_scalar_value(a) for a in args]))
    if len(positions) == 1:
        pos = positions[0]
        values = [_scalar_value(a) for a in args]
        A = args[pos]
        if isinstance(A, _DenseArray) and is_bits_type(R.eltype) and _fast(A, *values[:pos], *values[pos + 1 :]):
            engine._set_trace("numpy:scale")
            data = np.array(A._data, dtype=np.dtype(R.eltype))
            for k, v in enumerate(values):
                if k != pos:
                    np.multiply(data, v, out=data)
            return type(A)._from_storage(data, R.eltype)

        def _scaled(e: Any) -> Any:
            row = list(values)
            row[pos] = e
            return engine.operate(MUL, *row)

        engine._set_trace("container:scale")
        return _map_structure(A, _scaled, R.eltype)

    if len(args) > 2:
        acc = engine.operate(MUL, args[0], args[1])
        for x in args[2:]:
            acc = engine.operate(MUL, acc, x)
        return acc

    A, B = args
    if not isinstance(R, ContainerType):
        if A.shape[1] != B.shape[0]:
            raise DimensionMismatch(f"row vector of length {A.shape[1]} times vector of length {B.shape[0]}")
        reduction = ADD_DOT if _kind(A) == "adjoint" else ADD_MUL
        return engine.fused_map_reduce(reduction, A.parent, B)

    shape = _product_shape(A.shape, B.shape)
    if is_row_vector_type(R):
        row = zeros(R.eltype, 1, shape[1])
        _add_mul_product(row, A, B, ADD_MUL)
        values = row._data[0].copy()
        if R.name == "adjoint":
            return Adjoint(Vector._from_storage(np.array([conj(v) for v in values], dtype=values.dtype), R.eltype))
        return Transpose(Vector._from_storage(values, R.eltype))

    C = _new_container(R, shape)
    return _add_mul_product(C, A, B, ADD_MUL)


def _add_mul_new(op: Operation, args: tuple[Any, ...], R: Any) -> Any:
    shape = _result_shape(op, args)
    if not isinstance(R, ContainerType) or R.name not in ("vector", "matrix", "sparse"):
        return engine.operate(add_sub_op(op), args[0], engine.operate(MUL, *args[1:]))
    C = _materialize(R, args[0], shape)
    return _add_mul_inplace(C, op, list(args[1:]))


def operate_inplace(op: Operation, C: Any, *args: Any) -> Any:
    if op is ZERO:
        return _zero_inplace(C)
    if op is ONE:
        return _one_inplace(C)
    if op is NEG:
        return _neg_inplace(C)
    if op in (ADD, SUB):
        for B in args:
            _validate_add_sub(C, B, op)
        for B in args:
            _add_sub_into(C, B, op)
        return C
    if op is MUL:
        if not args:
            return C
        return _mul_inplace(C, args)
    if op in (ADD_MUL, SUB_MUL):
        _check_target_shape(C, _result_shape(op, (C, *args)), op.name)
        return _add_mul_inplace(C, op, list(args))
    raise TypeError(f"{op.name} cannot update {C.value_type()!r} in place")


def operate_to(C: Any, op: Operation, *args: Any) -> Any:
    shape = _result_shape(op, args)
    _check_target_shape(C, shape, op.name)

    if isinstance(C, SparseMatrix):
        result = operate(op, *args)
        return _assign(C, result)

    if op is ZERO:
        return _zero_inplace(C)
    if op is ONE:
        return _one_inplace(C)
    if op is NEG:
        _assign(C, args[0])
        return _neg_inplace(C)
    if op in (ADD, SUB):
        if len(args) == 1:
            return _assign(C, args[0])
        for B in args[1:]:
            _validate_add_sub(C, B, op)
        _assign(C, args[0])
        for B in args[1:]:
            _add_sub_into(C, B, op)
        return C
    if op is MUL:
        positions = [k for k, a in enumerate(args) if _is_array(a)]
        if len(positions) == 2 and len(args) == 2:
            _zero_inplace(C)
            return _add_mul_product(C, args[0], args[1], ADD_MUL)
        if len(positions) == 1:
            pos = positions[0]
            values = [_scalar_value(a) for a in args]
            src = args[pos]
            data = C._data
            engine._set_trace("elementwise:scale_to")
            for idx in np.ndindex(*C.shape):
                row = list(values)
                row[pos] = _elem(src, idx)
                data[idx] = _write_element(data[idx], MUL, row, C.eltype)
            return C
        return _assign(C, operate(MUL, *args))
    if op in (ADD_MUL, SUB_MUL):
        _assign(C, args[0])
        return _add_mul_inplace(C, op, list(args[1:]))
    raise TypeError(f"{op.name} cannot write into {C.value_type()!r}")
