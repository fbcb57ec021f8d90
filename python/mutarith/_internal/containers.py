"""Containers whose elements are arbitrary algebraic values.

``Vector`` and ``Matrix`` own their elements and store them in a NumPy array:
native dtype for fixed-size NumPy number classes, ``object`` otherwise.
``Transpose``, ``Adjoint``, ``Symmetric`` and ``Diagonal`` are read-only views
over a parent container; ``UniformScaling`` is a shapeless ``λ*I``.

Arithmetic goes through the operate engine, so ``A += B`` reuses ``A`` when
its element type can hold the result.
"""

from __future__ import annotations

from typing import Any, Iterator

import numpy as np

from .coercion import coerce_matrix_rows, coerce_vector_items
from .errors import DimensionMismatch
from .formatting import ContainerFormatMixin
from .mutability import copy_if_mutable
from .operations import ADD, MUL, NEG, SUB, Operation
from .types import (
    ContainerType,
    conj,
    is_bits_type,
    is_container,
    normalize_eltype,
    storage_dtype,
    type_name,
    typeof,
    zero_of,
)


def _infer_eltype(values: list[Any]) -> Any:
    if not values:
        return float
    seen: list[Any] = []
    for v in values:
        T = typeof(v)
        if T not in seen:
            seen.append(T)
    if len(seen) == 1:
        return seen[0]
    names = ", ".join(type_name(T) for T in seen)
    raise TypeError(f"mixed element types ({names}); pass eltype= explicitly")


def convert_element(value: Any, T: Any) -> Any:
    """Owned copy of ``value`` as an element of type ``T``; conversions must be exact."""
    if typeof(value) == T:
        return copy_if_mutable(value)
    if isinstance(T, ContainerType) or is_container(value):
        raise TypeError(f"cannot store {type_name(typeof(value))} in a container of {type_name(T)}")
    try:
        converted = T(value)
    except (TypeError, ValueError) as exc:
        raise TypeError(f"cannot convert {type_name(typeof(value))} to {type_name(T)}") from exc
    try:
        inexact = value == value and not converted == value
    except TypeError:
        inexact = False
    if inexact:
        raise TypeError(f"{value!r} cannot be represented exactly as {type_name(T)}")
    return converted


def new_storage(T: Any, shape: tuple[int, ...]) -> np.ndarray:
    """Storage of ``shape`` filled with fresh additive identities of ``T``."""
    if is_bits_type(T):
        return np.zeros(shape, dtype=storage_dtype(T))
    data = np.empty(shape, dtype=object)
    for idx in np.ndindex(*shape):
        data[idx] = zero_of(T)
    return data


def _storage_from_items(items: list[Any], T: Any, shape: tuple[int, ...]) -> np.ndarray:
    if is_bits_type(T):
        out = np.empty(shape, dtype=storage_dtype(T))
        if items:
            src = np.asarray(items).reshape(shape)
            out[...] = src.astype(out.dtype, casting="same_kind")
        return out
    out = np.empty(shape, dtype=object)
    for idx, value in zip(np.ndindex(*shape), items):
        out[idx] = convert_element(value, T)
    return out


def _copy_storage(data: np.ndarray) -> np.ndarray:
    if data.dtype != object:
        return data.copy()
    out = np.empty(data.shape, dtype=object)
    for idx in np.ndindex(*data.shape):
        out[idx] = copy_if_mutable(data[idx])
    return out


def _scalar_like(x: Any) -> bool:
    return not is_container(x) or x.value_type().name == "uniform"


class AbstractContainer(ContainerFormatMixin):
    _mutarith_container = True
    _mutable_container = False
    _kind_name = ""

    # NumPy scalars defer to the reflected operators below.
    __array_ufunc__ = None
    __hash__ = None  # type: ignore[assignment]

    def __class_getitem__(cls, item: Any) -> ContainerType:
        return ContainerType(cls, normalize_eltype(item))

    def value_type(self) -> ContainerType:
        raise NotImplementedError

    @property
    def eltype(self) -> Any:
        return self.value_type().eltype

    @property
    def shape(self) -> tuple[int, ...]:
        raise NotImplementedError

    @property
    def ndim(self) -> int:
        return len(self.shape)

    def get(self, *index: int) -> Any:
        raise NotImplementedError

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, tuple):
            return self.get(*(int(i) for i in index))
        return self.get(int(index))

    def __len__(self) -> int:
        return self.shape[0]

    def __iter__(self) -> Iterator[Any]:
        return self._iter_dense()

    def _iter_dense(self) -> Iterator[Any]:
        for idx in np.ndindex(*self.shape):
            yield self.get(*idx)

    def _iter_elements(self) -> Iterator[Any]:
        return self._iter_dense()

    def _storage_arrays(self) -> list[np.ndarray]:
        return []

    def to_numpy(self) -> np.ndarray:
        out = np.empty(self.shape, dtype=storage_dtype(self.eltype))
        for idx in np.ndindex(*self.shape):
            out[idx] = self.get(*idx)
        return out

    def __array__(self, dtype: Any = None, copy: Any = None) -> np.ndarray:
        arr = self.to_numpy()
        return arr if dtype is None else arr.astype(dtype)

    @property
    def T(self) -> Any:
        return Transpose(self)

    @property
    def H(self) -> Any:
        return Adjoint(self)

    def mutable_copy(self) -> Any:
        raise NotImplementedError

    def copy(self) -> Any:
        return self.mutable_copy()

    # operate protocol

    def _operate_inplace(self, op: Operation, *args: Any) -> Any:
        from . import linear_algebra

        return linear_algebra.operate_inplace(op, self, *args)

    def _operate_to(self, op: Operation, *args: Any) -> Any:
        from . import linear_algebra

        return linear_algebra.operate_to(self, op, *args)

    def _buffered_operate_inplace(self, buffer: Any, op: Operation, *args: Any) -> Any:
        return self._operate_inplace(op, *args)

    # Python operators

    def __add__(self, other: Any) -> Any:
        from .engine import operate

        return operate(ADD, self, other)

    def __radd__(self, other: Any) -> Any:
        from .engine import operate

        return operate(ADD, other, self)

    def __sub__(self, other: Any) -> Any:
        from .engine import operate

        return operate(SUB, self, other)

    def __rsub__(self, other: Any) -> Any:
        from .engine import operate

        return operate(SUB, other, self)

    def __neg__(self) -> Any:
        from .engine import operate

        return operate(NEG, self)

    def __mul__(self, other: Any) -> Any:
        if not (_scalar_like(self) or _scalar_like(other)):
            return NotImplemented
        from .engine import operate

        return operate(MUL, self, other)

    def __rmul__(self, other: Any) -> Any:
        if not (_scalar_like(self) or _scalar_like(other)):
            return NotImplemented
        from .engine import operate

        return operate(MUL, other, self)

    def __matmul__(self, other: Any) -> Any:
        if not is_container(other):
            return NotImplemented
        from .engine import operate

        return operate(MUL, self, other)

    def __rmatmul__(self, other: Any) -> Any:
        if not is_container(other):
            return NotImplemented
        from .engine import operate

        return operate(MUL, other, self)

    def __iadd__(self, other: Any) -> Any:
        from .engine import operate_inplace

        return operate_inplace(ADD, self, other)

    def __isub__(self, other: Any) -> Any:
        from .engine import operate_inplace

        return operate_inplace(SUB, self, other)

    def __imul__(self, other: Any) -> Any:
        if not _scalar_like(other):
            return NotImplemented
        from .engine import operate_inplace

        return operate_inplace(MUL, self, other)

    def __eq__(self, other: Any) -> Any:
        if not is_container(other):
            return NotImplemented
        from .equality import isequal_canonical

        return isequal_canonical(self, other)


class _DenseArray(AbstractContainer):
    _mutable_container = True
    _data: np.ndarray
    _eltype: Any

    @classmethod
    def _from_storage(cls, data: np.ndarray, eltype: Any) -> Any:
        obj = cls.__new__(cls)
        obj._data = data
        obj._eltype = eltype
        return obj

    def value_type(self) -> ContainerType:
        return ContainerType(type(self), self._eltype)

    @property
    def shape(self) -> tuple[int, ...]:
        return tuple(int(d) for d in self._data.shape)

    def get(self, *index: int) -> Any:
        if len(index) != self._data.ndim:
            raise IndexError(f"{type(self).__name__} expects {self._data.ndim} index(es), got {len(index)}")
        return self._data[index]

    def __setitem__(self, index: Any, value: Any) -> None:
        if not isinstance(index, tuple):
            index = (index,)
        if len(index) != self._data.ndim:
            raise IndexError(f"{type(self).__name__} expects {self._data.ndim} index(es), got {len(index)}")
        index = tuple(int(i) for i in index)
        if self._data.dtype == object:
            self._data[index] = convert_element(value, self._eltype)
        else:
            self._data[index] = value

    def _storage_arrays(self) -> list[np.ndarray]:
        return [self._data]

    def to_numpy(self) -> np.ndarray:
        return self._data.copy()

    def mutable_copy(self) -> Any:
        return type(self)._from_storage(_copy_storage(self._data), self._eltype)


class Vector(_DenseArray):
    """Dense one-dimensional container."""

    _kind_name = "vector"

    def __init__(self, data: Any = (), eltype: Any = None) -> None:
        T = normalize_eltype(eltype)
        if isinstance(data, np.ndarray) and data.dtype != object and (T is None or is_bits_type(T)):
            if data.ndim != 1:
                raise ValueError(f"Vector input must be 1D, got shape {data.shape}.")
            T = data.dtype.type if T is None else T
            self._data = data.astype(storage_dtype(T), casting="same_kind", copy=True)
        else:
            items = coerce_vector_items(data)
            if T is None:
                T = _infer_eltype(items)
            self._data = _storage_from_items(items, T, (len(items),))
        self._eltype = T


class Matrix(_DenseArray):
    """Dense two-dimensional container."""

    _kind_name = "matrix"

    def __init__(self, data: Any = (), eltype: Any = None) -> None:
        T = normalize_eltype(eltype)
        if isinstance(data, np.ndarray) and data.dtype != object and (T is None or is_bits_type(T)):
            if data.ndim != 2:
                raise ValueError(f"Matrix input must be 2D, got shape {data.shape}.")
            T = data.dtype.type if T is None else T
            self._data = data.astype(storage_dtype(T), casting="same_kind", copy=True)
        else:
            rows, cols, values = coerce_matrix_rows(data)
            items = [v for row in values for v in row]
            if T is None:
                T = _infer_eltype(items)
            self._data = _storage_from_items(items, T, (rows, cols))
        self._eltype = T

    def rows(self) -> int:
        return int(self._data.shape[0])

    def cols(self) -> int:
        return int(self._data.shape[1])


class _View(AbstractContainer):
    parent: Any

    def __class_getitem__(cls, item: Any) -> ContainerType:
        if not isinstance(item, ContainerType):
            raise TypeError(f"{cls.__name__}[...] expects a container type, got {item!r}")
        return ContainerType(cls, item.eltype, item)

    def value_type(self) -> ContainerType:
        pt = self.parent.value_type()
        return ContainerType(type(self), pt.eltype, pt)

    def _storage_arrays(self) -> list[np.ndarray]:
        return self.parent._storage_arrays()


class Transpose(_View):
    """Transposed view; a transposed ``Vector`` is a 1 x n row."""

    _kind_name = "transpose"

    def __init__(self, parent: Any) -> None:
        if not is_container(parent) or parent.value_type().name == "uniform":
            raise TypeError(f"{type(self).__name__} expects a shaped container")
        self.parent = parent

    def _map(self, x: Any) -> Any:
        return x

    @property
    def shape(self) -> tuple[int, ...]:
        p = self.parent.shape
        if len(p) == 1:
            return (1, p[0])
        return (p[1], p[0])

    def get(self, *index: int) -> Any:
        i, j = index
        if self.parent.ndim == 1:
            if i != 0:
                raise IndexError(f"row index {i} out of range for a 1 x n view")
            return self._map(self.parent.get(j))
        return self._map(self.parent.get(j, i))

    @property
    def T(self) -> Any:
        return self.parent

    def mutable_copy(self) -> Any:
        return type(self)(self.parent.mutable_copy())


class Adjoint(Transpose):
    """Conjugate-transposed view."""

    _kind_name = "adjoint"

    def _map(self, x: Any) -> Any:
        return conj(x)

    @property
    def T(self) -> Any:
        return Transpose(self)

    @property
    def H(self) -> Any:
        return self.parent


class Symmetric(_View):
    """Symmetric view reading one triangle (``uplo`` "U" or "L") of a square parent."""

    _kind_name = "symmetric"

    def __init__(self, parent: Any, uplo: str = "U") -> None:
        if not is_container(parent) or parent.value_type().ndim != 2:
            raise TypeError("Symmetric expects a matrix")
        rows, cols = parent.shape
        if rows != cols:
            raise DimensionMismatch(f"Symmetric expects a square matrix, got shape {parent.shape}")
        uplo = str(uplo).upper()
        if uplo not in ("U", "L"):
            raise ValueError("uplo must be 'U' or 'L'")
        self.parent = parent
        self.uplo = uplo

    @property
    def shape(self) -> tuple[int, ...]:
        return self.parent.shape

    def get(self, *index: int) -> Any:
        i, j = index
        upper = i <= j
        if upper == (self.uplo == "U"):
            return self.parent.get(i, j)
        return self.parent.get(j, i)

    @property
    def T(self) -> Any:
        return self

    def mutable_copy(self) -> Any:
        return Symmetric(self.parent.mutable_copy(), self.uplo)


class Diagonal(_View):
    """n x n matrix view with the entries of a vector on its diagonal."""

    _kind_name = "diagonal"

    def __init__(self, diag: Any) -> None:
        if not is_container(diag):
            diag = Vector(diag)
        if diag.value_type().name != "vector":
            raise TypeError("Diagonal expects a vector")
        self.parent = diag

    @property
    def shape(self) -> tuple[int, ...]:
        n = self.parent.shape[0]
        return (n, n)

    def get(self, *index: int) -> Any:
        i, j = index
        n = self.parent.shape[0]
        if not (0 <= i < n and 0 <= j < n):
            raise IndexError(f"index ({i}, {j}) out of range for shape {self.shape}")
        if i == j:
            return self.parent.get(i)
        return zero_of(self.parent.eltype)

    @property
    def T(self) -> Any:
        return self

    def mutable_copy(self) -> Any:
        return Diagonal(self.parent.mutable_copy())


class UniformScaling(AbstractContainer):
    """``value * I`` for an identity of whatever size the other operand has."""

    _kind_name = "uniform"

    def __init__(self, value: Any = 1) -> None:
        self.value = value

    def value_type(self) -> ContainerType:
        return ContainerType(UniformScaling, typeof(self.value))

    @property
    def shape(self) -> Any:
        return None

    def __len__(self) -> int:
        raise TypeError("UniformScaling has no length")

    def get(self, *index: int) -> Any:
        i, j = index
        if i == j:
            return self.value
        return zero_of(typeof(self.value))

    @property
    def T(self) -> Any:
        return self

    @property
    def H(self) -> Any:
        return UniformScaling(conj(self.value))

    def mutable_copy(self) -> Any:
        return UniformScaling(copy_if_mutable(self.value))

    def to_numpy(self) -> np.ndarray:
        raise TypeError("UniformScaling has no shape")

    def __str__(self) -> str:
        return f"UniformScaling({self.value})"

    def __repr__(self) -> str:
        return f"UniformScaling({self.value!r})"


I = UniformScaling(1)


def vector(data: Any, eltype: Any = None) -> Vector:
    return Vector(data, eltype=eltype)


def matrix(data: Any, eltype: Any = None) -> Matrix:
    return Matrix(data, eltype=eltype)


def zeros(eltype: Any, *shape: int) -> Any:
    """Vector (one dimension) or Matrix (two) of fresh additive identities."""
    T = normalize_eltype(eltype)
    if len(shape) == 1 and isinstance(shape[0], tuple):
        shape = shape[0]
    dims = tuple(int(d) for d in shape)
    if any(d < 0 for d in dims):
        raise ValueError(f"negative dimension in {dims}")
    if len(dims) == 1:
        return Vector._from_storage(new_storage(T, dims), T)
    if len(dims) == 2:
        return Matrix._from_storage(new_storage(T, dims), T)
    raise ValueError(f"zeros supports one or two dimensions, got {len(dims)}")
