"""Compressed sparse column matrices.

Column ``j`` holds the entries ``rowval[colptr[j]:colptr[j+1]]`` (strictly
increasing row indices) with values ``nzval[colptr[j]:colptr[j+1]]``.
"""

from __future__ import annotations

from typing import Any, Iterator

import numpy as np

from .containers import AbstractContainer, Matrix, _infer_eltype, convert_element, new_storage
from .errors import DimensionMismatch
from .mutability import copy_if_mutable
from .operations import ADD, NEG, SUB, Operation
from .types import ContainerType, is_bits_type, normalize_eltype, storage_dtype, typeof, zero_of


def pack_values(values: list[Any], T: Any) -> np.ndarray:
    """Storage for already-converted, owned values."""
    if is_bits_type(T):
        return np.array(values, dtype=storage_dtype(T)).reshape(len(values))
    out = np.empty(len(values), dtype=object)
    for k, v in enumerate(values):
        out[k] = v
    return out


def _as_element(value: Any, T: Any) -> Any:
    if typeof(value) == T:
        return value
    return convert_element(value, T)


class SparseMatrix(AbstractContainer):
    """Sparse matrix in compressed sparse column form."""

    _kind_name = "sparse"
    _mutable_container = True

    def __init__(
        self,
        m: int,
        n: int,
        colptr: Any,
        rowval: Any,
        nzval: Any,
        eltype: Any = None,
    ) -> None:
        m, n = int(m), int(n)
        if m < 0 or n < 0:
            raise ValueError(f"negative dimension in ({m}, {n})")
        colptr_arr = np.asarray(colptr, dtype=np.int64).copy()
        rowval_arr = np.asarray(rowval, dtype=np.int64).reshape(-1).copy()
        values = list(nzval)
        if colptr_arr.shape != (n + 1,):
            raise ValueError(f"colptr must have {n + 1} entries, got {colptr_arr.shape[0]}")
        if colptr_arr[0] != 0 or np.any(np.diff(colptr_arr) < 0):
            raise ValueError("colptr must start at 0 and be non-decreasing")
        if int(colptr_arr[-1]) != rowval_arr.shape[0] or rowval_arr.shape[0] != len(values):
            raise ValueError("colptr, rowval and nzval lengths are inconsistent")
        for j in range(n):
            rows = rowval_arr[colptr_arr[j] : colptr_arr[j + 1]]
            if rows.size and (rows[0] < 0 or rows[-1] >= m or np.any(np.diff(rows) <= 0)):
                raise ValueError(f"row indices of column {j} must be increasing and within [0, {m})")

        T = normalize_eltype(eltype)
        if T is None:
            T = _infer_eltype(values)
        self._m = m
        self._n = n
        self._colptr = colptr_arr
        self._rowval = rowval_arr
        self._nzval = pack_values([convert_element(v, T) for v in values], T)
        self._eltype = T

    @classmethod
    def _from_parts(
        cls,
        m: int,
        n: int,
        colptr: np.ndarray,
        rowval: np.ndarray,
        nzval: np.ndarray,
        eltype: Any,
    ) -> "SparseMatrix":
        obj = cls.__new__(cls)
        obj._m = int(m)
        obj._n = int(n)
        obj._colptr = colptr
        obj._rowval = rowval
        obj._nzval = nzval
        obj._eltype = eltype
        return obj

    @classmethod
    def empty(cls, eltype: Any, m: int, n: int) -> "SparseMatrix":
        T = normalize_eltype(eltype)
        return cls._from_parts(
            m,
            n,
            np.zeros(int(n) + 1, dtype=np.int64),
            np.zeros(0, dtype=np.int64),
            pack_values([], T),
            T,
        )

    @classmethod
    def identity(cls, value: Any, n: int) -> "SparseMatrix":
        """n x n sparse matrix with fresh copies of ``value`` on the diagonal."""
        T = typeof(value)
        n = int(n)
        return cls._from_parts(
            n,
            n,
            np.arange(n + 1, dtype=np.int64),
            np.arange(n, dtype=np.int64),
            pack_values([copy_if_mutable(value) for _ in range(n)], T),
            T,
        )

    @classmethod
    def from_dense(cls, A: Any, eltype: Any = None) -> "SparseMatrix":
        """Sparse copy of a 2D container or nested sequence, dropping zeros."""
        from .equality import iszero_inplace

        if not getattr(type(A), "_mutarith_container", False):
            A = Matrix(A, eltype=eltype)
        if len(A.shape) != 2:
            raise ValueError(f"from_dense expects a 2D container, got shape {A.shape}")
        T = normalize_eltype(eltype) or A.eltype
        m, n = A.shape
        colptr = [0]
        rowval: list[int] = []
        values: list[Any] = []
        for j in range(n):
            for i in range(m):
                v = convert_element(A.get(i, j), T)
                if not iszero_inplace(v):
                    rowval.append(i)
                    values.append(v)
            colptr.append(len(rowval))
        return cls._from_parts(
            m,
            n,
            np.asarray(colptr, dtype=np.int64),
            np.asarray(rowval, dtype=np.int64),
            pack_values(values, T),
            T,
        )

    def value_type(self) -> ContainerType:
        return ContainerType(SparseMatrix, self._eltype)

    @property
    def shape(self) -> tuple[int, ...]:
        return (self._m, self._n)

    @property
    def nnz(self) -> int:
        return int(self._colptr[-1])

    def rows(self) -> int:
        return self._m

    def cols(self) -> int:
        return self._n

    def _find(self, i: int, j: int) -> int:
        if not (0 <= i < self._m and 0 <= j < self._n):
            raise IndexError(f"index ({i}, {j}) out of range for shape {self.shape}")
        lo, hi = int(self._colptr[j]), int(self._colptr[j + 1])
        pos = lo + int(np.searchsorted(self._rowval[lo:hi], i))
        if pos < hi and self._rowval[pos] == i:
            return pos
        return -1

    def get(self, *index: int) -> Any:
        i, j = index
        pos = self._find(i, j)
        if pos < 0:
            return zero_of(self._eltype)
        return self._nzval[pos]

    def __setitem__(self, index: Any, value: Any) -> None:
        i, j = (int(k) for k in index)
        value = convert_element(value, self._eltype)
        pos = self._find(i, j)
        if pos >= 0:
            self._nzval[pos] = value
            return
        lo, hi = int(self._colptr[j]), int(self._colptr[j + 1])
        at = lo + int(np.searchsorted(self._rowval[lo:hi], i))
        values = list(self._nzval)
        values.insert(at, value)
        self._rowval = np.insert(self._rowval, at, i)
        self._nzval = pack_values(values, self._eltype)
        self._colptr[j + 1 :] += 1

    def column(self, j: int) -> Iterator[tuple[int, Any]]:
        lo, hi = int(self._colptr[j]), int(self._colptr[j + 1])
        for pos in range(lo, hi):
            yield int(self._rowval[pos]), self._nzval[pos]

    def nonzeros(self) -> Iterator[tuple[int, int, Any]]:
        for j in range(self._n):
            for i, v in self.column(j):
                yield i, j, v

    def _iter_elements(self) -> Iterator[Any]:
        return iter(list(self._nzval))

    def _storage_arrays(self) -> list[np.ndarray]:
        return [self._colptr, self._rowval, self._nzval]

    def _replace(self, colptr: Any, rowval: Any, values: list[Any]) -> None:
        self._colptr = np.asarray(colptr, dtype=np.int64)
        self._rowval = np.asarray(rowval, dtype=np.int64)
        self._nzval = pack_values(values, self._eltype)

    def mutable_copy(self) -> "SparseMatrix":
        return SparseMatrix._from_parts(
            self._m,
            self._n,
            self._colptr.copy(),
            self._rowval.copy(),
            pack_values([copy_if_mutable(v) for v in self._nzval], self._eltype),
            self._eltype,
        )

    def to_dense(self) -> Matrix:
        data = new_storage(self._eltype, (self._m, self._n))
        for i, j, v in self.nonzeros():
            data[i, j] = copy_if_mutable(v)
        return Matrix._from_storage(data, self._eltype)

    def to_numpy(self) -> np.ndarray:
        return self.to_dense()._data


def sparse(
    I: Any,
    J: Any,
    V: Any,
    m: int | None = None,
    n: int | None = None,
    eltype: Any = None,
) -> SparseMatrix:
    """Build a sparse matrix from coordinate lists; duplicate entries are summed."""
    from .engine import operate_inplace

    rows = [int(i) for i in I]
    cols = [int(j) for j in J]
    values = list(V)
    if not (len(rows) == len(cols) == len(values)):
        raise DimensionMismatch("I, J and V must have the same length")
    m = (max(rows) + 1 if rows else 0) if m is None else int(m)
    n = (max(cols) + 1 if cols else 0) if n is None else int(n)
    for i, j in zip(rows, cols):
        if not (0 <= i < m and 0 <= j < n):
            raise IndexError(f"entry ({i}, {j}) out of range for shape ({m}, {n})")
    T = normalize_eltype(eltype)
    if T is None:
        T = _infer_eltype(values)

    entries: dict[tuple[int, int], Any] = {}
    for i, j, v in zip(rows, cols, values):
        key = (j, i)
        if key in entries:
            entries[key] = _as_element(operate_inplace(ADD, entries[key], v), T)
        else:
            entries[key] = convert_element(v, T)

    colptr = np.zeros(n + 1, dtype=np.int64)
    rowval: list[int] = []
    ordered: list[Any] = []
    for (j, i) in sorted(entries):
        colptr[j + 1] += 1
        rowval.append(i)
        ordered.append(entries[(j, i)])
    np.cumsum(colptr, out=colptr)
    return SparseMatrix._from_parts(m, n, colptr, np.asarray(rowval, dtype=np.int64), pack_values(ordered, T), T)


def add_sub_into(C: SparseMatrix, B: SparseMatrix, op: Operation) -> SparseMatrix:
    """``C = op(C, B)`` over the union of both patterns."""
    from .engine import operate, operate_inplace

    if C.shape != B.shape:
        raise DimensionMismatch(f"sparse {op.name}: shapes {C.shape} and {B.shape}")
    T = C._eltype
    b_cols = [list(B.column(j)) for j in range(B._n)]
    colptr = [0]
    rowval: list[int] = []
    values: list[Any] = []
    for j in range(C._n):
        c_col = list(C.column(j))
        b_col = b_cols[j]
        p = q = 0
        while p < len(c_col) or q < len(b_col):
            ci = c_col[p][0] if p < len(c_col) else None
            bi = b_col[q][0] if q < len(b_col) else None
            if bi is None or (ci is not None and ci < bi):
                rowval.append(ci)
                values.append(c_col[p][1])
                p += 1
            elif ci is None or bi < ci:
                b = b_col[q][1]
                rowval.append(bi)
                values.append(_as_element(operate(NEG, b), T) if op is SUB else convert_element(b, T))
                q += 1
            else:
                rowval.append(ci)
                values.append(_as_element(operate_inplace(op, c_col[p][1], b_col[q][1]), T))
                p += 1
                q += 1
        colptr.append(len(rowval))
    C._replace(colptr, rowval, values)
    return C


def map_values(A: SparseMatrix, f: Any, T: Any) -> SparseMatrix:
    """Same pattern as ``A`` with ``f`` applied to every stored value."""
    return SparseMatrix._from_parts(
        A._m,
        A._n,
        A._colptr.copy(),
        A._rowval.copy(),
        pack_values([_as_element(f(v), T) for v in A._nzval], T),
        T,
    )


def add_mul_sparse_into(C: SparseMatrix, A: SparseMatrix, B: SparseMatrix, op: Operation, buffer: Any) -> SparseMatrix:
    """``C = op(C, A, B)`` for sparse ``A`` and ``B``, accumulating column by column."""
    from .engine import buffered_operate_inplace

    T = C._eltype
    colptr = [0]
    rowval: list[int] = []
    values: list[Any] = []
    for j in range(C._n):
        acc: dict[int, Any] = {i: v for i, v in C.column(j)}
        for k, b in B.column(j):
            for i, a in A.column(k):
                current = acc[i] if i in acc else zero_of(T)
                acc[i] = _as_element(buffered_operate_inplace(buffer, op, current, a, b), T)
        for i in sorted(acc):
            rowval.append(i)
            values.append(acc[i])
        colptr.append(len(rowval))
    C._replace(colptr, rowval, values)
    return C

