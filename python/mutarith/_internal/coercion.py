from __future__ import annotations

from collections.abc import Sequence as _SequenceABC
from typing import Any

import numpy as np


def is_sequence_like(value: Any) -> bool:
    return isinstance(value, _SequenceABC) and not isinstance(value, (str, bytes, bytearray))


def _shape_of(candidate: Any) -> tuple[int, ...] | None:
    shape = getattr(candidate, "shape", None)
    if isinstance(shape, tuple) and callable(getattr(candidate, "get", None)):
        return shape
    return None


def coerce_vector_items(candidate: Any) -> list[Any]:
    shape = _shape_of(candidate)
    if shape is not None:
        if len(shape) != 1:
            raise ValueError(f"Vector input must be 1D, got shape {shape}.")
        return [candidate.get(i) for i in range(shape[0])]

    if isinstance(candidate, np.ndarray):
        if candidate.ndim != 1:
            raise ValueError(f"Vector input must be 1D, got shape {candidate.shape}.")
        return list(candidate)

    if not is_sequence_like(candidate):
        raise TypeError("Vector data must be provided as a sequence or a 1D NumPy array.")
    return list(candidate)


def coerce_matrix_rows(candidate: Any) -> tuple[int, int, list[list[Any]]]:
    shape = _shape_of(candidate)
    if shape is not None:
        if len(shape) != 2:
            raise ValueError(f"Matrix input must be 2D, got shape {shape}.")
        rows, cols = shape
        return rows, cols, [[candidate.get(i, j) for j in range(cols)] for i in range(rows)]

    if isinstance(candidate, np.ndarray):
        if candidate.ndim != 2:
            raise ValueError(f"Matrix input must be 2D, got shape {candidate.shape}.")
        rows, cols = candidate.shape
        return int(rows), int(cols), [list(candidate[i]) for i in range(rows)]

    if not is_sequence_like(candidate):
        raise TypeError("Matrix data must be provided as a nested sequence or a 2D NumPy array.")
    data = [row for row in candidate]
    if not data:
        return 0, 0, []
    for row in data:
        if not is_sequence_like(row):
            raise TypeError("Each matrix row must be a sequence of entries.")
    cols = len(data[0])
    if any(len(row) != cols for row in data):
        raise ValueError("Matrix data must be rectangular (all rows the same length).")
    return len(data), cols, [list(row) for row in data]
