from __future__ import annotations

import numbers
from dataclasses import dataclass
from fractions import Fraction
from typing import Any

import numpy as np


@dataclass(frozen=True)
class ContainerType:
    """Static descriptor of a container value.

    ``kind`` is the container class, ``eltype`` the element type descriptor and
    ``parent`` the descriptor of the wrapped container for views.
    """

    kind: type
    eltype: Any
    parent: "ContainerType | None" = None

    @property
    def name(self) -> str:
        return self.kind._kind_name

    @property
    def ndim(self) -> int | None:
        if self.name == "uniform":
            return None
        if self.name == "vector":
            return 1
        return 2

    def __repr__(self) -> str:
        if self.parent is not None:
            return f"{self.kind.__name__}[{self.parent!r}]"
        return f"{self.kind.__name__}[{type_name(self.eltype)}]"


def type_name(T: Any) -> str:
    if isinstance(T, ContainerType):
        return repr(T)
    if isinstance(T, type):
        if T.__module__ == "numpy":
            return f"numpy.{T.__name__}"
        return T.__name__
    return repr(T)


def is_container(x: Any) -> bool:
    return bool(getattr(type(x), "_mutarith_container", False))


def is_container_type(T: Any) -> bool:
    return isinstance(T, ContainerType)


def typeof(x: Any) -> Any:
    """Type descriptor of a value: a class for scalars, a ``ContainerType`` otherwise."""
    if is_container(x):
        return x.value_type()
    return type(x)


def eltype(T: Any) -> Any:
    if is_container(T):
        T = typeof(T)
    if isinstance(T, ContainerType):
        return T.eltype
    return T


def is_vector_type(T: Any) -> bool:
    return isinstance(T, ContainerType) and T.name == "vector"


def is_row_vector_type(T: Any) -> bool:
    return (
        isinstance(T, ContainerType)
        and T.name in ("transpose", "adjoint")
        and T.parent is not None
        and T.parent.name == "vector"
    )


def is_uniform_type(T: Any) -> bool:
    return isinstance(T, ContainerType) and T.name == "uniform"


def is_array_type(T: Any) -> bool:
    """Containers with a concrete shape (everything but ``UniformScaling``)."""
    return isinstance(T, ContainerType) and T.name != "uniform"


def is_bits_type(T: Any) -> bool:
    """Fixed-size NumPy number classes, stored natively in NumPy arrays."""
    return isinstance(T, type) and issubclass(T, (np.number, np.bool_))


def storage_dtype(T: Any) -> Any:
    if is_bits_type(T):
        return np.dtype(T)
    return np.dtype(object)


def _identity(T: Any, value: int, hook: str) -> Any:
    if isinstance(T, ContainerType):
        raise TypeError(f"{hook} of {T!r} needs a shape; use operate({hook}, x) on a value")
    if not isinstance(T, type):
        raise TypeError(f"{T!r} is not a type")
    fn = getattr(T, hook, None)
    if callable(fn):
        return fn()
    if issubclass(T, (numbers.Number, np.number, np.bool_)):
        return T(value)
    raise TypeError(f"no known {hook} for {type_name(T)}")


def zero_of(T: Any) -> Any:
    """Fresh additive identity of scalar type ``T``."""
    return _identity(T, 0, "zero")


def one_of(T: Any) -> Any:
    """Fresh multiplicative identity of scalar type ``T``."""
    return _identity(T, 1, "one")


def conj(x: Any) -> Any:
    fn = getattr(x, "conjugate", None)
    if callable(fn):
        return fn()
    return x


def normalize_eltype(eltype: Any) -> Any:
    """Normalize user-provided element type tokens into a type descriptor.

    Accepted inputs include:
    - Classes (``int``, ``Fraction``, ``numpy.int64``, user types)
    - ``ContainerType`` descriptors (containers of containers)
    - NumPy dtypes: ``numpy.dtype("float32")``
    - Case-insensitive strings: "int", "float", "int64", "f64", "fraction", ...
    """
    if eltype is None:
        return None
    if isinstance(eltype, (type, ContainerType)):
        return eltype
    if isinstance(eltype, np.dtype):
        if eltype.kind == "O":
            raise TypeError("object dtype does not name an element type")
        return eltype.type
    if isinstance(eltype, str):
        s = eltype.strip().lower()
        found = _ELTYPE_TOKENS.get(s)
        if found is not None:
            return found
        try:
            return normalize_eltype(np.dtype(s))
        except TypeError:
            pass
        raise TypeError(f"unknown element type {eltype!r}")
    raise TypeError(f"unknown element type {eltype!r}")


_ELTYPE_TOKENS: dict[str, Any] = {
    "int": int,
    "float": float,
    "complex": complex,
    "bool": bool,
    "fraction": Fraction,
    "i8": np.int8,
    "i16": np.int16,
    "i32": np.int32,
    "i64": np.int64,
    "u8": np.uint8,
    "u16": np.uint16,
    "u32": np.uint32,
    "u64": np.uint64,
    "f16": np.float16,
    "f32": np.float32,
    "f64": np.float64,
    "c64": np.complex64,
    "c128": np.complex128,
}
