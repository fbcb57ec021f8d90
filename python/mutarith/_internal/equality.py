from __future__ import annotations

from typing import Any

import numpy as np

from .types import is_container, typeof, zero_of


_WRAPPER_KINDS = ("transpose", "adjoint", "diagonal")


def isequal_canonical(a: Any, b: Any) -> bool:
    """Equality after bringing both values to a canonical form.

    A value may define ``isequal_canonical(other)`` to take over. Wrappers of
    the same kind compare their parents, except ``Symmetric`` whose unread
    triangle is ignored; other containers compare shape and then elements;
    scalars fall back to ``==``.
    """
    fn = getattr(a, "isequal_canonical", None)
    if callable(fn):
        return bool(fn(b))

    if not (is_container(a) or is_container(b)):
        return bool(a == b)
    if not (is_container(a) and is_container(b)):
        return False

    ka = a.value_type().name
    kb = b.value_type().name
    if ka == "uniform" or kb == "uniform":
        return ka == kb and isequal_canonical(a.value, b.value)
    if ka == kb and ka in _WRAPPER_KINDS:
        return isequal_canonical(a.parent, b.parent)
    if a.shape != b.shape:
        return False
    for idx in np.ndindex(*a.shape):
        if not isequal_canonical(a.get(*idx), b.get(*idx)):
            return False
    return True


def iszero_inplace(x: Any) -> bool:
    """Whether ``x`` is zero; ``x`` may canonicalize itself while checking."""
    fn = getattr(x, "iszero_inplace", None)
    if callable(fn):
        return bool(fn())
    if is_container(x):
        if x.value_type().name == "uniform":
            return iszero_inplace(x.value)
        return all(iszero_inplace(v) for v in x._iter_elements())
    return bool(x == zero_of(typeof(x)))
