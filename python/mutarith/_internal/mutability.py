from __future__ import annotations

import enum
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable

from .errors import ImmutableValueError, UnknownResultTypeError
from .operations import ADD, ZERO, Operation, normalize_operation
from .types import ContainerType, is_container, type_name, typeof


class Mutability(enum.Enum):
    MUTABLE = "mutable"
    IMMUTABLE = "immutable"


class AbstractMutable(ABC):
    """Base class for scalar types whose values can be overwritten in place.

    Subclasses implement ``mutable_copy`` and ``_operate_inplace``; the other
    hooks have generic defaults built on top of those two.
    """

    @abstractmethod
    def mutable_copy(self) -> Any:
        """Copy that shares no mutable state with ``self``."""

    @abstractmethod
    def _operate_inplace(self, op: Operation, *args: Any) -> Any:
        """Overwrite ``self`` with ``op(self, *args)`` and return ``self``."""

    def _operate_to(self, op: Operation, *args: Any) -> Any:
        """Overwrite ``self`` with ``op(*args)`` and return ``self``."""
        from .engine import operate

        result = operate(op, *args)
        self._operate_inplace(ZERO)
        return self._operate_inplace(ADD, result)

    def _buffered_operate_inplace(self, buffer: Any, op: Operation, *args: Any) -> Any:
        return self._operate_inplace(op, *args)

    @classmethod
    def zero(cls) -> Any:
        raise TypeError(f"{cls.__name__} does not define zero()")

    @classmethod
    def one(cls) -> Any:
        raise TypeError(f"{cls.__name__} does not define one()")

    @classmethod
    def buffer_type(cls, op: Operation, *types: Any) -> Any:
        return None

    @classmethod
    def _promote_operation(cls, op: Operation, *types: Any) -> Any:
        return NotImplemented


@dataclass(frozen=True)
class _MutableHooks:
    copy: Callable[[Any], Any]
    operate_inplace: Callable[..., Any]
    operate_to: Callable[..., Any] | None = None


_REGISTRY: dict[type, _MutableHooks] = {}


def register_mutable(
    cls: type,
    *,
    copy: Callable[[Any], Any],
    operate_inplace: Callable[..., Any],
    operate_to: Callable[..., Any] | None = None,
) -> type:
    """Declare ``cls`` mutable without subclassing ``AbstractMutable``.

    ``operate_inplace(x, op, *args)`` must overwrite ``x`` with
    ``op(x, *args)``; ``operate_to(x, op, *args)`` (optional) overwrites ``x``
    with ``op(*args)``. Both may return ``None`` to mean ``x``.
    """
    if not isinstance(cls, type):
        raise TypeError("register_mutable expects a class")
    if not callable(copy) or not callable(operate_inplace):
        raise TypeError("copy and operate_inplace must be callable")
    if operate_to is not None and not callable(operate_to):
        raise TypeError("operate_to must be callable")
    _REGISTRY[cls] = _MutableHooks(copy, operate_inplace, operate_to)
    return cls


def _hooks_for(T: type) -> _MutableHooks | None:
    for klass in T.__mro__:
        hooks = _REGISTRY.get(klass)
        if hooks is not None:
            return hooks
    return None


def _is_mutable_type(T: Any) -> bool:
    if isinstance(T, ContainerType):
        return bool(getattr(T.kind, "_mutable_container", False))
    if not isinstance(T, type):
        return False
    if issubclass(T, AbstractMutable):
        return True
    return _hooks_for(T) is not None


def mutability(T: Any, op: Any = None, *arg_types: Any) -> Mutability:
    """Mutability trait of type descriptor ``T``.

    With an operation, ``MUTABLE`` additionally requires that ``T`` can hold
    ``promote_operation(op, T, *arg_types)``.
    """
    if not _is_mutable_type(T):
        return Mutability.IMMUTABLE
    if op is None:
        return Mutability.MUTABLE

    from .promotion import promote_operation

    try:
        result = promote_operation(normalize_operation(op), T, *arg_types)
    except UnknownResultTypeError:
        return Mutability.IMMUTABLE
    return Mutability.MUTABLE if result == T else Mutability.IMMUTABLE


def is_mutable(x: Any) -> bool:
    return mutability(typeof(x)) is Mutability.MUTABLE


def mutable_copy(x: Any) -> Any:
    if is_container(x) or isinstance(x, AbstractMutable):
        return x.mutable_copy()
    hooks = _hooks_for(type(x))
    if hooks is not None:
        return hooks.copy(x)
    return x


def copy_if_mutable(x: Any) -> Any:
    if is_container(x):
        return x.mutable_copy()
    if is_mutable(x):
        return mutable_copy(x)
    return x


def _uses_methods(x: Any) -> bool:
    return is_container(x) or isinstance(x, AbstractMutable)


def _require_hooks(x: Any) -> _MutableHooks:
    hooks = _hooks_for(type(x))
    if hooks is None:
        raise ImmutableValueError(f"values of type {type_name(typeof(x))} cannot be mutated")
    return hooks


def inplace_primitive(x: Any, op: Operation, *args: Any) -> Any:
    if _uses_methods(x):
        return x._operate_inplace(op, *args)
    out = _require_hooks(x).operate_inplace(x, op, *args)
    return x if out is None else out


def to_primitive(x: Any, op: Operation, *args: Any) -> Any:
    if _uses_methods(x):
        return x._operate_to(op, *args)
    hooks = _require_hooks(x)
    if hooks.operate_to is not None:
        out = hooks.operate_to(x, op, *args)
        return x if out is None else out

    from .engine import operate

    result = operate(op, *args)
    x = inplace_primitive(x, ZERO)
    return inplace_primitive(x, ADD, result)


def buffered_primitive(x: Any, buffer: Any, op: Operation, *args: Any) -> Any:
    if _uses_methods(x):
        return x._buffered_operate_inplace(buffer, op, *args)
    return inplace_primitive(x, op, *args)
