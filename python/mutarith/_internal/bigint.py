"""Mutable arbitrary-precision integer.

Arithmetic operators allocate a new ``BigInt``; the operate hooks overwrite
the value in place, and multiply-accumulate steps can stage the product in a
caller-provided buffer so a loop of ``add_mul`` steps allocates nothing new.
"""

from __future__ import annotations

import functools
from typing import Any

import numpy as np

from .mutability import AbstractMutable
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

_INT_TYPES = (int, np.integer)


def _as_int(value: Any) -> int:
    if isinstance(value, BigInt):
        return value._value
    if isinstance(value, (bool, np.bool_)):
        return int(value)
    if isinstance(value, _INT_TYPES):
        return int(value)
    raise TypeError(f"BigInt cannot combine with {type(value).__name__}")


def _coerce(value: Any) -> int | None:
    try:
        return _as_int(value)
    except TypeError:
        return None


def _int_like_type(T: Any) -> bool:
    return isinstance(T, type) and issubclass(T, (BigInt, int, np.integer, np.bool_))


def _all_int_like(args: tuple[Any, ...]) -> bool:
    return all(_coerce(a) is not None for a in args)


def _evaluate(op: Operation, *args: Any) -> Any:
    # container operands (dot, sum, ...) reduce through the engine
    from .engine import operate

    return operate(op, *args)


def _product(values: list[int]) -> int:
    out = 1
    for v in values:
        out *= v
    return out


@functools.total_ordering
class BigInt(AbstractMutable):
    __slots__ = ("_value",)

    # NumPy scalars defer to the reflected operators below.
    __array_ufunc__ = None

    def __init__(self, value: Any = 0) -> None:
        if isinstance(value, str):
            self._value = int(value)
        else:
            self._value = _as_int(value)

    @classmethod
    def zero(cls) -> "BigInt":
        return cls(0)

    @classmethod
    def one(cls) -> "BigInt":
        return cls(1)

    @property
    def value(self) -> int:
        return self._value

    def __int__(self) -> int:
        return self._value

    def __repr__(self) -> str:
        return f"BigInt({self._value})"

    def __str__(self) -> str:
        return str(self._value)

    def __bool__(self) -> bool:
        return self._value != 0

    def __eq__(self, other: Any) -> Any:
        v = _coerce(other)
        if v is None:
            return NotImplemented
        return self._value == v

    def __lt__(self, other: Any) -> Any:
        v = _coerce(other)
        if v is None:
            return NotImplemented
        return self._value < v

    __hash__ = None  # type: ignore[assignment]

    def __add__(self, other: Any) -> Any:
        v = _coerce(other)
        if v is None:
            return NotImplemented
        return BigInt(self._value + v)

    def __radd__(self, other: Any) -> Any:
        return self.__add__(other)

    def __sub__(self, other: Any) -> Any:
        v = _coerce(other)
        if v is None:
            return NotImplemented
        return BigInt(self._value - v)

    def __rsub__(self, other: Any) -> Any:
        v = _coerce(other)
        if v is None:
            return NotImplemented
        return BigInt(v - self._value)

    def __mul__(self, other: Any) -> Any:
        v = _coerce(other)
        if v is None:
            return NotImplemented
        return BigInt(self._value * v)

    def __rmul__(self, other: Any) -> Any:
        return self.__mul__(other)

    def __neg__(self) -> "BigInt":
        return BigInt(-self._value)

    def __pos__(self) -> "BigInt":
        return BigInt(self._value)

    def __abs__(self) -> "BigInt":
        return BigInt(abs(self._value))

    def conjugate(self) -> "BigInt":
        return self

    def iszero_inplace(self) -> bool:
        return self._value == 0

    def mutable_copy(self) -> "BigInt":
        return BigInt(self._value)

    def _assign(self, value: Any) -> "BigInt":
        self._value = _as_int(value)
        return self

    @classmethod
    def _promote_operation(cls, op: Operation, *types: Any) -> Any:
        if all(_int_like_type(T) for T in types) and any(
            isinstance(T, type) and issubclass(T, BigInt) for T in types
        ):
            return BigInt
        return NotImplemented

    @classmethod
    def buffer_type(cls, op: Operation, *types: Any) -> Any:
        if op in (ADD_MUL, SUB_MUL, ADD_DOT) and len(types) >= 3 and all(_int_like_type(T) for T in types):
            return BigInt
        return None

    def _operate_inplace(self, op: Operation, *args: Any) -> "BigInt":
        if not _all_int_like(args):
            return self._assign(_evaluate(op, self, *args))
        vals = [_as_int(a) for a in args]
        v = self._value
        if op is ZERO:
            v = 0
        elif op is ONE:
            v = 1
        elif op is NEG:
            v = -v
        elif op is ADD:
            v = v + sum(vals)
        elif op is SUB:
            v = v - vals[0]
        elif op in (MUL, DOT):
            v = v * _product(vals)
        elif op is ADD_MUL:
            v = v + _product(vals)
        elif op is SUB_MUL:
            v = v - _product(vals)
        elif op is ADD_DOT:
            v = v + vals[0] * vals[1]
        elif op is not SUM:
            raise TypeError(f"unsupported operation {op.name}")
        self._value = v
        return self

    def _operate_to(self, op: Operation, *args: Any) -> "BigInt":
        if not _all_int_like(args):
            return self._assign(_evaluate(op, *args))
        vals = [_as_int(a) for a in args]
        if op is ZERO:
            v = 0
        elif op is ONE:
            v = 1
        elif op is NEG:
            v = -vals[0]
        elif op is ADD:
            v = sum(vals)
        elif op is SUB:
            v = vals[0] - vals[1]
        elif op in (MUL, DOT):
            v = _product(vals)
        elif op is ADD_MUL:
            v = vals[0] + _product(vals[1:])
        elif op is SUB_MUL:
            v = vals[0] - _product(vals[1:])
        elif op is ADD_DOT:
            v = vals[0] + vals[1] * vals[2]
        elif op is SUM:
            v = vals[0]
        else:
            raise TypeError(f"unsupported operation {op.name}")
        self._value = v
        return self

    def _buffered_operate_inplace(self, buffer: Any, op: Operation, *args: Any) -> "BigInt":
        if isinstance(buffer, BigInt):
            if op in (ADD_MUL, SUB_MUL) and len(args) >= 2:
                buffer._operate_to(MUL, *args)
                return self._operate_inplace(add_sub_op(op), buffer)
            if op is ADD_DOT:
                buffer._operate_to(DOT, *args)
                return self._operate_inplace(ADD, buffer)
        return self._operate_inplace(op, *args)
