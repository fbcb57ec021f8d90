"""Exception types raised by the operate protocol.

All of them derive from both ``MutArithError`` and the builtin exception a
caller would naturally catch (``ValueError`` for shapes, ``TypeError`` for
types), so existing ``except ValueError`` blocks keep working.
"""

from __future__ import annotations


class MutArithError(Exception):
    """Base class for mutarith errors."""


class DimensionMismatch(MutArithError, ValueError):
    """Operand shapes are incompatible for the requested operation.

    Always raised before any element of any operand is written.
    """


class UnknownResultTypeError(MutArithError, TypeError):
    """No result type is known for an operation/type combination."""


class IncompatibleOutputError(MutArithError, TypeError):
    """``operate_to`` was given an output that cannot hold the result."""


class ImmutableValueError(MutArithError, TypeError):
    """Strict in-place operation requested on a value that cannot be mutated."""
