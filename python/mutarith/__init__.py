"""Generic mutable arithmetic: operate on values in place when their types allow it."""
from __future__ import annotations

try:
    from ._version import version as __version__
except ImportError:
    __version__ = "unknown"

from ._internal import config as _config
from ._internal.config import configure
from ._internal.errors import (
    DimensionMismatch,
    ImmutableValueError,
    IncompatibleOutputError,
    MutArithError,
    UnknownResultTypeError,
)
from ._internal.warnings import (
    MutArithPerformanceWarning,
    MutArithPromotionWarning,
    MutArithWarning,
)
from ._internal.operations import (
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
    normalize_operation,
)
from ._internal.types import ContainerType, eltype, one_of, typeof, zero_of
from ._internal.mutability import (
    AbstractMutable,
    Mutability,
    copy_if_mutable,
    is_mutable,
    mutability,
    mutable_copy,
    register_mutable,
)
from ._internal.promotion import (
    clear_promotion_cache,
    promote_operation,
    register_promotion,
    similar_container_type,
)
from ._internal.buffers import buffer_for, buffer_type
from ._internal.engine import (
    _debug_clear_dispatch_trace,
    _debug_last_dispatch_trace,
    buffered_operate_inplace,
    can_hold,
    fused_map_reduce,
    mutable_operate,
    operate,
    operate_inplace,
    operate_to,
)
from ._internal.containers import (
    Adjoint,
    Diagonal,
    I,
    Matrix,
    Symmetric,
    Transpose,
    UniformScaling,
    Vector,
    matrix,
    vector,
    zeros,
)
from ._internal.sparse import SparseMatrix, sparse
from ._internal.linear_algebra import promote_shape
from ._internal.equality import isequal_canonical, iszero_inplace
from ._internal.bigint import BigInt

# Operation singletons under their protocol names. ``sum`` is left off
# ``__all__`` so star imports do not shadow the builtin.
zero = ZERO
one = ONE
neg = NEG
add = ADD
sub = SUB
mul = MUL
add_mul = ADD_MUL
sub_mul = SUB_MUL
dot = DOT
add_dot = ADD_DOT
sum = SUM


def settings() -> _config.Settings:
    """Current process-wide settings (read-only view; use ``configure`` to change)."""
    return _config.settings


__all__ = [
    "__version__",
    # operations
    "Operation",
    "normalize_operation",
    "zero",
    "one",
    "neg",
    "add",
    "sub",
    "mul",
    "add_mul",
    "sub_mul",
    "dot",
    "add_dot",
    # engine
    "operate",
    "operate_inplace",
    "mutable_operate",
    "operate_to",
    "buffered_operate_inplace",
    "fused_map_reduce",
    "can_hold",
    # promotion and buffers
    "promote_operation",
    "register_promotion",
    "clear_promotion_cache",
    "similar_container_type",
    "promote_shape",
    "buffer_type",
    "buffer_for",
    # mutability
    "Mutability",
    "AbstractMutable",
    "mutability",
    "is_mutable",
    "register_mutable",
    "mutable_copy",
    "copy_if_mutable",
    # types
    "ContainerType",
    "typeof",
    "eltype",
    "zero_of",
    "one_of",
    # containers
    "Vector",
    "Matrix",
    "SparseMatrix",
    "Transpose",
    "Adjoint",
    "Symmetric",
    "Diagonal",
    "UniformScaling",
    "I",
    "vector",
    "matrix",
    "zeros",
    "sparse",
    # equality
    "isequal_canonical",
    "iszero_inplace",
    "BigInt",
    # errors and warnings
    "MutArithError",
    "DimensionMismatch",
    "UnknownResultTypeError",
    "IncompatibleOutputError",
    "ImmutableValueError",
    "MutArithWarning",
    "MutArithPerformanceWarning",
    "MutArithPromotionWarning",
    # configuration
    "configure",
    "settings",
]
