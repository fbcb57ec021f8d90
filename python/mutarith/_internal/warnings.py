"""mutarith warning categories.

These exist so users can filter/suppress mutarith warnings without
catching all UserWarning.

Keep this module lightweight and dependency-free to avoid import cycles.
"""


class MutArithWarning(UserWarning):
    """Base warning category for all mutarith user-facing warnings."""


class MutArithPerformanceWarning(MutArithWarning):
    """Warnings about likely performance pitfalls (e.g., in-place requests that allocate)."""


class MutArithPromotionWarning(MutArithWarning):
    """Warnings about element conversions when writing into a pre-allocated output."""
