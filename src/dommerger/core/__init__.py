"""Cross-cutting primitives: merge outcome and warning types."""

from dommerger.core.result import (
    MergeError,
    MergeResult,
    MergeWarning,
    WarningCategory,
)

__all__ = [
    "MergeError",
    "MergeResult",
    "MergeWarning",
    "WarningCategory",
]
