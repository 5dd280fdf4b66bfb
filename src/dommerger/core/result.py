"""
Merge Outcome Types

Every merge run ends in exactly one MergeResult: either a success carrying the
warnings accumulated along the way, or a failure carrying a code and a
human-readable reason. Warnings never abort a merge.

Result types:
    S (Success) - merged mod written
    E (Error)   - nothing written; see code and message

Code format: MERGE-SUBSYSTEM-TYPE-NNN
    Subsystems: OK, PARSE, ALLOC, WRITE, CONFIG, INPUT
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Literal, Optional, Tuple


ResultType = Literal["S", "E"]


class MergeError(Exception):
    """Base class for every failure raised by the merge pipeline."""


class WarningCategory(Enum):
    """Kinds of non-fatal findings reported alongside a merge."""
    CONFLICT = "conflict"        # several mods edit the same vanilla content
    VALIDATION = "validation"    # ids outside the modding range, bad config values
    CONTENT = "content"          # unclosed blocks, odd line sequences
    RESOURCE = "resource"        # icon or other referenced files


@dataclass(frozen=True)
class MergeWarning:
    """A single non-fatal finding."""
    category: WarningCategory
    message: str
    mods: Tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "mods": list(self.mods),
        }

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def conflict(cls, message: str, mods: Tuple[str, ...] = ()) -> MergeWarning:
        return cls(WarningCategory.CONFLICT, message, tuple(mods))

    @classmethod
    def validation(cls, message: str, mods: Tuple[str, ...] = ()) -> MergeWarning:
        return cls(WarningCategory.VALIDATION, message, tuple(mods))

    @classmethod
    def content(cls, message: str, mods: Tuple[str, ...] = ()) -> MergeWarning:
        return cls(WarningCategory.CONTENT, message, tuple(mods))

    @classmethod
    def resource(cls, message: str, mods: Tuple[str, ...] = ()) -> MergeWarning:
        return cls(WarningCategory.RESOURCE, message, tuple(mods))


@dataclass(frozen=True)
class MergeResult:
    """
    Outcome of a merge run.

    This is a frozen (immutable) dataclass. Use factory methods to create instances.
    """
    result_type: ResultType
    code: str
    message: str
    warnings: Tuple[MergeWarning, ...] = ()
    output_path: Optional[Path] = None
    data: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict."""
        return {
            "result_type": self.result_type,
            "code": self.code,
            "message": self.message,
            "warnings": [w.to_dict() for w in self.warnings],
            "output_path": str(self.output_path) if self.output_path else None,
            "data": self.data,
        }

    # =========================================================================
    # Factory Methods
    # =========================================================================

    @classmethod
    def success(
        cls,
        message: str,
        warnings: List[MergeWarning],
        output_path: Optional[Path] = None,
        data: Optional[Dict[str, Any]] = None,
        code: str = "MERGE-OK-S-001",
    ) -> MergeResult:
        """Create a Success result."""
        return cls(
            result_type="S",
            code=code,
            message=message,
            warnings=tuple(warnings),
            output_path=output_path,
            data=data or {},
        )

    @classmethod
    def failure(
        cls,
        code: str,
        message: str,
        warnings: Optional[List[MergeWarning]] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> MergeResult:
        """Create an Error result. Nothing has been written."""
        return cls(
            result_type="E",
            code=code,
            message=message,
            warnings=tuple(warnings or ()),
            data=data or {},
        )

    # =========================================================================
    # Predicates
    # =========================================================================

    @property
    def is_success(self) -> bool:
        return self.result_type == "S"

    @property
    def is_failure(self) -> bool:
        return self.result_type == "E"

    def warnings_of(self, category: WarningCategory) -> List[MergeWarning]:
        return [w for w in self.warnings if w.category is category]
