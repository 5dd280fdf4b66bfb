"""
Mod Sources

A ModSource is a mod's full text plus the stable name used to order and
identify it. Loading from disk lives here so the merge core only ever sees
text.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


MOD_EXTENSION = ".dm"


@dataclass(frozen=True)
class ModSource:
    """One mod to merge."""
    name: str
    text: str
    path: Optional[Path] = None

    @classmethod
    def from_text(cls, name: str, text: str) -> "ModSource":
        return cls(name=name, text=text)

    @classmethod
    def from_file(cls, path: Path) -> "ModSource":
        """
        Load a .dm file. The mod name is the file name without extension.

        Tries encodings in order: utf-8-sig, utf-8, latin-1.
        """
        path = Path(path)
        if path.suffix.lower() != MOD_EXTENSION:
            raise ValueError(f"Not a mod file (expected {MOD_EXTENSION}): {path}")

        content = None
        for encoding in ["utf-8-sig", "utf-8", "latin-1"]:
            try:
                content = path.read_text(encoding=encoding)
                break
            except UnicodeDecodeError:
                continue

        if content is None:
            raise ValueError(f"Could not decode file: {path}")

        return cls(name=path.stem, text=content, path=path)
