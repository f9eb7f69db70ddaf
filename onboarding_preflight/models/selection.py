"""Files selected by the user for the upload test."""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True, kw_only=True)
class SelectedFile:
    """A local file chosen for upload."""

    name: str
    size: int
    path: Path | None = None

    @classmethod
    def from_path(cls, path: Path) -> "SelectedFile":
        """Describe a file on disk."""
        return cls(name=path.name, size=path.stat().st_size, path=path)
