from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SelectedImage:
    """Image chosen for analysis; immutable for the lifetime of a request."""

    data: bytes
    filename: str = "upload.jpg"
    content_type: str = "application/octet-stream"

    @classmethod
    def from_path(cls, path: Path) -> "SelectedImage":
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            data=path.read_bytes(),
            filename=path.name,
            content_type=guessed or "application/octet-stream",
        )

    def __len__(self) -> int:
        return len(self.data)


__all__ = ["SelectedImage"]
