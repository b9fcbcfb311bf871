"""Blob storage for persisted preview images."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Tuple


class BlobStorage(ABC):
    """Stores byte buffers under a filename and serves them at a public URL."""

    @abstractmethod
    async def upload(self, filename: str, data: bytes, content_type: str) -> str:
        """Store (or overwrite) a file and return its public URL."""

    @abstractmethod
    async def delete(self, filenames: List[str]) -> Tuple[int, int]:
        """Delete files; returns (deleted, failed)."""


class FilesystemBlobStorage(BlobStorage):
    """Blob storage in a local directory, served under a base URL."""

    def __init__(self, root: Path, public_base_url: str) -> None:
        self.root = root
        self.public_base_url = public_base_url.rstrip("/") + "/"

    def _path(self, filename: str) -> Path:
        name = Path(filename).name
        if not name or name != filename:
            raise ValueError(f"Invalid blob filename: {filename!r}")
        return self.root / name

    async def upload(self, filename: str, data: bytes, content_type: str) -> str:
        path = self._path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return self.public_base_url + filename

    async def delete(self, filenames: List[str]) -> Tuple[int, int]:
        deleted = failed = 0
        for filename in filenames:
            try:
                self._path(filename).unlink()
                deleted += 1
            except (OSError, ValueError):
                failed += 1
        return deleted, failed
