"""
Byte storage for the encoded account list.

AccountStore only needs ``read() -> bytes | None`` and ``write(bytes)``;
``None`` from ``read`` means nothing has been stored yet.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from .errors import StorageError


class Storage(Protocol):
    def read(self) -> Optional[bytes]: ...

    def write(self, data: bytes) -> None: ...


class FileStorage:
    def __init__(self, path: str | Path, atomic: bool = True):
        self.path = Path(path)
        self.atomic = atomic

    def __repr__(self) -> str:
        return f"FileStorage({str(self.path)!r}, atomic={self.atomic})"

    def read(self) -> Optional[bytes]:
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"could not read {self.path}: {e}") from e

    def write(self, data: bytes) -> None:
        try:
            if self.atomic:
                self._write_atomic(data)
            else:
                with open(self.path, "wb") as f:
                    f.write(data)
        except OSError as e:
            raise StorageError(f"could not write {self.path}: {e}") from e

    def _write_atomic(self, data: bytes) -> None:
        # write a sibling temp file, then swap it in
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}-", suffix=".tmp", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            # mkstemp creates 0600; keep the permissions the file already has
            if self.path.exists():
                shutil.copymode(self.path, tmp_path)
            os.replace(tmp_path, self.path)
        finally:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)


class MemoryStorage:
    """In-memory stand-in for FileStorage."""

    def __init__(self, data: Optional[bytes] = None):
        self.data = data
        self.writes = 0

    def read(self) -> Optional[bytes]:
        return self.data

    def write(self, data: bytes) -> None:
        self.data = bytes(data)
        self.writes += 1
