"""Content store — flat directory of PNG files addressed by content hash."""

from __future__ import annotations

import hashlib
import logging
import re
from pathlib import Path

from webcompare.errors import ImageIOError

logger = logging.getLogger(__name__)

_REF_PATTERN = re.compile(r"^[0-9a-f]{64}\.png$")


class ContentStore:
    """Write-once image bytes keyed by the SHA-256 of their content."""

    def __init__(self, root: Path):
        self.root = root

    @staticmethod
    def ref_for(data: bytes) -> str:
        return f"{hashlib.sha256(data).hexdigest()}.png"

    def path_for(self, ref: str) -> Path:
        """Return the on-disk path for a reference, rejecting anything that is not a store ref."""
        if not _REF_PATTERN.match(ref):
            raise ImageIOError(f"Invalid image reference: {ref!r}", ref=ref)
        return self.root / ref

    def exists(self, ref: str) -> bool:
        return self.path_for(ref).exists()

    def write(self, data: bytes) -> str:
        if not data:
            raise ImageIOError("Refusing to store empty image data")
        ref = self.ref_for(data)
        path = self.path_for(ref)
        if path.exists():
            logger.debug("Content %s already stored", ref)
            return ref
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_bytes(data)
            tmp.replace(path)
        except OSError as e:
            raise ImageIOError(f"Failed to write image {ref}: {e}", ref=ref) from e
        logger.debug("Stored %d bytes as %s", len(data), ref)
        return ref

    def read(self, ref: str) -> bytes:
        path = self.path_for(ref)
        if not path.exists():
            raise ImageIOError(f"Image not found: {ref}", ref=ref)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise ImageIOError(f"Failed to read image {ref}: {e}", ref=ref) from e
        if not data:
            raise ImageIOError(f"Image is empty or corrupted: {ref}", ref=ref)
        return data

    def delete(self, ref: str) -> None:
        path = self.path_for(ref)
        try:
            path.unlink()
            logger.debug("Deleted %s", ref)
        except FileNotFoundError:
            logger.debug("Delete of missing image %s ignored", ref)
        except OSError as e:
            raise ImageIOError(f"Failed to delete image {ref}: {e}", ref=ref) from e
