"""SHA-256 content fingerprints for assets."""

from __future__ import annotations

import hashlib
from pathlib import Path

import aiofiles

_CHUNK_SIZE = 64 * 1024


def hash_bytes(data: bytes) -> str:
    """Lowercase hex SHA-256 of the exact bytes (no newline or whitespace normalization)."""
    return hashlib.sha256(data).hexdigest()


async def hash_file(path: Path) -> str:
    """Hash a file's content in chunks. Same result as `hash_bytes(path.read_bytes())`."""
    sha256 = hashlib.sha256()
    async with aiofiles.open(path, "rb") as f:
        while chunk := await f.read(_CHUNK_SIZE):
            sha256.update(chunk)
    return sha256.hexdigest()
