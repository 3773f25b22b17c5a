"""Local blob store for uploaded media, served under the public asset root."""

import asyncio
import re
import time
from pathlib import Path

from loguru import logger

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9.-]")


def sanitize_filename(original_name: str) -> str:
    return _UNSAFE_CHARS.sub("_", original_name)


def generate_filename(original_name: str, timestamp_ms: int | None = None) -> str:
    """
    ``<epoch ms>-<sanitized original name>``.
    Two uploads with the same name in the same millisecond share a filename.
    """
    if timestamp_ms is None:
        timestamp_ms = time.time_ns() // 1_000_000
    return f"{timestamp_ms}-{sanitize_filename(original_name)}"


class BlobStore:
    """Write-once byte storage addressed by generated filename."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def ensure_root(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def path_for(self, filename: str) -> Path:
        return self.root / filename

    def _write_sync(self, filename: str, data: bytes) -> Path:
        self.ensure_root()
        path = self.path_for(filename)
        path.write_bytes(data)
        return path

    async def write(self, filename: str, data: bytes) -> Path:
        """Write ``data`` in a worker thread and return the stored path."""
        path = await asyncio.to_thread(self._write_sync, filename, data)
        logger.debug(f"{path=} {len(data)=}")
        return path
