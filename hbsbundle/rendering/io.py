"""File I/O operations for the output bundle."""

from __future__ import annotations

from pathlib import Path

import aiofiles
import aiofiles.os

from ..core.errors import OutputDirError, WriteError


async def ensure_directory(path: Path) -> None:
    """Ensure a directory and its parents exist.

    Args:
        path: Directory to create
    """
    if str(path) in ("", "."):
        return
    try:
        await aiofiles.os.makedirs(path, exist_ok=True)
    except OSError as exc:
        raise OutputDirError(path, exc.strerror or str(exc)) from exc


async def read_text(path: Path) -> str:
    """Read a template source as-is; line endings are not translated."""
    async with aiofiles.open(path, "r", encoding="utf-8", newline="") as handle:
        return await handle.read()


class OutputStream:
    """An output file written once, then appended piece by piece.

    Pieces are joined with ``separator``; empty pieces are skipped. The
    finished file ends with a single newline.
    """

    def __init__(self, path: Path, separator: str) -> None:
        self.path = path
        self.separator = separator
        self._written = False

    async def start(self, text: str) -> None:
        """Create (or truncate) the file with ``text`` as its first piece."""
        await self._write("w", text)
        self._written = bool(text)

    async def append(self, text: str) -> None:
        if not text:
            return
        await self._write("a", f"{self.separator}{text}" if self._written else text)
        self._written = True

    async def close(self, text: str) -> None:
        """Append the closing piece and the trailing newline."""
        await self.append(text)
        if self._written:
            await self._write("a", "\n")

    async def _write(self, mode: str, text: str) -> None:
        try:
            async with aiofiles.open(self.path, mode, encoding="utf-8", newline="") as handle:
                await handle.write(text)
        except OSError as exc:
            raise WriteError(self.path, exc.strerror or str(exc)) from exc
