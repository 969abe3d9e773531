"""Workspace root resolution and file reading collaborators."""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterable


class ContentReader(Protocol):
    async def read(self, path: str) -> str: ...


class FileSystemReader:
    """Reads source files from disk in a worker thread."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    async def read(self, path: str) -> str:
        return await asyncio.to_thread(self._read_sync, path)

    def _read_sync(self, path: str) -> str:
        return Path(path).read_text(encoding=self._encoding, errors="replace")


class WorkspaceRoots:
    """Maps a file to the workspace root that contains it.

    With nested roots, the innermost (longest) root wins.
    """

    def __init__(self, roots: Iterable[str | Path]) -> None:
        normalized = {normalize_path(root) for root in roots}
        self._roots = sorted(normalized, key=len, reverse=True)

    @property
    def roots(self) -> list[str]:
        return sorted(self._roots)

    def root_for(self, path: str | Path) -> str | None:
        candidate = normalize_path(path)
        for root in self._roots:
            try:
                if os.path.commonpath([root, candidate]) == root:
                    return root
            except ValueError:
                # Different drives on Windows.
                continue
        return None


__all__ = ["ContentReader", "FileSystemReader", "WorkspaceRoots"]
