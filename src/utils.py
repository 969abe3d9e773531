"""Shared path utilities for xrefmap."""

from __future__ import annotations

import os
from pathlib import Path


def normalize_path(path: str | Path) -> str:
    """Return the absolute, normalized form of a path as a string.

    Every path used as an index key goes through this function so that the
    same file is never tracked under two spellings.

    Examples:
        >>> normalize_path("/work/src/../docs/a.md")
        '/work/docs/a.md'
    """
    return os.path.normpath(os.path.abspath(os.fspath(path)))


def resolve_relative(base_path: str | Path, rel_path: str) -> str:
    """Resolve a path written in a comment against a workspace root.

    Args:
        base_path: Workspace root the comment's file belongs to.
        rel_path: Path as written in the comment. Absolute paths are kept.

    Returns:
        Absolute, normalized path string.
    """
    return normalize_path(os.path.join(os.fspath(base_path), rel_path))


def relative_posix(path: str | Path, root: str | Path) -> str | None:
    """Return ``path`` relative to ``root`` in POSIX form, or None if outside."""
    try:
        rel = Path(normalize_path(path)).relative_to(normalize_path(root))
    except ValueError:
        return None
    return rel.as_posix()
