"""Workspace scanning for reference sources."""

from scan.files import SKIP_DIRS, find_source_files

__all__ = ["SKIP_DIRS", "find_source_files"]
