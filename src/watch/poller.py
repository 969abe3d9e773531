"""Polling change source: detect source edits by mtime and feed the indexer."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from errors import ConfigError, MissingWorkspaceRootError
from scan.files import find_source_files
from settings.config import CONFIG_FILENAME, load_config
from utils import normalize_path

if TYPE_CHECKING:
    from engine.indexer import IncrementalIndexer
    from settings.config import XrefConfig

logger = logging.getLogger(__name__)

# mtimes closer than this are treated as equal.
MTIME_TOLERANCE = 0.001


def scan_disk_mtimes(file_paths: list[str]) -> dict[str, float]:
    """Return {path: mtime} for paths that exist on disk.

    Missing files are omitted from the result.
    """
    result: dict[str, float] = {}
    for path in file_paths:
        try:
            result[path] = Path(path).stat().st_mtime
        except OSError:
            pass
    return result


def detect_changes(
    tracked: dict[str, float],
    current_disk: dict[str, float],
) -> tuple[list[str], list[str], list[str]]:
    """Compare the last seen state with current disk state.

    Returns:
        (added, modified, removed) -- three sorted lists of paths.
        added    = paths on disk but not tracked.
        modified = paths in both but mtime differs by more than the tolerance.
        removed  = tracked paths no longer on disk.
    """
    tracked_set = set(tracked)
    disk_set = set(current_disk)

    added = sorted(disk_set - tracked_set)
    removed = sorted(tracked_set - disk_set)
    modified = sorted(
        p
        for p in tracked_set & disk_set
        if abs(current_disk[p] - tracked[p]) > MTIME_TOLERANCE
    )
    return added, modified, removed


class PollingWatcher:
    """Polls one workspace root and turns file changes into index events."""

    def __init__(
        self,
        root: Path,
        indexer: IncrementalIndexer,
        config: XrefConfig | None = None,
    ) -> None:
        self.root = Path(normalize_path(root))
        self.indexer = indexer
        self.config = config if config is not None else load_config(self.root)
        self._tracked: dict[str, float] = {}
        self._config_mtime = self._read_config_mtime()

    def discover(self) -> list[str]:
        return [
            normalize_path(path)
            for path in find_source_files(
                self.root,
                include_patterns=self.config.include,
                exclude_patterns=self.config.exclude,
                nested_gitignore=self.config.nested_gitignore,
            )
        ]

    def scan(self) -> dict[str, float]:
        """Return {path: mtime} for every source currently matched on disk."""
        return scan_disk_mtimes(self.discover())

    def _read_config_mtime(self) -> float | None:
        try:
            return (self.root / CONFIG_FILENAME).stat().st_mtime
        except OSError:
            return None

    def reload_config(self) -> bool:
        """Reload xrefmap.toml if it changed on disk.

        A config that fails to load is reported and the previous settings
        stay in effect.

        Returns:
            True if a new config was applied.
        """
        mtime = self._read_config_mtime()
        if mtime == self._config_mtime:
            return False
        self._config_mtime = mtime

        try:
            config = load_config(self.root)
        except ConfigError as exc:
            logger.error("Keeping previous configuration: %s", exc)
            return False

        self.config = config
        logger.info("Configuration reloaded from %s", self.root / CONFIG_FILENAME)
        return True

    async def _changed(self, path: str) -> set[str]:
        try:
            return await self.indexer.on_source_changed(path)
        except (OSError, MissingWorkspaceRootError) as exc:
            logger.warning("Could not index %s: %s", path, exc)
            return set()

    async def poll_once(self) -> set[str]:
        """Run one detection pass and apply every change found.

        Returns:
            Target paths whose references changed during this pass.
        """
        if self.reload_config():
            # Source globs may have changed: re-read everything still
            # matched and drop whatever no longer is.
            self._tracked = dict.fromkeys(self._tracked, -1.0)

        current = await asyncio.to_thread(self.scan)
        added, modified, removed = detect_changes(self._tracked, current)
        if added or modified or removed:
            logger.debug(
                "Poll found %d added, %d modified, %d removed",
                len(added),
                len(modified),
                len(removed),
            )

        changed: set[str] = set()
        for path in removed:
            changed |= await self.indexer.on_source_deleted(path)

        results = await asyncio.gather(*(self._changed(p) for p in added + modified))
        for result in results:
            changed |= result

        self._tracked = current
        return changed

    async def run(self, iterations: int | None = None) -> None:
        """Poll until cancelled, or for a fixed number of passes."""
        count = 0
        while iterations is None or count < iterations:
            await self.poll_once()
            count += 1
            if iterations is not None and count >= iterations:
                break
            await asyncio.sleep(self.config.poll_interval)


__all__ = ["MTIME_TOLERANCE", "PollingWatcher", "detect_changes", "scan_disk_mtimes"]
