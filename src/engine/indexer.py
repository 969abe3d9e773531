"""Single-worker incremental indexer for one workspace.

File reads are awaited; parsing and store updates run without yielding.
Every read for a path takes a fresh sequence token, and a completed read is
applied only while its token is still the newest for that path. An older
read finishing late is dropped instead of overwriting newer state. Deleting a
path forgets its token, which also drops any read still in flight.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import TYPE_CHECKING

from engine.workspace import FileSystemReader
from errors import MissingWorkspaceRootError
from notify.channel import ChangeEvent, ChangeNotifier
from reconcile.deletion import DeletionHandler
from reconcile.reconciler import Reconciler
from utils import normalize_path

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from engine.workspace import ContentReader, WorkspaceRoots
    from store.reference_store import ReferenceStore

logger = logging.getLogger(__name__)


class IncrementalIndexer:
    """Applies source change and delete events to a reference store."""

    def __init__(
        self,
        store: ReferenceStore,
        roots: WorkspaceRoots,
        reader: ContentReader | None = None,
        notifier: ChangeNotifier | None = None,
    ) -> None:
        self.store = store
        self.roots = roots
        self.notifier = notifier or ChangeNotifier()
        self._reader = reader or FileSystemReader()
        self._reconciler = Reconciler(store)
        self._deletion = DeletionHandler(store)
        self._counter = itertools.count(1)
        self._latest: dict[str, int] = {}

    def _issue_token(self, source_path: str) -> int:
        token = next(self._counter)
        self._latest[source_path] = token
        return token

    def _is_current(self, source_path: str, token: int) -> bool:
        return self._latest.get(source_path) == token

    async def on_source_changed(self, path: str | Path) -> set[str]:
        """Read a created or modified source and reconcile it.

        Returns:
            Changed target paths, or an empty set when the read was
            superseded by a newer event for the same path.

        Raises:
            MissingWorkspaceRootError: The file is outside every root.
                Previous state for the file is kept.
            OSError: The file could not be read. The store is unchanged.
        """
        source_path = normalize_path(path)
        base_path = self.roots.root_for(source_path)
        if base_path is None:
            raise MissingWorkspaceRootError(source_path)

        token = self._issue_token(source_path)
        text = await self._reader.read(source_path)

        if not self._is_current(source_path, token):
            logger.debug("Discarding superseded read of %s", source_path)
            return set()

        changed = self._reconciler.reconcile(source_path, text, base_path)
        self.notifier.publish(ChangeEvent(source_path, frozenset(changed)))
        return changed

    async def on_source_deleted(self, path: str | Path) -> set[str]:
        """Forget a deleted source. Pending reads of it are discarded."""
        source_path = normalize_path(path)
        self._latest.pop(source_path, None)
        changed = self._deletion.on_delete(source_path)
        self.notifier.publish(
            ChangeEvent(source_path, frozenset(changed), deleted=True)
        )
        return changed

    async def index_all(self, paths: Iterable[str | Path]) -> set[str]:
        """Reconcile many sources concurrently.

        Files that cannot be read or sit outside every root are logged and
        skipped so one bad file does not stop the build.
        """
        path_list = list(paths)
        results = await asyncio.gather(
            *(self.on_source_changed(path) for path in path_list),
            return_exceptions=True,
        )

        changed: set[str] = set()
        for path, result in zip(path_list, results):
            if isinstance(result, (OSError, MissingWorkspaceRootError)):
                logger.warning("Skipping %s: %s", path, result)
                continue
            if isinstance(result, BaseException):
                raise result
            changed |= result
        return changed


__all__ = ["IncrementalIndexer"]
