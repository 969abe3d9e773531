"""Drop everything a deleted source file contributed to the store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from errors import InconsistentIndexError

if TYPE_CHECKING:
    from store.reference_store import ReferenceStore

logger = logging.getLogger(__name__)


class DeletionHandler:
    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    def on_delete(self, source_path: str) -> set[str]:
        """Remove every reference owned by ``source_path`` from all maps.

        Returns:
            Target paths that lost at least one reference.
        """
        changed: set[str] = set()
        with self._store.locked() as store:
            keys = store.keys_for_source(source_path)
            for key in keys:
                reference = store.get(key)
                if reference is None:
                    msg = f"Source {source_path} owns unknown key {key!r}"
                    raise InconsistentIndexError(msg)
                changed.add(reference.target_path)
                store.remove_by_key(key)
            store.replace_source_keys(source_path, ())

        logger.info(
            "Deleted %s: removed %d references from %d targets",
            source_path,
            len(keys),
            len(changed),
        )
        return changed


__all__ = ["DeletionHandler"]
