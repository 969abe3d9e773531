"""Bring the store in line with the current text of one source file."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from errors import InconsistentIndexError
from parse.references import parse_text

if TYPE_CHECKING:
    from contract.models import Reference, ReferenceKey
    from store.reference_store import ReferenceStore

logger = logging.getLogger(__name__)


class Reconciler:
    """Diffs a source's fresh parse against what it contributed before."""

    def __init__(self, store: ReferenceStore) -> None:
        self._store = store

    def reconcile(self, source_path: str, text: str, base_path: str) -> set[str]:
        """Re-parse ``text`` and apply the difference to the store.

        Only references whose key is new, whose stored copy differs, or
        which no longer appear are touched. References that are unchanged
        keep their stored object.

        Args:
            source_path: Absolute, normalized path of the source file.
            text: Full current text of the source file.
            base_path: Workspace root used to resolve comment paths.

        Returns:
            Target paths whose reference set changed. Empty when ``text``
            declares exactly what the store already holds for this source.
        """
        new_refs = parse_text(text, base_path, source_path)
        new_keys: set[ReferenceKey] = set()
        changed: set[str] = set()

        with self._store.locked() as store:
            previous_keys = store.keys_for_source(source_path)

            for reference in _last_wins(new_refs):
                new_keys.add(reference.key)
                if store.get(reference.key) == reference:
                    continue
                store.insert(reference)
                changed.add(reference.target_path)

            stale_keys = previous_keys - new_keys
            for key in stale_keys:
                stale = store.get(key)
                if stale is None:
                    msg = f"Source {source_path} owns unknown key {key!r}"
                    raise InconsistentIndexError(msg)
                changed.add(stale.target_path)
                store.remove_by_key(key)

            store.replace_source_keys(source_path, new_keys)

        logger.info(
            "Reconciled %s: %d references, %d removed, %d targets changed",
            source_path,
            len(new_keys),
            len(stale_keys),
            len(changed),
        )
        return changed


def _last_wins(references: list[Reference]) -> list[Reference]:
    """Drop earlier duplicates so the last declaration of a key is kept."""
    by_key: dict[ReferenceKey, Reference] = {}
    for reference in references:
        by_key.pop(reference.key, None)
        by_key[reference.key] = reference
    return list(by_key.values())


__all__ = ["Reconciler"]
