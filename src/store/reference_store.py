"""Three-way reference index.

The store keeps three maps in step with each other:

* ``key -> Reference``
* ``target path -> keys`` (what the renderer asks for)
* ``source path -> keys`` (what reconciliation and deletion diff against)

Only :meth:`ReferenceStore.insert`, :meth:`ReferenceStore.remove_by_key` and
:meth:`ReferenceStore.replace_source_keys` mutate them.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import TYPE_CHECKING

from errors import InconsistentIndexError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from contract.models import Reference, ReferenceKey


class ReferenceStore:
    """In-memory index of references keyed by identity, target and source."""

    def __init__(self) -> None:
        self._key_to_reference: dict[ReferenceKey, Reference] = {}
        self._target_to_keys: dict[str, set[ReferenceKey]] = {}
        self._source_to_keys: dict[str, set[ReferenceKey]] = {}
        self._lock = threading.RLock()

    @contextmanager
    def locked(self) -> Iterator[ReferenceStore]:
        """Hold the mutation lock across a multi-step update."""
        with self._lock:
            yield self

    def insert(self, reference: Reference) -> Reference | None:
        """Store a reference, replacing any reference with the same key.

        Returns:
            The reference previously stored under the key, if any.
        """
        key = reference.key
        with self._lock:
            previous = self._key_to_reference.get(key)
            self._key_to_reference[key] = reference
            self._target_to_keys.setdefault(reference.target_path, set()).add(key)
            self._source_to_keys.setdefault(reference.source_path, set()).add(key)
        return previous

    def remove_by_key(self, key: ReferenceKey) -> Reference | None:
        """Remove a key from all three maps. Absent keys are a no-op.

        Returns:
            The removed reference, or None if nothing was stored.
        """
        with self._lock:
            reference = self._key_to_reference.pop(key, None)
            if reference is None:
                return None
            _discard(self._target_to_keys, reference.target_path, key)
            _discard(self._source_to_keys, reference.source_path, key)
        return reference

    def replace_source_keys(
        self, source_path: str, keys: Iterable[ReferenceKey]
    ) -> None:
        """Set the full key set owned by a source.

        Every key must already be stored and belong to ``source_path``.
        """
        new_keys = set(keys)
        with self._lock:
            for key in new_keys:
                reference = self._key_to_reference.get(key)
                if reference is None or reference.source_path != source_path:
                    msg = f"Key {key!r} is not a stored reference of {source_path}"
                    raise InconsistentIndexError(msg)
            if new_keys:
                self._source_to_keys[source_path] = new_keys
            else:
                self._source_to_keys.pop(source_path, None)

    def get(self, key: ReferenceKey) -> Reference | None:
        return self._key_to_reference.get(key)

    def keys_for_target(self, target_path: str) -> frozenset[ReferenceKey]:
        with self._lock:
            return frozenset(self._target_to_keys.get(target_path, ()))

    def keys_for_source(self, source_path: str) -> frozenset[ReferenceKey]:
        with self._lock:
            return frozenset(self._source_to_keys.get(source_path, ()))

    def targets(self) -> list[str]:
        with self._lock:
            return sorted(self._target_to_keys)

    def sources(self) -> list[str]:
        with self._lock:
            return sorted(self._source_to_keys)

    def references(self) -> list[Reference]:
        with self._lock:
            return list(self._key_to_reference.values())

    def clear(self) -> None:
        with self._lock:
            self._key_to_reference.clear()
            self._target_to_keys.clear()
            self._source_to_keys.clear()

    def __len__(self) -> int:
        return len(self._key_to_reference)

    def __contains__(self, key: object) -> bool:
        return key in self._key_to_reference

    def check_invariants(self) -> None:
        """Raise InconsistentIndexError if the three maps disagree."""
        with self._lock:
            for key, reference in self._key_to_reference.items():
                if reference.key != key:
                    msg = f"Reference stored under {key!r} has key {reference.key!r}"
                    raise InconsistentIndexError(msg)
                if key not in self._target_to_keys.get(reference.target_path, ()):
                    msg = f"Key {key!r} missing from target index"
                    raise InconsistentIndexError(msg)
                if key not in self._source_to_keys.get(reference.source_path, ()):
                    msg = f"Key {key!r} missing from source index"
                    raise InconsistentIndexError(msg)

            for label, index, attr in (
                ("target", self._target_to_keys, "target_path"),
                ("source", self._source_to_keys, "source_path"),
            ):
                for path, keys in index.items():
                    if not keys:
                        msg = f"Empty key set left for {label} {path}"
                        raise InconsistentIndexError(msg)
                    for key in keys:
                        reference = self._key_to_reference.get(key)
                        if reference is None:
                            msg = f"Dangling key {key!r} in {label} index of {path}"
                            raise InconsistentIndexError(msg)
                        if getattr(reference, attr) != path:
                            msg = f"Key {key!r} filed under wrong {label} {path}"
                            raise InconsistentIndexError(msg)


def _discard(
    index: dict[str, set[ReferenceKey]], path: str, key: ReferenceKey
) -> None:
    keys = index.get(path)
    if keys is None:
        return
    keys.discard(key)
    if not keys:
        del index[path]


__all__ = ["ReferenceStore"]
