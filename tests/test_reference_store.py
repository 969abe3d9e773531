from __future__ import annotations

import pytest

from contract.models import LineRange, Reference
from errors import InconsistentIndexError
from store.reference_store import ReferenceStore


def _ref(
    target: str = "/ws/t.txt",
    source: str = "/ws/s.py",
    start: int = 0,
    end: int = 0,
    kind: str = "default",
) -> Reference:
    return Reference(
        target_path=target,
        source_path=source,
        range=LineRange(start_line=start, end_line=end),
        kind=kind,
        comment=f"t.txt:L{start + 1}",
        source_line=1,
    )


def test_insert_indexes_by_key_target_and_source() -> None:
    store = ReferenceStore()
    ref = _ref()

    assert store.insert(ref) is None

    assert store.get(ref.key) is ref
    assert store.keys_for_target("/ws/t.txt") == {ref.key}
    assert store.keys_for_source("/ws/s.py") == {ref.key}
    assert len(store) == 1
    assert ref.key in store
    store.check_invariants()


def test_insert_same_key_overwrites() -> None:
    store = ReferenceStore()
    first = _ref(kind="default")
    second = _ref(kind="wip")

    store.insert(first)
    previous = store.insert(second)

    assert previous is first
    assert store.get(first.key) is second
    assert len(store) == 1
    assert store.keys_for_target("/ws/t.txt") == {second.key}


def test_remove_by_key_clears_all_maps() -> None:
    store = ReferenceStore()
    ref = _ref()
    store.insert(ref)

    assert store.remove_by_key(ref.key) is ref

    assert store.get(ref.key) is None
    assert store.keys_for_target("/ws/t.txt") == frozenset()
    assert store.keys_for_source("/ws/s.py") == frozenset()
    assert store.targets() == []
    assert store.sources() == []
    store.check_invariants()


def test_remove_absent_key_is_noop() -> None:
    store = ReferenceStore()
    kept = _ref(start=1, end=1)
    store.insert(kept)

    assert store.remove_by_key(_ref(start=5, end=5).key) is None

    assert len(store) == 1
    store.check_invariants()


def test_remove_keeps_other_keys_of_same_target() -> None:
    store = ReferenceStore()
    a = _ref(start=0, end=0)
    b = _ref(start=3, end=4, source="/ws/other.py")
    store.insert(a)
    store.insert(b)

    store.remove_by_key(a.key)

    assert store.keys_for_target("/ws/t.txt") == {b.key}
    assert store.sources() == ["/ws/other.py"]


def test_key_snapshots_are_immutable() -> None:
    store = ReferenceStore()
    ref = _ref()
    store.insert(ref)

    keys = store.keys_for_target("/ws/t.txt")
    store.remove_by_key(ref.key)

    assert keys == {ref.key}
    assert isinstance(keys, frozenset)


def test_replace_source_keys_rejects_foreign_keys() -> None:
    store = ReferenceStore()
    ref = _ref()
    store.insert(ref)

    with pytest.raises(InconsistentIndexError):
        store.replace_source_keys("/ws/elsewhere.py", [ref.key])


def test_replace_source_keys_with_nothing_drops_entry() -> None:
    store = ReferenceStore()

    store.replace_source_keys("/ws/s.py", [])

    assert store.sources() == []


def test_check_invariants_detects_dangling_target_key() -> None:
    store = ReferenceStore()
    ref = _ref()
    store.insert(ref)
    # Simulate a partial removal that only touched the key map.
    store._key_to_reference.pop(ref.key)

    with pytest.raises(InconsistentIndexError):
        store.check_invariants()


def test_clear_empties_everything() -> None:
    store = ReferenceStore()
    store.insert(_ref())

    store.clear()

    assert len(store) == 0
    assert store.references() == []
    store.check_invariants()
