from __future__ import annotations

from typing import TYPE_CHECKING

from reconcile.deletion import DeletionHandler
from reconcile.reconciler import Reconciler
from store.reference_store import ReferenceStore
from utils import normalize_path

if TYPE_CHECKING:
    from pathlib import Path


def test_delete_removes_source_from_all_maps(tmp_path: Path) -> None:
    base = normalize_path(tmp_path)
    source = normalize_path(tmp_path / "a.py")
    other = normalize_path(tmp_path / "b.py")
    x = normalize_path(tmp_path / "x.txt")
    y = normalize_path(tmp_path / "y.txt")
    store = ReferenceStore()
    reconciler = Reconciler(store)
    reconciler.reconcile(source, "# x.txt:L1,L4-L6\n# y.txt:L2\n", base)
    reconciler.reconcile(other, "# x.txt:L9\n", base)
    owned = store.keys_for_source(source)

    changed = DeletionHandler(store).on_delete(source)

    assert changed == {x, y}
    assert store.keys_for_source(source) == frozenset()
    assert all(store.get(key) is None for key in owned)
    assert not owned & store.keys_for_target(x)
    assert store.keys_for_target(y) == frozenset()
    assert len(store.keys_for_target(x)) == 1
    assert source not in store.sources()
    assert y not in store.targets()
    store.check_invariants()


def test_delete_unknown_source_is_empty(tmp_path: Path) -> None:
    store = ReferenceStore()

    changed = DeletionHandler(store).on_delete(normalize_path(tmp_path / "nope.py"))

    assert changed == set()
    assert len(store) == 0


def test_recreated_source_is_indexed_again(tmp_path: Path) -> None:
    base = normalize_path(tmp_path)
    source = normalize_path(tmp_path / "a.py")
    x = normalize_path(tmp_path / "x.txt")
    store = ReferenceStore()
    reconciler = Reconciler(store)
    reconciler.reconcile(source, "# x.txt:L1\n", base)
    DeletionHandler(store).on_delete(source)

    changed = reconciler.reconcile(source, "# x.txt:L1\n", base)

    assert changed == {x}
    assert len(store.keys_for_target(x)) == 1
    store.check_invariants()
