from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from engine.indexer import IncrementalIndexer
from engine.workspace import WorkspaceRoots
from errors import MissingWorkspaceRootError
from store.reference_store import ReferenceStore
from utils import normalize_path

if TYPE_CHECKING:
    from pathlib import Path


class _ScriptedReader:
    """Reader whose reads complete only when the test releases them."""

    def __init__(self) -> None:
        self.pending: list[tuple[asyncio.Event, str]] = []

    def queue(self, text: str) -> asyncio.Event:
        gate = asyncio.Event()
        self.pending.append((gate, text))
        return gate

    async def read(self, path: str) -> str:
        gate, text = self.pending.pop(0)
        await gate.wait()
        return text


class _FailingReader:
    async def read(self, path: str) -> str:
        raise FileNotFoundError(path)


def _indexer(root: Path, reader: object | None = None) -> IncrementalIndexer:
    return IncrementalIndexer(ReferenceStore(), WorkspaceRoots([root]), reader=reader)


@pytest.mark.asyncio
async def test_change_event_reads_and_indexes_file(tmp_path: Path) -> None:
    source = tmp_path / "src" / "a.py"
    source.parent.mkdir()
    source.write_text("# docs/x.md:L2-L3\n", encoding="utf-8")
    indexer = _indexer(tmp_path)

    changed = await indexer.on_source_changed(source)

    target = normalize_path(tmp_path / "docs" / "x.md")
    assert changed == {target}
    (key,) = indexer.store.keys_for_target(target)
    assert indexer.store.get(key).source_path == normalize_path(source)


@pytest.mark.asyncio
async def test_stale_read_does_not_overwrite_newer_state(tmp_path: Path) -> None:
    reader = _ScriptedReader()
    indexer = _indexer(tmp_path, reader)
    source = tmp_path / "a.py"
    old_target = normalize_path(tmp_path / "old.txt")
    new_target = normalize_path(tmp_path / "new.txt")

    first_gate = reader.queue("# old.txt:L1\n")
    second_gate = reader.queue("# new.txt:L1\n")
    first = asyncio.create_task(indexer.on_source_changed(source))
    await asyncio.sleep(0)
    second = asyncio.create_task(indexer.on_source_changed(source))
    await asyncio.sleep(0)

    second_gate.set()
    assert await second == {new_target}
    first_gate.set()
    assert await first == set()

    assert indexer.store.targets() == [new_target]
    indexer.store.check_invariants()


@pytest.mark.asyncio
async def test_delete_discards_in_flight_read(tmp_path: Path) -> None:
    reader = _ScriptedReader()
    indexer = _indexer(tmp_path, reader)
    source = tmp_path / "a.py"

    gate = reader.queue("# x.txt:L1\n")
    pending = asyncio.create_task(indexer.on_source_changed(source))
    await asyncio.sleep(0)
    await indexer.on_source_deleted(source)
    gate.set()

    assert await pending == set()
    assert len(indexer.store) == 0


@pytest.mark.asyncio
async def test_different_paths_reconcile_independently(tmp_path: Path) -> None:
    reader = _ScriptedReader()
    indexer = _indexer(tmp_path, reader)

    gate_a = reader.queue("# x.txt:L1\n")
    gate_b = reader.queue("# y.txt:L1\n")
    task_a = asyncio.create_task(indexer.on_source_changed(tmp_path / "a.py"))
    await asyncio.sleep(0)
    task_b = asyncio.create_task(indexer.on_source_changed(tmp_path / "b.py"))
    await asyncio.sleep(0)
    gate_b.set()
    gate_a.set()

    await asyncio.gather(task_a, task_b)

    assert indexer.store.targets() == [
        normalize_path(tmp_path / "x.txt"),
        normalize_path(tmp_path / "y.txt"),
    ]


@pytest.mark.asyncio
async def test_missing_root_keeps_previous_state(tmp_path: Path) -> None:
    workspace = tmp_path / "ws"
    workspace.mkdir()
    outside = tmp_path / "elsewhere" / "a.py"
    indexer = _indexer(workspace)

    with pytest.raises(MissingWorkspaceRootError):
        await indexer.on_source_changed(outside)

    assert len(indexer.store) == 0


@pytest.mark.asyncio
async def test_read_failure_leaves_store_unchanged(tmp_path: Path) -> None:
    source = tmp_path / "a.py"
    source.write_text("# x.txt:L1\n", encoding="utf-8")
    indexer = _indexer(tmp_path)
    await indexer.on_source_changed(source)
    before = indexer.store.references()

    failing = IncrementalIndexer(
        indexer.store, indexer.roots, reader=_FailingReader()
    )
    with pytest.raises(FileNotFoundError):
        await failing.on_source_changed(source)

    assert indexer.store.references() == before


@pytest.mark.asyncio
async def test_events_are_published_per_update(tmp_path: Path) -> None:
    source = tmp_path / "a.py"
    source.write_text("# x.txt:L1\n", encoding="utf-8")
    indexer = _indexer(tmp_path)
    subscription = indexer.notifier.subscribe()

    await indexer.on_source_changed(source)
    await indexer.on_source_changed(source)
    await indexer.on_source_deleted(source)

    events = subscription.drain()
    target = normalize_path(tmp_path / "x.txt")
    assert [(e.targets, e.deleted) for e in events] == [
        (frozenset({target}), False),
        (frozenset({target}), True),
    ]


@pytest.mark.asyncio
async def test_index_all_skips_unreadable_files(tmp_path: Path) -> None:
    good = tmp_path / "good.py"
    good.write_text("# x.txt:L1\n", encoding="utf-8")
    missing = tmp_path / "missing.py"
    indexer = _indexer(tmp_path)

    changed = await indexer.index_all([good, missing])

    assert changed == {normalize_path(tmp_path / "x.txt")}


def test_workspace_roots_prefers_innermost(tmp_path: Path) -> None:
    outer = tmp_path
    inner = tmp_path / "nested"
    roots = WorkspaceRoots([outer, inner])

    assert roots.root_for(inner / "a.py") == normalize_path(inner)
    assert roots.root_for(outer / "a.py") == normalize_path(outer)
    assert roots.root_for(tmp_path.parent / "z.py") is None
    assert roots.root_for(f"{tmp_path}-sibling/a.py") is None


@pytest.mark.asyncio
async def test_deleted_paths_release_their_tokens(tmp_path: Path) -> None:
    indexer = _indexer(tmp_path)
    source = tmp_path / "a.py"
    source.write_text("# x.txt:L1\n", encoding="utf-8")
    await indexer.on_source_changed(source)

    await indexer.on_source_deleted(source)
    for index in range(20):
        await indexer.on_source_deleted(tmp_path / f"gone_{index}.py")

    assert indexer._latest == {}
    assert len(indexer.store) == 0
