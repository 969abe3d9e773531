"""Command-line interface for xrefmap."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import orjson

from engine.indexer import IncrementalIndexer
from engine.workspace import WorkspaceRoots
from errors import ConfigError
from query.lookup import decorations_by_kind, definition_links, is_render_target
from settings.config import load_config
from store.reference_store import ReferenceStore
from utils import resolve_relative
from watch.poller import PollingWatcher

if TYPE_CHECKING:
    from notify.channel import Subscription
    from settings.config import XrefConfig

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _add_common_paths(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Workspace root (default: .)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="xrefmap")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    index_parser = subparsers.add_parser(
        "index", help="Build the reference index and print it as JSON lines"
    )
    _add_common_paths(index_parser)
    index_parser.add_argument(
        "--target",
        default=None,
        help="Only print references to this file (relative to root)",
    )

    lookup_parser = subparsers.add_parser(
        "lookup", help="Show which comments reference a line of a file"
    )
    lookup_parser.add_argument("target", help="Target file (relative to root)")
    lookup_parser.add_argument(
        "--line", type=int, required=True, help="1-indexed line number"
    )
    _add_common_paths(lookup_parser)

    watch_parser = subparsers.add_parser(
        "watch", help="Watch the workspace and report changed targets"
    )
    _add_common_paths(watch_parser)
    watch_parser.add_argument(
        "--iterations",
        type=int,
        default=None,
        help="Stop after this many polls (default: run until interrupted)",
    )

    return parser


def _write_json_line(payload: object) -> None:
    line = orjson.dumps(payload, option=orjson.OPT_SORT_KEYS).decode("utf-8")
    sys.stdout.write(line + "\n")


def _make_watcher(root: Path, config: XrefConfig) -> PollingWatcher:
    indexer = IncrementalIndexer(ReferenceStore(), WorkspaceRoots([root]))
    return PollingWatcher(root, indexer, config)


async def _build_index(root: Path, config: XrefConfig) -> PollingWatcher:
    watcher = _make_watcher(root, config)
    await watcher.poll_once()
    return watcher


def _handle_index(root: Path, config: XrefConfig, target: str | None) -> int:
    watcher = asyncio.run(_build_index(root, config))
    store = watcher.indexer.store

    references = store.references()
    if target is not None:
        target_path = resolve_relative(root, target)
        references = [ref for ref in references if ref.target_path == target_path]
    references.sort(key=lambda ref: (ref.target_path, ref.range.start_line, ref.key))

    for reference in references:
        _write_json_line(reference.model_dump())
    return 0


def _handle_lookup(root: Path, config: XrefConfig, target: str, line: int) -> int:
    watcher = asyncio.run(_build_index(root, config))
    target_path = resolve_relative(root, target)

    links = definition_links(watcher.indexer.store, target_path, line - 1)
    if not links:
        sys.stderr.write(f"no references to {target}:L{line}\n")
        return 1
    for link in links:
        sys.stdout.write(f"{link.source_path}:{link.source_range.start_line + 1}\n")
    return 0


def _render_event_targets(
    watcher: PollingWatcher, root: Path, targets: frozenset[str]
) -> None:
    for target in sorted(targets):
        if not is_render_target(target, root, watcher.config.render):
            continue
        grouped = decorations_by_kind(watcher.indexer.store, target)
        _write_json_line(
            {
                "target": target,
                "decorations": {
                    kind: [[r.start_line, r.end_line] for r in ranges]
                    for kind, ranges in grouped.items()
                },
            }
        )


async def _render_loop(
    watcher: PollingWatcher, root: Path, subscription: Subscription
) -> None:
    async for event in subscription:
        _render_event_targets(watcher, root, event.targets)


async def _watch(root: Path, config: XrefConfig, iterations: int | None) -> None:
    watcher = _make_watcher(root, config)
    subscription = watcher.indexer.notifier.subscribe()
    renderer = asyncio.create_task(_render_loop(watcher, root, subscription))
    try:
        await watcher.run(iterations=iterations)
    finally:
        subscription.close()
        await renderer


def _handle_watch(root: Path, config: XrefConfig, iterations: int | None) -> int:
    try:
        asyncio.run(_watch(root, config, iterations))
    except KeyboardInterrupt:
        pass
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format=_LOG_FORMAT)

    root = Path(args.root).expanduser().resolve()

    try:
        config = load_config(root)
    except ConfigError as exc:
        sys.stderr.write(f"error: {exc}\n")
        return 2

    if args.command == "index":
        return _handle_index(root, config, args.target)

    if args.command == "lookup":
        return _handle_lookup(root, config, args.target, args.line)

    if args.command == "watch":
        return _handle_watch(root, config, args.iterations)

    raise AssertionError


if __name__ == "__main__":
    raise SystemExit(main())
