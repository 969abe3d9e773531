"""Read-only views of the store for rendering and navigation.

Nothing here mutates the store. Callers pass target paths in any spelling;
they are normalized before lookup.
"""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from typing import TYPE_CHECKING

from contract.models import DefinitionLink, DocumentSymbol, LineRange
from utils import normalize_path, relative_posix

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from contract.models import Reference
    from store.reference_store import ReferenceStore

logger = logging.getLogger(__name__)

# Lines shown below the declaring comment when jumping to a source.
_SOURCE_CONTEXT_LINES = 4
_SOURCE_CONTEXT_COLUMN = 99


def _sort_key(reference: Reference) -> tuple[int, int, str, int]:
    return (
        reference.range.start_line,
        reference.range.end_line,
        reference.source_path,
        reference.source_line,
    )


def references_for_target(store: ReferenceStore, target: str | Path) -> list[Reference]:
    """Return all references pointing at ``target`` in display order."""
    target_path = normalize_path(target)
    references: list[Reference] = []
    for key in store.keys_for_target(target_path):
        reference = store.get(key)
        if reference is None:
            # Removed between the key snapshot and this read.
            logger.debug("Key %r vanished while reading %s", key, target_path)
            continue
        references.append(reference)
    references.sort(key=_sort_key)
    return references


def references_at(
    store: ReferenceStore, target: str | Path, line: int
) -> list[Reference]:
    """Return references whose range covers the 0-indexed ``line``."""
    return [
        reference
        for reference in references_for_target(store, target)
        if reference.range.contains_line(line)
    ]


def definition_links(
    store: ReferenceStore, target: str | Path, line: int
) -> list[DefinitionLink]:
    """Build jump-to-source links for the references covering ``line``."""
    links: list[DefinitionLink] = []
    for reference in references_at(store, target, line):
        source_start = reference.source_line - 1
        links.append(
            DefinitionLink(
                origin=reference.range,
                source_path=reference.source_path,
                source_range=LineRange(
                    start_line=source_start,
                    end_line=source_start + _SOURCE_CONTEXT_LINES,
                    end_col=_SOURCE_CONTEXT_COLUMN,
                ),
                kind=reference.kind,
            )
        )
    return links


def document_symbols(store: ReferenceStore, target: str | Path) -> list[DocumentSymbol]:
    return [
        DocumentSymbol(
            name=reference.comment,
            detail=reference.source_path,
            range=reference.range,
            kind=reference.kind,
        )
        for reference in references_for_target(store, target)
    ]


def decorations_by_kind(
    store: ReferenceStore, target: str | Path
) -> dict[str, list[LineRange]]:
    """Group a target's ranges by kind so each kind can get its own style."""
    grouped: dict[str, list[LineRange]] = {}
    for reference in references_for_target(store, target):
        grouped.setdefault(reference.kind, []).append(reference.range)
    return grouped


def is_render_target(path: str | Path, root: str | Path, patterns: list[str]) -> bool:
    """Check whether a target file should be decorated.

    Patterns are fnmatch globs matched against the path relative to ``root``.
    An empty pattern list accepts every file under the root.
    """
    rel_path = relative_posix(path, root)
    if rel_path is None:
        return False
    if not patterns:
        return True
    return any(fnmatch(rel_path, pattern) for pattern in patterns)


def visible_changes(changed: Iterable[str], open_paths: Iterable[str | Path]) -> set[str]:
    """Return the changed targets that are currently open."""
    open_set = {normalize_path(path) for path in open_paths}
    return {normalize_path(path) for path in changed} & open_set


__all__ = [
    "decorations_by_kind",
    "definition_links",
    "document_symbols",
    "is_render_target",
    "references_at",
    "references_for_target",
    "visible_changes",
]
