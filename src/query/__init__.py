"""Query helpers for index consumers."""

from query.lookup import (
    decorations_by_kind,
    definition_links,
    document_symbols,
    is_render_target,
    references_at,
    references_for_target,
    visible_changes,
)

__all__ = [
    "decorations_by_kind",
    "definition_links",
    "document_symbols",
    "is_render_target",
    "references_at",
    "references_for_target",
    "visible_changes",
]
