"""Parse reference comments into structured references.

A reference comment names a file relative to the workspace root followed by
one or more line entries::

    # see docs/design.md:L10-L12,L20 (wip)

Each entry yields one :class:`~contract.models.Reference`. The optional
trailing ``(kind)`` applies to every reference declared on the line.
"""

from __future__ import annotations

import logging
import re

from contract.models import DEFAULT_KIND, LineRange, Reference
from utils import resolve_relative

logger = logging.getLogger(__name__)

_ENTRY = r"L\d+(?:-L\d+)?"

_REFERENCE_PATTERN = re.compile(
    rf"(?P<path>\S+):(?P<entries>{_ENTRY}(?:,{_ENTRY})*)"
)
_ENTRY_PATTERN = re.compile(r"^L(?P<start>\d+)(?:-L(?P<end>\d+))?$")
_KIND_PATTERN = re.compile(r"\((?P<kind>[^()]+)\)$")


def parse_kind(line: str) -> str:
    """Return the lower-cased trailing ``(kind)`` of a line, or the default."""
    match = _KIND_PATTERN.search(line.strip())
    if match is None:
        return DEFAULT_KIND
    kind = match.group("kind").strip().lower()
    return kind or DEFAULT_KIND


def parse_entry(entry: str) -> LineRange | None:
    """Convert one ``L<n>`` or ``L<n>-L<m>`` token into a 0-indexed range.

    Returns None for tokens that do not describe a usable range: line 0,
    or an end line before the start line.
    """
    match = _ENTRY_PATTERN.match(entry)
    if match is None:
        return None
    start = int(match.group("start"))
    end = int(match.group("end") or start)
    if start < 1 or end < start:
        return None
    return LineRange(start_line=start - 1, end_line=end - 1)


def parse_line(
    line: str,
    base_path: str,
    source_path: str,
    source_line: int,
) -> list[Reference]:
    """Extract every reference declared on a single line.

    Args:
        line: Raw line of text from the source file.
        base_path: Workspace root the source file belongs to. Paths in the
            comment are resolved against it.
        source_path: Absolute, normalized path of the source file.
        source_line: 1-indexed position of ``line`` in the source file.

    Returns:
        References in the order they appear on the line. Candidates that
        fail to parse are skipped; a line without a match yields ``[]``.
    """
    results: list[Reference] = []
    matches = list(_REFERENCE_PATTERN.finditer(line))
    if not matches:
        return results

    kind = parse_kind(line)
    comment = line.strip()

    for match in matches:
        try:
            target_path = resolve_relative(base_path, match.group("path"))
        except (TypeError, ValueError) as exc:
            logger.debug(
                "Skipping reference path %r in %s:%d: %s",
                match.group("path"),
                source_path,
                source_line,
                exc,
            )
            continue

        for entry in match.group("entries").split(","):
            line_range = parse_entry(entry)
            if line_range is None:
                logger.debug(
                    "Skipping malformed entry %r in %s:%d",
                    entry,
                    source_path,
                    source_line,
                )
                continue
            results.append(
                Reference(
                    target_path=target_path,
                    source_path=source_path,
                    range=line_range,
                    kind=kind,
                    comment=comment,
                    source_line=source_line,
                )
            )

    return results


def parse_text(text: str, base_path: str, source_path: str) -> list[Reference]:
    """Parse every line of a source file's text."""
    references: list[Reference] = []
    for index, line in enumerate(text.split("\n")):
        references.extend(parse_line(line, base_path, source_path, index + 1))
    return references


__all__ = ["parse_entry", "parse_kind", "parse_line", "parse_text"]
