"""Reference models shared by the parser, the store and its readers.

Line numbers are 0-indexed everywhere in these models. Comments write them
1-indexed; the parser converts on the way in.
"""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_KIND = "default"

# Column span used for whole-line ranges.
FULL_LINE_COLUMN = 999


class ReferenceKey(NamedTuple):
    """Identity of a reference: where it points and who declared it."""

    target_path: str
    source_path: str
    start_line: int
    end_line: int


class LineRange(BaseModel):
    """Inclusive line interval covering the full width of each line."""

    model_config = ConfigDict(frozen=True)

    start_line: int = Field(ge=0)
    end_line: int = Field(ge=0)
    start_col: int = 0
    end_col: int = FULL_LINE_COLUMN

    def contains_line(self, line: int) -> bool:
        return self.start_line <= line <= self.end_line


class Reference(BaseModel):
    """One pointer from a line of a source file to lines of a target file."""

    model_config = ConfigDict(frozen=True)

    target_path: str
    source_path: str
    range: LineRange
    kind: str = DEFAULT_KIND
    comment: str = ""
    source_line: int = Field(ge=1, description="1-indexed declaring line")

    @property
    def key(self) -> ReferenceKey:
        return ReferenceKey(
            self.target_path,
            self.source_path,
            self.range.start_line,
            self.range.end_line,
        )


class DefinitionLink(BaseModel):
    """Navigation link from a target range back to the declaring comment."""

    model_config = ConfigDict(frozen=True)

    origin: LineRange
    source_path: str
    source_range: LineRange
    kind: str = DEFAULT_KIND


class DocumentSymbol(BaseModel):
    """Outline entry for a target file, one per reference."""

    model_config = ConfigDict(frozen=True)

    name: str
    detail: str
    range: LineRange
    kind: str = DEFAULT_KIND


__all__ = [
    "DEFAULT_KIND",
    "DefinitionLink",
    "DocumentSymbol",
    "FULL_LINE_COLUMN",
    "LineRange",
    "Reference",
    "ReferenceKey",
]
