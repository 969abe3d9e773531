"""Parsing utilities for reference comments."""

from parse.references import parse_entry, parse_kind, parse_line, parse_text

__all__ = [
    "parse_entry",
    "parse_kind",
    "parse_line",
    "parse_text",
]
