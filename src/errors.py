"""Exception types shared by the index engine and its collaborators."""

from __future__ import annotations


class XrefError(Exception):
    """Base class for xrefmap errors."""


class MissingWorkspaceRootError(XrefError):
    """Raised when a source file does not live under any workspace root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No workspace root contains {path}")


class InconsistentIndexError(XrefError, AssertionError):
    """Raised when the reference index breaks one of its own invariants.

    A key that a source claims to own must always resolve to a stored
    reference. Hitting this error means a bug, not bad input.
    """


class ConfigError(XrefError):
    """Raised when config file exists but cannot be parsed."""


__all__ = [
    "ConfigError",
    "InconsistentIndexError",
    "MissingWorkspaceRootError",
    "XrefError",
]
