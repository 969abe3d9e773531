"""Incremental indexing engine and its workspace collaborators."""

from engine.indexer import IncrementalIndexer
from engine.workspace import ContentReader, FileSystemReader, WorkspaceRoots

__all__ = [
    "ContentReader",
    "FileSystemReader",
    "IncrementalIndexer",
    "WorkspaceRoots",
]
