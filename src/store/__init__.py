"""In-memory reference index."""

from store.reference_store import ReferenceStore

__all__ = ["ReferenceStore"]
