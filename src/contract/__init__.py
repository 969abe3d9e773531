"""Data contract for the reference index.

These are the types collaborators receive from the index. They are
immutable; the only way to change what the index holds is to reconcile or
delete a source file.
"""

from contract.models import (
    DEFAULT_KIND,
    FULL_LINE_COLUMN,
    DefinitionLink,
    DocumentSymbol,
    LineRange,
    Reference,
    ReferenceKey,
)

__all__ = [
    "DEFAULT_KIND",
    "FULL_LINE_COLUMN",
    "DefinitionLink",
    "DocumentSymbol",
    "LineRange",
    "Reference",
    "ReferenceKey",
]
