"""Clears identifying document-level metadata on an output PDF."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable, Optional

from ..config import DEFAULT_SANITIZED_FIELDS

if TYPE_CHECKING:
    import fitz


def sanitize_metadata(doc: fitz.Document, fields: Optional[Iterable[str]] = None) -> None:
    """
    Set every sanitized field to an empty value.

    Page count, page sizes and content are left alone. Running it on an
    already sanitized document changes nothing.
    """
    fields = list(fields or DEFAULT_SANITIZED_FIELDS)
    metadata = dict(doc.metadata or {})
    for name in fields:
        metadata[name] = ""
    doc.set_metadata({key: value for key, value in metadata.items() if isinstance(value, str)})


def metadata_is_clean(doc: fitz.Document, fields: Optional[Iterable[str]] = None) -> bool:
    metadata = doc.metadata or {}
    return all(not metadata.get(name) for name in (fields or DEFAULT_SANITIZED_FIELDS))
