"""Error taxonomy for the tag pipeline."""

from __future__ import annotations

from typing import Optional

from .models import Position, Record


class DocTagsError(RuntimeError):
    """Base error; carries the position of the offending comment or record."""

    def __init__(self, message: str, position: Optional[Position] = None) -> None:
        self.detail = message
        self.position = position
        super().__init__(f"{position}: {message}" if position is not None else message)


class UnknownTagError(DocTagsError):
    """Raised for an annotation with no registered tag. Non-fatal."""

    def __init__(self, pattern: str, position: Optional[Position] = None) -> None:
        super().__init__(f"Unknown tag @{pattern}", position)
        self.pattern = pattern


class ConflictError(DocTagsError):
    """Raised at registration when two tags claim the same pattern or key."""


class MalformedFragmentError(DocTagsError):
    """Raised when a tag cannot interpret the text following its marker."""


class MergeFailure(DocTagsError):
    """Raised when comment and code facts cannot be reconciled for a record.

    ``record`` holds the partially merged record, flagged ``incomplete``.
    """

    record: Optional[Record] = None


__all__ = [
    "ConflictError",
    "DocTagsError",
    "MalformedFragmentError",
    "MergeFailure",
    "UnknownTagError",
]
