"""Core data models shared across doctags stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Mapping, MutableMapping, Optional

CLASS_KIND = "class"
ANY_MEMBER = "member"
DEFAULT_MEMBER_KIND = "property"


@dataclass(frozen=True)
class Position:
    """Location of a comment or declaration in a source file."""

    filename: str
    linenr: int

    def shift(self, lines: int) -> "Position":
        return Position(self.filename, self.linenr + lines)

    def __str__(self) -> str:
        return f"{self.filename}:{self.linenr}"


@dataclass(frozen=True)
class Signature:
    """Texts shown in a member signature for a flag-like tag."""

    long: str
    short: str
    tooltip: Optional[str] = None


class Record(MutableMapping[str, Any]):
    """Fields describing one class or member.

    ``kind`` and ``position`` are attributes, not mapping keys, and are fixed
    at construction.
    """

    def __init__(
        self,
        kind: Optional[str] = None,
        position: Optional[Position] = None,
        fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        self._kind = kind
        self._position = position
        self._fields: Dict[str, Any] = dict(fields or {})
        self.incomplete = False
        self.files: List[Position] = [position] if position is not None else []

    @property
    def kind(self) -> Optional[str]:
        return self._kind

    @property
    def position(self) -> Optional[Position]:
        return self._position

    def __getitem__(self, key: str) -> Any:
        return self._fields[key]

    def __setitem__(self, key: str, value: Any) -> None:
        if key == "kind":
            raise KeyError("Record kind is fixed at construction")
        self._fields[key] = value

    def __delitem__(self, key: str) -> None:
        del self._fields[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self._fields)
        data["kind"] = self._kind
        return data

    def __repr__(self) -> str:
        return f"Record(kind={self._kind!r}, position={self._position!r}, fields={self._fields!r})"


@dataclass
class RenderedFragment:
    """HTML emitted by one tag for one record."""

    position: int
    html: str
    tag: str


@dataclass
class RenderedRecord:
    """Final output handed to page assembly."""

    record: Record
    html: str
    position: Optional[Position]


@dataclass
class DocUnit:
    """One class or member as delivered by the tokenizer and declaration walker."""

    position: Position
    comment: Optional[str] = None
    code: Dict[str, Any] = field(default_factory=dict)
    declaration: Optional[Mapping[str, Any]] = None

    @property
    def code_kind(self) -> Optional[str]:
        if self.declaration is not None:
            return CLASS_KIND
        kind = self.code.get("kind")
        return kind if isinstance(kind, str) else None


def is_member_kind(kind: Optional[str]) -> bool:
    return kind is not None and kind not in {CLASS_KIND, ANY_MEMBER}


__all__ = [
    "ANY_MEMBER",
    "CLASS_KIND",
    "DEFAULT_MEMBER_KIND",
    "DocUnit",
    "Position",
    "Record",
    "RenderedFragment",
    "RenderedRecord",
    "Signature",
    "is_member_kind",
]
