"""Base class, capability protocols and fragment schemas for tags.

A tag is described by plain class attributes (``pattern``, ``key``,
``merge_context``, ...). Each pipeline stage is an optional capability: a tag
takes part in a stage only when it defines that stage's method. The registry
inspects tags once against the protocols below and never calls a stage
method a tag does not have.

Display positions order rendered fragments within a record::

    POS_SIGNATURE   0   member or class header
    POS_BEFORE_DOC  1   deprecation notices
    POS_DOC         2   main documentation
    POS_AFTER_DOC   3   version notes
    POS_PARAMS      4
    POS_RETURN      5
    POS_THROWS      6
"""

from __future__ import annotations

import json
import re
from typing import (
    TYPE_CHECKING,
    Any,
    Dict,
    FrozenSet,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    Union,
    runtime_checkable,
)

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..models import Position, Signature

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from ..declaration import ValueExpr
    from ..formatter import MarkupFormatter
    from ..renderer import RenderContext
    from ..scanner import DocScanner

POS_SIGNATURE = 0
POS_BEFORE_DOC = 1
POS_DOC = 2
POS_AFTER_DOC = 3
POS_PARAMS = 4
POS_RETURN = 5
POS_THROWS = 6

_NAME_PATTERN = re.compile(r"[\w$]+(?:\.[\w$]+)*")


class Fragment(BaseModel):
    """Raw fact produced by one annotation occurrence."""

    model_config = ConfigDict(extra="allow")

    key: str
    position: Optional[Position] = None
    doc: str = ""
    multiline: bool = False


class FlagFragment(Fragment):
    """Annotation that carries no payload, like ``@private``."""


class TextFragment(Fragment):
    """Annotation followed by a single line of text, like ``@since 4.1``."""

    text: str = ""


class NameListFragment(Fragment):
    """Annotation followed by class or alias names."""

    names: List[str] = Field(default_factory=list)

    @field_validator("names")
    @classmethod
    def _check_names(cls, value: List[str]) -> List[str]:
        for name in value:
            if not _NAME_PATTERN.fullmatch(name):
                raise ValueError(f"invalid name '{name}'")
        return value


class TypedFragment(Fragment):
    """``{Type} [name=default]`` style annotation."""

    type: Optional[str] = None
    name: Optional[str] = None
    default: Optional[str] = None
    optional: bool = False

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _NAME_PATTERN.fullmatch(value):
            raise ValueError(f"invalid name '{value}'")
        return value


FragmentResult = Union[None, Fragment, Sequence[Fragment]]


class Tag:
    """Base class for all tags.

    ``pattern`` is the annotation name without the ``@``. ``key`` is the
    field under which combined data is stored in the record.
    ``merge_context`` lists the record kinds the tag merges and renders
    for: ``"class"``, member kinds such as ``"cfg"``, or ``"member"`` for
    every member kind.
    """

    pattern: Optional[str] = None
    key: Optional[str] = None
    member_type: Optional[str] = None
    signature: Optional[Signature] = None
    declaration_pattern: Optional[str] = None
    declaration_default: Optional[Tuple[str, Any]] = None
    merge_context: Tuple[str, ...] = ()
    html_position: Optional[int] = None

    @property
    def name(self) -> str:
        return self.pattern or self.key or type(self).__name__

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"


@runtime_checkable
class DocParsing(Protocol):
    def parse_doc(self, scanner: "DocScanner", position: Position) -> FragmentResult:
        """Consume the text after the marker and return fragments."""


@runtime_checkable
class DocProcessing(Protocol):
    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        """Fold all fragments stored under the tag's key into the record."""


@runtime_checkable
class DeclarationParsing(Protocol):
    def parse_declaration(self, record: MutableMapping[str, Any], expr: "ValueExpr") -> None:
        """Interpret the value of ``declaration_pattern`` in a class declaration."""


@runtime_checkable
class Merging(Protocol):
    def merge(
        self,
        record: MutableMapping[str, Any],
        docs: Mapping[str, Any],
        code: Mapping[str, Any],
    ) -> None:
        """Reconcile comment and code facts into the final record."""


@runtime_checkable
class Formatting(Protocol):
    def format(self, record: MutableMapping[str, Any], formatter: "MarkupFormatter") -> None:
        """Replace markup text fields of the record with formatted HTML."""


@runtime_checkable
class HtmlRendering(Protocol):
    def to_html(self, record: Mapping[str, Any], context: "RenderContext") -> str:
        """Return the HTML fragment for the record."""


CAPABILITIES: Dict[str, type] = {
    "parse_doc": DocParsing,
    "process_doc": DocProcessing,
    "parse_declaration": DeclarationParsing,
    "merge": Merging,
    "format": Formatting,
    "to_html": HtmlRendering,
}


def capabilities_of(tag: object) -> FrozenSet[str]:
    return frozenset(name for name, protocol in CAPABILITIES.items() if isinstance(tag, protocol))


def code_matches(docs: Mapping[str, Any], code: Mapping[str, Any]) -> bool:
    """True when code facts describe what the comment documents."""
    doc_name = docs.get("name")
    return not doc_name or code.get("name") in (None, doc_name)


def parse_typed(scanner: "DocScanner", position: Position, key: str, *, multiline: bool = True) -> TypedFragment:
    """Parse ``{Type} [name=default]`` into a fragment; both parts optional."""
    type_ = scanner.typedef()
    name, default, optional = scanner.name_spec()
    return TypedFragment(
        key=key,
        position=position,
        type=type_,
        name=name,
        default=default,
        optional=optional,
        multiline=multiline,
    )


def literal_text(value: Any) -> str:
    """Render a code-derived default value the way it would appear in source."""
    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return str(value)


def append_doc(record: MutableMapping[str, Any], text: str) -> None:
    text = text.strip()
    if not text:
        return
    existing = record.get("doc") or ""
    record["doc"] = f"{existing}\n\n{text}" if existing else text


__all__ = [
    "CAPABILITIES",
    "FlagFragment",
    "Fragment",
    "FragmentResult",
    "NameListFragment",
    "POS_AFTER_DOC",
    "POS_BEFORE_DOC",
    "POS_DOC",
    "POS_PARAMS",
    "POS_RETURN",
    "POS_SIGNATURE",
    "POS_THROWS",
    "Tag",
    "TextFragment",
    "TypedFragment",
    "append_doc",
    "capabilities_of",
    "code_matches",
    "literal_text",
    "parse_typed",
]
