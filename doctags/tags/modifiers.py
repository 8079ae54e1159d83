"""Modifier tags shared by classes and members."""

from __future__ import annotations

import re
from typing import Any, Mapping, MutableMapping, Sequence

from ..errors import MergeFailure
from ..models import ANY_MEMBER, CLASS_KIND, Position, Signature
from .base import (
    POS_AFTER_DOC,
    POS_BEFORE_DOC,
    FlagFragment,
    Fragment,
    Tag,
    TextFragment,
)

_VERSION = re.compile(r"\d[\w.-]*")


class FlagTag(Tag):
    """Boolean modifier like ``@static``; shows up as a signature flag."""

    merge_context = (CLASS_KIND, ANY_MEMBER)

    def parse_doc(self, scanner, position: Position) -> FlagFragment:  # type: ignore[no-untyped-def]
        return FlagFragment(key=self.key, position=position)  # type: ignore[arg-type]

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        record[self.key] = True  # type: ignore[index]


class PrivateTag(FlagTag):
    pattern = "private"
    key = "private"
    signature = Signature(long="private", short="PRI", tooltip="Not part of the public API")


class ProtectedTag(FlagTag):
    pattern = "protected"
    key = "protected"
    signature = Signature(long="protected", short="PRO", tooltip="For use by subclasses only")


class StaticTag(FlagTag):
    pattern = "static"
    key = "static"
    merge_context = (ANY_MEMBER,)
    signature = Signature(long="static", short="STA")


class ChainableTag(FlagTag):
    """``@chainable``: the method returns ``this`` unless documented otherwise."""

    pattern = "chainable"
    key = "chainable"
    merge_context = ("method",)
    signature = Signature(long="chainable", short=">", tooltip="Returns this")

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        if record.get("chainable") and not record.get("return"):
            record["return"] = {"type": "this", "doc": ""}


class AccessTag(Tag):
    """Derives a single ``access`` level from the private/protected flags."""

    key = "access"
    merge_context = (CLASS_KIND, ANY_MEMBER)

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        private = bool(record.get("private"))
        protected = bool(record.get("protected"))
        if private and protected:
            raise MergeFailure(f"'{record.get('name')}' is marked both @private and @protected")
        if private:
            record["access"] = "private"
        elif protected:
            record["access"] = "protected"
        else:
            record["access"] = "public"


class DeprecatedTag(Tag):
    """``@deprecated [version] text``."""

    pattern = "deprecated"
    key = "deprecated"
    merge_context = (CLASS_KIND, ANY_MEMBER)
    html_position = POS_BEFORE_DOC
    signature = Signature(long="deprecated", short="DEP")

    def parse_doc(self, scanner, position: Position) -> TextFragment:  # type: ignore[no-untyped-def]
        scanner.hw()
        version = scanner.match(_VERSION) or ""
        return TextFragment(key=self.key, position=position, text=version, multiline=True)

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        last = fragments[-1]
        record["deprecated"] = {"version": last.text or None, "text": last.doc}  # type: ignore[attr-defined]

    def format(self, record: MutableMapping[str, Any], formatter) -> None:  # type: ignore[no-untyped-def]
        record["deprecated"]["text"] = formatter.format(record["deprecated"].get("text") or "")

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render("deprecated.j2", deprecated=record["deprecated"])


class SinceTag(Tag):
    """``@since version``."""

    pattern = "since"
    key = "since"
    merge_context = (CLASS_KIND, ANY_MEMBER)
    html_position = POS_AFTER_DOC

    def parse_doc(self, scanner, position: Position) -> TextFragment:  # type: ignore[no-untyped-def]
        return TextFragment(key=self.key, position=position, text=scanner.rest_of_line())

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        record["since"] = fragments[-1].text  # type: ignore[attr-defined]

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render("since.j2", since=record["since"])


MODIFIER_TAGS = (
    PrivateTag,
    ProtectedTag,
    StaticTag,
    ChainableTag,
    DeprecatedTag,
    SinceTag,
    AccessTag,
)

__all__ = [
    "AccessTag",
    "ChainableTag",
    "DeprecatedTag",
    "FlagTag",
    "MODIFIER_TAGS",
    "PrivateTag",
    "ProtectedTag",
    "SinceTag",
    "StaticTag",
]
