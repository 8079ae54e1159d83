"""Class-level tags, most of which also read class declarations."""

from __future__ import annotations

from typing import Any, List, Mapping, MutableMapping, Sequence

from ..errors import MalformedFragmentError, MergeFailure
from ..models import CLASS_KIND, Position
from .base import (
    POS_SIGNATURE,
    FlagFragment,
    Fragment,
    NameListFragment,
    Tag,
    TypedFragment,
    append_doc,
    code_matches,
)


class ClassTag(Tag):
    """``@class [Name]``; stores the class header under ``class`` after merge."""

    pattern = "class"
    key = "class"
    merge_context = (CLASS_KIND,)
    html_position = POS_SIGNATURE

    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        return TypedFragment(key=self.key, position=position, name=scanner.ident_chain(), multiline=True)

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        for fragment in fragments:
            if fragment.name:  # type: ignore[attr-defined]
                record["name"] = fragment.name  # type: ignore[attr-defined]
            append_doc(record, fragment.doc)

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        name = record.get("name")
        if not name:
            raise MergeFailure("class has no name in comment or code")
        record["class"] = name

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render(
            "class.j2",
            name=record["class"],
            extends=record.get("extends"),
            mixins=record.get("mixins") or [],
            aliases=record.get("aliases") or [],
            flags=context.flags(record),
        )


class ExtendsTag(Tag):
    """``@extends Name``; declarations use ``extend`` and default to ``Ext.Base``."""

    pattern = "extends"
    key = "extends"
    merge_context = (CLASS_KIND,)
    declaration_pattern = "extend"
    declaration_default = ("extends", "Ext.Base")

    def parse_doc(self, scanner, position: Position) -> NameListFragment:  # type: ignore[no-untyped-def]
        name = scanner.ident_chain()
        if not name:
            raise MalformedFragmentError("@extends requires a class name", position)
        return NameListFragment(key=self.key, position=position, names=[name])

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        record["extends"] = fragments[-1].names[-1]  # type: ignore[attr-defined]

    def parse_declaration(self, record: MutableMapping[str, Any], expr) -> None:  # type: ignore[no-untyped-def]
        record["extends"] = expr.string()


class NameListTag(Tag):
    """A class tag holding a list of names, e.g. ``@mixins A B``.

    Documented and declared names are unioned, documented names first.
    """

    merge_context = (CLASS_KIND,)

    def parse_doc(self, scanner, position: Position) -> NameListFragment:  # type: ignore[no-untyped-def]
        names: List[str] = []
        while True:
            name = scanner.ident_chain()
            if not name:
                break
            names.append(name)
            scanner.match(r"[ \t]*,")
        if not names:
            raise MalformedFragmentError(f"@{self.pattern} requires at least one name", position)
        return NameListFragment(key=self.key, position=position, names=names)  # type: ignore[arg-type]

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        names: List[str] = []
        for fragment in fragments:
            _extend_unique(names, fragment.names)  # type: ignore[attr-defined]
        record[self.key] = names  # type: ignore[index]

    def parse_declaration(self, record: MutableMapping[str, Any], expr) -> None:  # type: ignore[no-untyped-def]
        names = list(record.get(self.key) or [])  # type: ignore[arg-type]
        _extend_unique(names, expr.string_list())
        record[self.key] = names  # type: ignore[index]

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        names = list(docs.get(self.key) or [])  # type: ignore[arg-type]
        if code_matches(docs, code):
            _extend_unique(names, code.get(self.key) or [])  # type: ignore[arg-type]
        if names:
            record[self.key] = names  # type: ignore[index]


class MixinsTag(NameListTag):
    pattern = "mixins"
    key = "mixins"
    declaration_pattern = "mixins"


class AliasTag(NameListTag):
    pattern = "alias"
    key = "aliases"
    declaration_pattern = "alias"


class XtypeTag(Tag):
    """``@xtype name`` and the ``xtype`` declaration both register ``widget.<name>`` aliases."""

    pattern = "xtype"
    key = "aliases"
    declaration_pattern = "xtype"

    def parse_doc(self, scanner, position: Position) -> NameListFragment:  # type: ignore[no-untyped-def]
        names = []
        while True:
            name = scanner.ident()
            if not name:
                break
            names.append(f"widget.{name}")
        if not names:
            raise MalformedFragmentError("@xtype requires a name", position)
        return NameListFragment(key=self.key, position=position, names=names)

    def parse_declaration(self, record: MutableMapping[str, Any], expr) -> None:  # type: ignore[no-untyped-def]
        names = list(record.get("aliases") or [])
        _extend_unique(names, [f"widget.{name}" for name in expr.string_list()])
        record["aliases"] = names


class RequiresTag(NameListTag):
    pattern = "requires"
    key = "requires"
    declaration_pattern = "requires"


class UsesTag(NameListTag):
    pattern = "uses"
    key = "uses"
    declaration_pattern = "uses"


class SingletonTag(Tag):
    pattern = "singleton"
    key = "singleton"
    merge_context = (CLASS_KIND,)
    declaration_pattern = "singleton"

    def parse_doc(self, scanner, position: Position) -> FlagFragment:  # type: ignore[no-untyped-def]
        return FlagFragment(key=self.key, position=position)

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        record["singleton"] = True

    def parse_declaration(self, record: MutableMapping[str, Any], expr) -> None:  # type: ignore[no-untyped-def]
        record["singleton"] = expr.boolean()


def _extend_unique(target: List[str], names: Sequence[str]) -> None:
    for name in names:
        if name not in target:
            target.append(name)


CLASS_TAGS = (
    ClassTag,
    ExtendsTag,
    MixinsTag,
    AliasTag,
    XtypeTag,
    RequiresTag,
    UsesTag,
    SingletonTag,
)

__all__ = [
    "AliasTag",
    "CLASS_TAGS",
    "ClassTag",
    "ExtendsTag",
    "MixinsTag",
    "NameListTag",
    "RequiresTag",
    "SingletonTag",
    "UsesTag",
    "XtypeTag",
]
