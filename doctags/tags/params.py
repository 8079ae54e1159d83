"""Detail tags for callables and typed members: params, return values, exceptions, types."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, MutableMapping, Sequence

from ..errors import MalformedFragmentError
from ..logging import get_logger
from ..models import Position
from .base import (
    POS_PARAMS,
    POS_RETURN,
    POS_THROWS,
    Fragment,
    Tag,
    TypedFragment,
    parse_typed,
)

_logger = get_logger("tags.params")


class ParamTag(Tag):
    """``@param {Type} [name=default] text``.

    Dotted names document properties of an earlier param, so
    ``@param options.size`` nests under ``options``.
    """

    pattern = "param"
    key = "params"
    merge_context = ("method", "event")
    html_position = POS_PARAMS

    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        fragment = parse_typed(scanner, position, self.key)
        if not fragment.name:
            raise MalformedFragmentError("@param requires a name", position)
        return fragment

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        params: List[Dict[str, Any]] = []
        for fragment in fragments:
            param = {
                "name": fragment.name,  # type: ignore[attr-defined]
                "type": fragment.type,  # type: ignore[attr-defined]
                "default": fragment.default,  # type: ignore[attr-defined]
                "optional": fragment.optional,  # type: ignore[attr-defined]
                "doc": fragment.doc,
                "properties": [],
            }
            _attach(params, param, fragment.position or position)
        record["params"] = params

    def format(self, record: MutableMapping[str, Any], formatter) -> None:  # type: ignore[no-untyped-def]
        _format_params(record["params"], formatter)

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render("params.j2", params=record["params"])


def _attach(params: List[Dict[str, Any]], param: Dict[str, Any], position: Position) -> None:
    parent_path, _, leaf = param["name"].rpartition(".")
    if not parent_path:
        params.append(param)
        return
    siblings = params
    parent = None
    for part in parent_path.split("."):
        parent = next((item for item in siblings if item["name"] == part), None)
        if parent is None:
            break
        siblings = parent["properties"]
    if parent is None:
        _logger.warning("no parent param documented for '%s'", param["name"], extra={"position": position})
        params.append(param)
        return
    param["name"] = leaf
    parent["properties"].append(param)


def _format_params(params: List[Dict[str, Any]], formatter) -> None:  # type: ignore[no-untyped-def]
    for param in params:
        param["doc"] = formatter.format(param.get("doc") or "")
        _format_params(param.get("properties") or [], formatter)


class ReturnTag(Tag):
    """``@return {Type} text``; methods without one return ``undefined``."""

    pattern = "return"
    key = "return"
    merge_context = ("method",)
    html_position = POS_RETURN

    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        return TypedFragment(key=self.key, position=position, type=scanner.typedef(), multiline=True)

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        last = fragments[-1]
        record["return"] = {"type": last.type or "Object", "doc": last.doc}  # type: ignore[attr-defined]

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        if not record.get("return"):
            record["return"] = {"type": "undefined", "doc": ""}

    def format(self, record: MutableMapping[str, Any], formatter) -> None:  # type: ignore[no-untyped-def]
        record["return"]["doc"] = formatter.format(record["return"].get("doc") or "")

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        returns = record["return"]
        if returns.get("type") == "undefined" and not returns.get("doc"):
            return ""
        return context.render("return.j2", returns=returns)


class ReturnsTag(Tag):
    """``@returns``, stored under the key owned by ``@return``."""

    pattern = "returns"
    key = "return"

    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        return TypedFragment(key=self.key, position=position, type=scanner.typedef(), multiline=True)


class ThrowsTag(Tag):
    """``@throws {Type} text``; may appear several times."""

    pattern = "throws"
    key = "throws"
    merge_context = ("method",)
    html_position = POS_THROWS

    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        return TypedFragment(key=self.key, position=position, type=scanner.typedef(), multiline=True)

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        record["throws"] = [
            {"type": fragment.type or "Object", "doc": fragment.doc}  # type: ignore[attr-defined]
            for fragment in fragments
        ]

    def format(self, record: MutableMapping[str, Any], formatter) -> None:  # type: ignore[no-untyped-def]
        for item in record["throws"]:
            item["doc"] = formatter.format(item.get("doc") or "")

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render("throws.j2", throws=record["throws"])


class TypeTag(Tag):
    """``@type {Type}`` or ``@type Type`` for configs and properties."""

    pattern = "type"
    key = "type"

    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        type_ = scanner.typedef() or scanner.match(r"[\w$.|<>\[\]*]+")
        if not type_:
            raise MalformedFragmentError("@type requires a type", position)
        return TypedFragment(key=self.key, position=position, type=type_)

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        record["type"] = fragments[-1].type  # type: ignore[attr-defined]


__all__ = ["ParamTag", "ReturnTag", "ReturnsTag", "ThrowsTag", "TypeTag"]
