"""Tags that define member kinds: ``@cfg``, ``@property``, ``@method``, ``@event``."""

from __future__ import annotations

import copy
from typing import Any, Dict, List, Mapping, MutableMapping, Sequence

from ..errors import MergeFailure
from ..models import Position
from .base import (
    POS_SIGNATURE,
    Fragment,
    Tag,
    TypedFragment,
    append_doc,
    code_matches,
    literal_text,
    parse_typed,
)


class MemberTag(Tag):
    """Shared behaviour of member tags.

    Each member tag stores its combined signature text under its own key,
    which is also what it renders as the member header.
    """

    def __init__(self) -> None:
        self.key = self.member_type
        self.merge_context = (self.member_type,)  # type: ignore[assignment]

    html_position = POS_SIGNATURE

    def process_doc(
        self, record: MutableMapping[str, Any], fragments: Sequence[Fragment], position: Position
    ) -> None:
        # The last annotation wins for scalar fields; every annotation's text is kept.
        for fragment in fragments:
            for field in ("name", "type", "default"):
                value = getattr(fragment, field, None)
                if value is not None:
                    record[field] = value
            if getattr(fragment, "optional", False):
                record["optional"] = True
            append_doc(record, fragment.doc)

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        if not record.get("name"):
            raise MergeFailure(f"{self.member_type} has no name in comment or code")
        if record.get("default") is not None and not isinstance(record["default"], str):
            record["default"] = literal_text(record["default"])
        record[self.key] = self.signature_text(record)  # type: ignore[index]

    def signature_text(self, record: Mapping[str, Any]) -> str:
        return str(record["name"])

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render(
            "signature.j2",
            kind=self.member_type,
            signature=record[self.key],  # type: ignore[index]
            default=record.get("default"),
            flags=context.flags(record),
        )


class _TypedMemberTag(MemberTag):
    def parse_doc(self, scanner, position: Position) -> TypedFragment:  # type: ignore[no-untyped-def]
        return parse_typed(scanner, position, self.key)  # type: ignore[arg-type]

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        if not record.get("type"):
            record["type"] = "Object"
        super().merge(record, docs, code)

    def signature_text(self, record: Mapping[str, Any]) -> str:
        return f"{record['name']} : {record['type']}"


class CfgTag(_TypedMemberTag):
    pattern = "cfg"
    member_type = "cfg"


class PropertyTag(_TypedMemberTag):
    pattern = "property"
    member_type = "property"


class _CallableMemberTag(MemberTag):
    def parse_doc(self, scanner, position: Position) -> Fragment:  # type: ignore[no-untyped-def]
        return TypedFragment(key=self.key, position=position, name=scanner.ident_chain(), multiline=True)  # type: ignore[arg-type]

    def merge(self, record: MutableMapping[str, Any], docs: Mapping[str, Any], code: Mapping[str, Any]) -> None:
        record["params"] = merge_params(docs.get("params"), code.get("params") if code_matches(docs, code) else None)
        _default_types(record["params"])
        super().merge(record, docs, code)

    def signature_text(self, record: Mapping[str, Any]) -> str:
        names = []
        for param in record.get("params") or []:
            name = param["name"]
            names.append(f"[{name}]" if param.get("optional") else name)
        return f"{record['name']}({', '.join(names)})"


class MethodTag(_CallableMemberTag):
    pattern = "method"
    member_type = "method"

    def signature_text(self, record: Mapping[str, Any]) -> str:
        text = super().signature_text(record)
        returns = record.get("return") or {}
        return_type = returns.get("type")
        if return_type and return_type != "undefined":
            return f"{text} : {return_type}"
        return text


class EventTag(_CallableMemberTag):
    pattern = "event"
    member_type = "event"


def merge_params(doc_params: Any, code_params: Any) -> List[Dict[str, Any]]:
    """Documented params win; code params fill in trailing names the docs lack."""
    merged: List[Dict[str, Any]] = [copy.deepcopy(dict(param)) for param in (doc_params or [])]
    code_list = [_as_param(param) for param in (code_params or [])]
    for index, param in enumerate(code_list):
        if index < len(merged):
            if not merged[index].get("type") and param.get("type"):
                merged[index]["type"] = param["type"]
            continue
        merged.append(param)
    return merged


def _as_param(param: Any) -> Dict[str, Any]:
    if isinstance(param, str):
        return {"name": param, "type": None, "doc": "", "optional": False, "properties": []}
    if isinstance(param, Mapping) and isinstance(param.get("name"), str):
        result = {"type": None, "doc": "", "optional": False, "properties": []}
        result.update(param)
        return result
    raise MergeFailure(f"Unsupported code parameter {param!r}")


def _default_types(params: List[Dict[str, Any]]) -> None:
    # Runs after code params had their chance to supply a type.
    for param in params:
        if not param.get("type"):
            param["type"] = "Object"
        _default_types(param.get("properties") or [])


MEMBER_TAGS = (CfgTag, PropertyTag, MethodTag, EventTag)

__all__ = ["CfgTag", "EventTag", "MEMBER_TAGS", "MemberTag", "MethodTag", "PropertyTag", "merge_params"]
