"""The primary documentation text of a class or member."""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping

from ..models import ANY_MEMBER, CLASS_KIND
from .base import POS_DOC, Tag


class DocTag(Tag):
    """Renders ``doc``. The combiner stores the text preceding the first annotation there."""

    key = "doc"
    merge_context = (CLASS_KIND, ANY_MEMBER)
    html_position = POS_DOC

    def format(self, record: MutableMapping[str, Any], formatter) -> None:  # type: ignore[no-untyped-def]
        record["doc"] = formatter.format(record["doc"])

    def to_html(self, record: Mapping[str, Any], context) -> str:  # type: ignore[no-untyped-def]
        return context.render("doc.j2", doc=record["doc"])
