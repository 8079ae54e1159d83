"""Markdown formatting for doc text, run by tags before they render."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, List, Mapping, Optional, Protocol

import markdown
from markupsafe import escape

from .models import CLASS_KIND

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .config import MarkupConfig

_INLINE_LINK = re.compile(r"\{@link\s+([^\s}]+)(?:\s+([^}]*))?\}")


class MarkupFormatter(Protocol):
    """What tags see of the formatter: a single text-to-HTML call."""

    def format(self, text: str) -> str:
        """Return HTML for ``text``."""


@dataclass(frozen=True)
class DocFormatter:
    """Expands ``{@link}`` references and renders Markdown.

    ``owner`` is the class the record belongs to; it resolves member-only
    links such as ``{@link #setSize}``. Use :meth:`for_record` to get a copy
    bound to the record being rendered.
    """

    extensions: List[str] = field(default_factory=lambda: ["fenced_code", "tables"])
    link_template: str = "#!/api/{target}"
    owner: Optional[str] = None

    @classmethod
    def from_config(cls, config: "MarkupConfig") -> "DocFormatter":
        return cls(extensions=list(config.extensions), link_template=config.link_template)

    def for_record(self, record: Mapping[str, object]) -> "DocFormatter":
        kind = getattr(record, "kind", None)
        owner = record.get("name") if kind == CLASS_KIND else record.get("owner")
        return replace(self, owner=owner if isinstance(owner, str) else None)

    def format(self, text: str) -> str:
        if not text:
            return ""
        expanded = _INLINE_LINK.sub(self._link, text)
        return markdown.markdown(expanded, extensions=self.extensions)

    def _link(self, match: "re.Match[str]") -> str:
        target = match.group(1)
        label = (match.group(2) or "").strip()
        if target.startswith("#"):
            if not label:
                label = target[1:]
            if self.owner:
                target = f"{self.owner}{target}"
        href = self.link_template.format(target=target.replace("#", "-"))
        return f'<a href="{escape(href)}">{escape(label or target)}</a>'


__all__ = ["DocFormatter", "MarkupFormatter"]
