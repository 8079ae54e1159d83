"""Renders finished records into ordered HTML fragments."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from jinja2 import Environment, FileSystemLoader

from .formatter import DocFormatter
from .logging import get_logger
from .models import Record, RenderedFragment, Signature
from .registry import TagRegistry

_DEFAULT_TEMPLATES = Path(__file__).with_name("templates")


@dataclass(frozen=True)
class RenderContext:
    """Handed to ``to_html``: template environment and signature table."""

    env: Environment
    signatures: Tuple[Tuple[str, Signature], ...] = ()

    def render(self, template_name: str, **values: Any) -> str:
        return self.env.get_template(template_name).render(**values).strip()

    def flags(self, record: Mapping[str, Any]) -> List[Signature]:
        """Signatures of flag tags set on ``record``."""
        return [signature for key, signature in self.signatures if has_value(record.get(key))]


class Renderer:
    """Orders applicable tags by display position and concatenates their HTML."""

    def __init__(
        self,
        registry: TagRegistry,
        *,
        formatter: Optional[DocFormatter] = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.registry = registry
        self.formatter = formatter
        self.logger = get_logger("renderer")
        env = self._create_env(templates_dir)
        # Doc text is HTML once the formatter has run; raw text is escaped.
        env.globals["markup"] = formatter is not None
        self.context = RenderContext(env=env, signatures=registry.signatures)

    def render_fragments(self, record: Record) -> List[RenderedFragment]:
        candidates = [
            descriptor
            for descriptor in self.registry.renderable(record.kind)
            if has_value(record.get(descriptor.key))
        ]
        # sorted() is stable, so ties keep registration order.
        ordered = sorted(candidates, key=lambda descriptor: descriptor.html_position)

        formatter = self.formatter.for_record(record) if self.formatter is not None else None
        fragments: List[RenderedFragment] = []
        for descriptor in ordered:
            if formatter is not None and descriptor.can("format"):
                descriptor.tag.format(record, formatter)  # type: ignore[attr-defined]
            html = descriptor.tag.to_html(record, self.context)  # type: ignore[attr-defined]
            if not html:
                continue
            fragments.append(
                RenderedFragment(position=descriptor.html_position, html=html, tag=descriptor.name)  # type: ignore[arg-type]
            )
        self.logger.debug("rendered %d fragment(s)", len(fragments), extra={"position": record.position})
        return fragments

    def render(self, record: Record) -> str:
        return join_fragments(self.render_fragments(record))

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(_DEFAULT_TEMPLATES))
        return Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )


def join_fragments(fragments: Sequence[RenderedFragment]) -> str:
    return "\n".join(fragment.html for fragment in fragments)


def has_value(value: Any) -> bool:
    """Presence test for record fields: ``None``, ``False`` and empty containers are absent."""
    if value is None or value is False:
        return False
    if isinstance(value, (str, list, tuple, dict, set)):
        return bool(value)
    return True


__all__ = ["RenderContext", "Renderer", "has_value", "join_fragments"]
