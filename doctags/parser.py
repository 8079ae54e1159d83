"""Comment annotation parser: turns one doc comment into tag fragments."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import ValidationError

from .errors import MalformedFragmentError, UnknownTagError
from .logging import get_logger
from .models import Position
from .registry import TagRegistry
from .scanner import DocScanner
from .tags.base import Fragment

# An @name only counts as a marker at the start of the text or after whitespace,
# which leaves e-mail addresses and inline {@link} references alone.
_MARKER = re.compile(r"(?<![^\s])@([A-Za-z_][\w-]*)")


@dataclass
class ParsedComment:
    """Fragments found in a comment plus the free text preceding them."""

    doc: str
    fragments: List[Fragment] = field(default_factory=list)
    position: Optional[Position] = None
    unknown: List[UnknownTagError] = field(default_factory=list)
    malformed: List[MalformedFragmentError] = field(default_factory=list)


class _TextSink:
    """Collects free-text chunks routed to the primary doc or a fragment."""

    def __init__(self) -> None:
        self.chunks: List[str] = []

    def add(self, text: str) -> None:
        if not text:
            return
        # Keep adjacent chunks from running together.
        if self.chunks and not self.chunks[-1][-1].isspace() and not text[0].isspace():
            self.chunks.append("\n")
        self.chunks.append(text)

    def value(self) -> str:
        return _clean("".join(self.chunks))


class CommentParser:
    """Walks annotation markers in order and dispatches to tag parse routines."""

    def __init__(self, registry: TagRegistry) -> None:
        self.registry = registry
        self.logger = get_logger("parser")

    def parse(self, text: str, position: Position) -> ParsedComment:
        scanner = DocScanner(text, position)
        primary = _TextSink()
        parsed = ParsedComment(doc="", position=position)

        marker = _MARKER.search(text)
        primary.add(text[: marker.start()] if marker else text)

        # Text after a marker goes to the current target: the primary doc, the
        # fragment capturing multiline text, or nowhere after a malformed
        # annotation. Unknown markers leave the target unchanged.
        sink: Optional[_TextSink] = primary
        capture: Optional[Fragment] = None
        while marker is not None:
            scanner.pos = marker.start()
            marker_position = scanner.position
            name = marker.group(1)
            scanner.pos = marker.end()
            descriptor = self.registry.by_pattern(name)

            if descriptor is None or not descriptor.can("parse_doc"):
                error = UnknownTagError(name, marker_position)
                parsed.unknown.append(error)
                self.logger.warning("Unknown tag @%s; skipping", name, extra={"position": marker_position})
                if sink is None:
                    sink = primary
            else:
                try:
                    fragments = self._invoke(descriptor.tag, scanner, marker_position)
                except MalformedFragmentError as exc:
                    if exc.position is None:
                        exc = MalformedFragmentError(exc.detail, marker_position)
                    parsed.malformed.append(exc)
                    self.logger.warning(
                        "Discarding @%s: %s", name, exc.detail, extra={"position": exc.position}
                    )
                    sink, capture = None, None
                else:
                    parsed.fragments.extend(fragments)
                    if fragments and fragments[-1].multiline:
                        capture = fragments[-1]
                        sink = _TextSink()
                        sink.add(capture.doc)
                    else:
                        sink, capture = primary, None

            start = max(scanner.pos, marker.end())
            marker = _MARKER.search(text, start)
            chunk = text[start : marker.start() if marker else len(text)]
            if sink is not None:
                sink.add(chunk.lstrip(" \t"))
                if capture is not None:
                    capture.doc = sink.value()

        parsed.doc = primary.value()
        return parsed

    def _invoke(self, tag: object, scanner: DocScanner, position: Position) -> List[Fragment]:
        try:
            result = tag.parse_doc(scanner, position)  # type: ignore[attr-defined]
        except ValidationError as exc:
            raise MalformedFragmentError(_first_error(exc), position) from exc
        if result is None:
            return []
        fragments = [result] if isinstance(result, Fragment) else list(result)
        for fragment in fragments:
            if not isinstance(fragment, Fragment):
                raise MalformedFragmentError(
                    f"{tag!r} returned {type(fragment).__name__} instead of a Fragment", position
                )
            if fragment.position is None:
                fragment.position = position
        return fragments


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def _clean(text: str) -> str:
    lines = [line.rstrip() for line in text.splitlines()]
    return "\n".join(lines).strip()


__all__ = ["CommentParser", "ParsedComment"]
