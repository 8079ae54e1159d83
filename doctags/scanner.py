"""Cursor over the text of one doc comment, used by tag parse routines."""

from __future__ import annotations

import re
from typing import Optional, Pattern, Tuple, Union

from .errors import MalformedFragmentError
from .models import Position

_IDENT = re.compile(r"[\w$]+")
_IDENT_CHAIN = re.compile(r"[\w$]+(?:\.[\w$]+)*")
_HW = re.compile(r"[ \t]*")
_COMMENT_OPEN = re.compile(r"^\s*/\*\*?")
_COMMENT_CLOSE = re.compile(r"\*/\s*$")
_LINE_STAR = re.compile(r"^[ \t]*\*(?!/) ?")

PatternLike = Union[str, Pattern[str]]


def purify(comment: str) -> str:
    """Strip ``/** ... */`` delimiters and leading ``*`` gutters from a comment."""
    text = _COMMENT_CLOSE.sub("", _COMMENT_OPEN.sub("", comment, count=1), count=1)
    lines = [_LINE_STAR.sub("", line, count=1) for line in text.splitlines()]
    while lines and not lines[0].strip():
        lines.pop(0)
    return "\n".join(lines).rstrip()


class DocScanner:
    """Positioned reader over comment text.

    Parse routines consume from ``pos`` onwards; the comment parser resumes
    scanning for the next annotation marker wherever the routine stopped.
    """

    def __init__(self, text: str, position: Position) -> None:
        self.text = text
        self.pos = 0
        self.start = position

    @property
    def position(self) -> Position:
        return self.start.shift(self.text.count("\n", 0, self.pos))

    def eos(self) -> bool:
        return self.pos >= len(self.text)

    def look(self, pattern: PatternLike) -> bool:
        return _compile(pattern).match(self.text, self.pos) is not None

    def match(self, pattern: PatternLike) -> Optional[str]:
        found = _compile(pattern).match(self.text, self.pos)
        if found is None:
            return None
        self.pos = found.end()
        return found.group(0)

    def hw(self) -> None:
        """Skip horizontal whitespace."""
        self.match(_HW)

    def ident(self) -> Optional[str]:
        self.hw()
        return self.match(_IDENT)

    def ident_chain(self) -> Optional[str]:
        self.hw()
        return self.match(_IDENT_CHAIN)

    def rest_of_line(self) -> str:
        self.hw()
        end = self.text.find("\n", self.pos)
        if end == -1:
            end = len(self.text)
        line = self.text[self.pos : end]
        self.pos = end
        return line.strip()

    def typedef(self) -> Optional[str]:
        """Consume a ``{Type}`` expression, honouring nested braces."""
        self.hw()
        if not self.look(r"\{"):
            return None
        depth = 0
        for index in range(self.pos, len(self.text)):
            char = self.text[index]
            if char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    inner = self.text[self.pos + 1 : index].strip()
                    self.pos = index + 1
                    if not inner:
                        raise MalformedFragmentError("Empty type definition", self.position)
                    return inner
        raise MalformedFragmentError("Unterminated type definition", self.position)

    def name_spec(self) -> Tuple[Optional[str], Optional[str], bool]:
        """Consume ``name`` or ``[name=default]``; returns ``(name, default, optional)``."""
        self.hw()
        if not self.look(r"\["):
            return self.ident_chain(), None, False
        close = self.text.find("]", self.pos)
        newline = self.text.find("\n", self.pos)
        if close == -1 or (newline != -1 and newline < close):
            raise MalformedFragmentError("Unterminated optional name", self.position)
        inner = self.text[self.pos + 1 : close]
        self.pos = close + 1
        name, _, default = inner.partition("=")
        name = name.strip()
        if not _IDENT_CHAIN.fullmatch(name):
            raise MalformedFragmentError(f"Invalid name '{name}'", self.position)
        return name, (default.strip() or None), True


def _compile(pattern: PatternLike) -> Pattern[str]:
    return re.compile(pattern) if isinstance(pattern, str) else pattern


__all__ = ["DocScanner", "purify"]
