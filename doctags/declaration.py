"""Declaration fact extractor for class-factory configuration literals.

The declaration walker hands over ``Ext.define("Name", {...})``-style
configuration objects as a mapping from property name to a value-expression
handle. Tags registered with a ``declaration_pattern`` interpret the handles;
tags with a ``declaration_default`` fill in baseline fields when their
property is missing.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, runtime_checkable

from .errors import MalformedFragmentError
from .logging import get_logger
from .models import CLASS_KIND, Position, Record
from .registry import TagRegistry


@runtime_checkable
class ValueExpr(Protocol):
    """Opaque handle to the value of one configuration property."""

    def value(self) -> Any:
        ...

    def string(self) -> str:
        ...

    def string_list(self) -> List[str]:
        ...

    def boolean(self) -> bool:
        ...


@dataclass(frozen=True)
class LiteralExpr:
    """Value expression over an already evaluated literal."""

    raw: Any
    source: Optional[str] = None

    def value(self) -> Any:
        return self.raw

    def string(self) -> str:
        if isinstance(self.raw, str):
            return self.raw
        raise MalformedFragmentError(f"Expected a string, got {self._describe()}")

    def string_list(self) -> List[str]:
        if isinstance(self.raw, str):
            return [self.raw]
        if isinstance(self.raw, (list, tuple)) and all(isinstance(item, str) for item in self.raw):
            return list(self.raw)
        raise MalformedFragmentError(f"Expected a string or list of strings, got {self._describe()}")

    def boolean(self) -> bool:
        if isinstance(self.raw, bool):
            return self.raw
        raise MalformedFragmentError(f"Expected a boolean, got {self._describe()}")

    def _describe(self) -> str:
        return self.source or repr(self.raw)


def literal_config(values: Mapping[str, Any]) -> Dict[str, ValueExpr]:
    """Wrap plain values as a configuration literal."""
    return {
        name: value if isinstance(value, ValueExpr) else LiteralExpr(value)
        for name, value in values.items()
    }


class DeclarationExtractor:
    """Runs declaration-parse routines and injects declared defaults."""

    def __init__(self, registry: TagRegistry) -> None:
        self.registry = registry
        self.logger = get_logger("declaration")

    def extract(
        self,
        literal: Mapping[str, ValueExpr],
        position: Optional[Position] = None,
        record: Optional[Record] = None,
    ) -> Record:
        if record is None:
            record = Record(kind=CLASS_KIND, position=position)

        for descriptor in self.registry.declaration_tags:
            name = descriptor.declaration_pattern
            if name and name in literal and descriptor.can("parse_declaration"):
                try:
                    descriptor.tag.parse_declaration(record, literal[name])  # type: ignore[attr-defined]
                except MalformedFragmentError as exc:
                    self.logger.warning(
                        "ignoring declaration property '%s': %s", name, exc.detail, extra={"position": position}
                    )
                continue
            if descriptor.declaration_default is not None:
                key, value = descriptor.declaration_default
                record[key] = copy.deepcopy(value)

        claimed = {d.declaration_pattern for d in self.registry.declaration_tags}
        for name in literal:
            if name not in claimed:
                self.logger.debug(
                    "no tag claims declaration property '%s'", name, extra={"position": position}
                )
        return record


__all__ = ["DeclarationExtractor", "LiteralExpr", "ValueExpr", "literal_config"]
