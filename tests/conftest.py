from __future__ import annotations

from typing import Any, Callable

import pytest

from doctags.models import DocUnit, Position
from doctags.pipeline import Pipeline
from doctags.registry import TagRegistry, default_registry


@pytest.fixture(scope="session")
def registry() -> TagRegistry:
    """Registry holding the built-in tags; immutable, so shared across tests."""
    return default_registry()


@pytest.fixture
def position() -> Position:
    return Position("src/Panel.js", 10)


@pytest.fixture
def pipeline(registry: TagRegistry) -> Pipeline:
    return Pipeline(registry)


@pytest.fixture
def make_unit(position: Position) -> Callable[..., DocUnit]:
    """Build a unit from comment body lines plus optional code facts."""

    def _make(*lines: str, declaration: Any = None, **code: Any) -> DocUnit:
        comment = None
        if lines:
            comment = "/**\n" + "".join(f" * {line}\n" for line in lines) + " */"
        return DocUnit(position=position, comment=comment, code=dict(code), declaration=declaration)

    return _make
