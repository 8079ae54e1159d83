"""Tests for doctags.declaration."""

from __future__ import annotations

import pytest

from doctags.declaration import DeclarationExtractor, LiteralExpr, ValueExpr, literal_config
from doctags.errors import MalformedFragmentError
from doctags.models import Position, Record
from doctags.registry import TagRegistry
from tests._fixtures.tags import RecordingTag, build_registry


def test_routine_runs_when_property_present(position: Position) -> None:
    tag = RecordingTag("base", declaration_pattern="extend", declaration_default=("base", "Root"))
    extractor = DeclarationExtractor(build_registry([tag]))

    record = extractor.extract(literal_config({"extend": "My.Base"}), position)

    assert tag.declaration_calls == ["My.Base"]
    assert record["base"] == "My.Base"


def test_default_applies_when_property_absent(position: Position) -> None:
    tag = RecordingTag("base", declaration_pattern="extend", declaration_default=("base", ["Root"]))
    extractor = DeclarationExtractor(build_registry([tag]))

    first = extractor.extract({}, position)
    second = extractor.extract({}, position)

    assert tag.declaration_calls == []
    assert first["base"] == ["Root"]
    first["base"].append("mutated")
    assert second["base"] == ["Root"]


def test_builtin_declaration_tags(registry: TagRegistry, position: Position) -> None:
    literal = literal_config(
        {
            "extend": "Ext.Panel",
            "mixins": ["My.Mixin"],
            "alias": "widget.mypanel",
            "xtype": "grid",
            "singleton": True,
            "listeners": {},
        }
    )

    record = DeclarationExtractor(registry).extract(literal, position)

    assert record.kind == "class"
    assert record["extends"] == "Ext.Panel"
    assert record["mixins"] == ["My.Mixin"]
    assert record["aliases"] == ["widget.mypanel", "widget.grid"]
    assert record["singleton"] is True


def test_missing_extend_defaults_to_base_class(registry: TagRegistry, position: Position) -> None:
    record = DeclarationExtractor(registry).extract({}, position)

    assert record["extends"] == "Ext.Base"


def test_malformed_property_is_skipped(registry: TagRegistry, position: Position, caplog) -> None:
    record = DeclarationExtractor(registry).extract(literal_config({"extend": 5}), position)

    assert "extends" not in record
    assert "ignoring declaration property 'extend'" in caplog.text


def test_extract_fills_given_record(registry: TagRegistry, position: Position) -> None:
    record = Record(kind="class", position=position, fields={"name": "My.Panel"})

    result = DeclarationExtractor(registry).extract(literal_config({"uses": "Ext.util.Format"}), position, record)

    assert result is record
    assert record["name"] == "My.Panel"
    assert record["uses"] == ["Ext.util.Format"]


def test_literal_expr_conversions() -> None:
    assert LiteralExpr("a").string_list() == ["a"]
    assert LiteralExpr(["a", "b"]).string_list() == ["a", "b"]
    assert LiteralExpr(False).boolean() is False
    assert isinstance(LiteralExpr(1), ValueExpr)
    with pytest.raises(MalformedFragmentError):
        LiteralExpr(["a", 1]).string_list()
    with pytest.raises(MalformedFragmentError):
        LiteralExpr("yes").boolean()
