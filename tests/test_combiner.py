"""Tests for doctags.combiner."""

from __future__ import annotations

from doctags.combiner import FragmentCombiner, group_fragments
from doctags.models import Position
from doctags.parser import CommentParser, ParsedComment
from doctags.registry import TagRegistry
from doctags.tags.base import Fragment
from tests._fixtures.tags import RecordingTag, build_registry


def _combine(registry: TagRegistry, text: str, position: Position):
    parsed = CommentParser(registry).parse(text, position)
    return FragmentCombiner(registry).combine(parsed)


def test_each_key_is_combined_once_with_all_fragments(position: Position) -> None:
    note = RecordingTag("note")
    other = RecordingTag("other")
    registry = build_registry([note, other])

    record = _combine(registry, "@note one\n@other x\n@note two\n@note three", position)

    assert note.process_calls == [["one", "two", "three"]]
    assert other.process_calls == [["x"]]
    assert record["note"] == ["one", "two", "three"]


def test_primary_doc_is_stored_under_doc(registry: TagRegistry, position: Position) -> None:
    record = _combine(registry, "Main text.\n@private", position)

    assert record["doc"] == "Main text."
    assert record["private"] is True
    assert record.kind is None
    assert record.position == position


def test_unowned_fragments_are_dropped(registry: TagRegistry, position: Position) -> None:
    parsed = ParsedComment(doc="x", fragments=[Fragment(key="orphan")], position=position)

    record = FragmentCombiner(registry).combine(parsed)

    assert "orphan" not in record
    assert record["doc"] == "x"


def test_params_combine_in_order_and_nest(registry: TagRegistry, position: Position) -> None:
    text = (
        "@param {Object} options Settings.\n"
        "@param {Number} [options.width=100] Width.\n"
        "@param {Function} callback Called later."
    )

    record = _combine(registry, text, position)

    options, callback = record["params"]
    assert options["name"] == "options"
    assert options["properties"][0]["name"] == "width"
    assert options["properties"][0]["default"] == "100"
    assert options["properties"][0]["optional"] is True
    assert callback["type"] == "Function"
    assert callback["doc"] == "Called later."


def test_alias_and_parse_only_tags_feed_the_key_owner(registry: TagRegistry, position: Position) -> None:
    record = _combine(registry, "@returns {String} The name.\n@alias widget.panel\n@xtype grid", position)

    assert record["return"] == {"type": "String", "doc": "The name."}
    assert record["aliases"] == ["widget.panel", "widget.grid"]


def test_group_fragments_keeps_first_occurrence_order() -> None:
    fragments = [Fragment(key="b"), Fragment(key="a"), Fragment(key="b")]

    grouped = group_fragments(fragments)

    assert list(grouped) == ["b", "a"]
    assert len(grouped["b"]) == 2
