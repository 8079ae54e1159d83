"""Tests for doctags.registry and tag discovery."""

from __future__ import annotations

import dataclasses
from types import SimpleNamespace

import pytest

from doctags.errors import ConflictError
from doctags.registry import RegistryBuilder, TagRegistry, describe
from doctags.tags import Tag, discover_tags
from doctags.tags.klass import AliasTag, ClassTag
from doctags.tags.member import CfgTag
from doctags.tags.modifiers import SinceTag
from tests._fixtures.tags import ParseOnlyTag, RecordingTag, build_registry


def test_duplicate_pattern_is_rejected() -> None:
    builder = RegistryBuilder().register(RecordingTag("note"))

    with pytest.raises(ConflictError):
        builder.register(RecordingTag("note", key="other"))


def test_duplicate_declaration_pattern_is_rejected() -> None:
    builder = RegistryBuilder().register(RecordingTag("first", declaration_pattern="extend"))

    with pytest.raises(ConflictError):
        builder.register(RecordingTag("second", declaration_pattern="extend"))


def test_two_combiners_for_one_key_are_rejected() -> None:
    builder = RegistryBuilder().register(RecordingTag("first", key="shared"))

    with pytest.raises(ConflictError):
        builder.register(RecordingTag("second", key="shared"))


def test_parse_only_tag_may_share_a_key() -> None:
    registry = build_registry([RecordingTag("first", key="shared"), ParseOnlyTag("second", key="shared")])

    assert registry.by_key("shared").pattern == "first"
    assert registry.by_pattern("second").key == "shared"


def test_describe_requires_a_key() -> None:
    with pytest.raises(ValueError):
        describe(Tag(), 0)


def test_describe_rejects_reserved_member_type() -> None:
    class BadMember(Tag):
        key = "bad"
        member_type = "class"

    with pytest.raises(ValueError):
        describe(BadMember(), 0)


def test_describe_records_capabilities() -> None:
    full = describe(RecordingTag("note"), 0)
    parse_only = describe(ParseOnlyTag("note"), 1)

    assert full.capabilities == {"parse_doc", "process_doc", "parse_declaration", "merge", "format", "to_html"}
    assert parse_only.capabilities == {"parse_doc"}


def test_descriptors_are_frozen(registry: TagRegistry) -> None:
    descriptor = registry.by_pattern("cfg")

    with pytest.raises(dataclasses.FrozenInstanceError):
        descriptor.key = "other"  # type: ignore[misc]


def test_applicability_for_class_member_and_specific_kinds() -> None:
    class_tag = RecordingTag("a", merge_context=("class",))
    member_tag = RecordingTag("b", merge_context=("member",))
    cfg_tag = RecordingTag("c", merge_context=("cfg",))
    registry = build_registry([class_tag, member_tag, cfg_tag])

    assert [d.pattern for d in registry.applicable("class")] == ["a"]
    assert [d.pattern for d in registry.applicable("cfg")] == ["b", "c"]
    assert [d.pattern for d in registry.applicable("method")] == ["b"]
    assert registry.applicable(None) == ()


def test_renderable_skips_tags_without_html(registry: TagRegistry) -> None:
    renderable = {d.name for d in registry.renderable("method")}

    assert {"doc", "param", "return", "throws", "method", "deprecated", "since"} <= renderable
    assert "chainable" not in renderable
    assert "access" not in renderable


def test_default_registry_indexes_builtin_tags(registry: TagRegistry) -> None:
    assert isinstance(registry.by_pattern("cfg").tag, CfgTag)
    assert isinstance(registry.by_key("aliases").tag, AliasTag)
    assert isinstance(registry.by_declaration_pattern("extend").tag, type(registry.by_pattern("extends").tag))
    assert registry.member_kinds == ("cfg", "property", "method", "event")
    assert ("private", registry.by_pattern("private").signature) in registry.signatures
    assert len(registry) == len(registry.descriptors)


def test_discover_tags_returns_builtins_in_order() -> None:
    tags = discover_tags()

    assert isinstance(tags[0], Tag)
    assert any(isinstance(tag, ClassTag) for tag in tags)
    names = [tag.name for tag in tags]
    assert names.index("chainable") < names.index("return") < names.index("method")


def test_discover_tags_respects_disabled() -> None:
    tags = discover_tags(disabled=["since"])

    assert not any(isinstance(tag, SinceTag) for tag in tags)


class TodoTag(Tag):
    pattern = "todo"
    key = "todo"


def test_discover_tags_loads_entry_points(monkeypatch) -> None:
    entry = SimpleNamespace(name="todo", load=lambda: TodoTag)
    monkeypatch.setattr("doctags.tags._iter_entry_points", lambda: [entry])

    tags = discover_tags(plugins=["todo"])

    assert isinstance(tags[-1], TodoTag)


def test_discover_tags_raises_for_unknown_plugin(monkeypatch) -> None:
    monkeypatch.setattr("doctags.tags._iter_entry_points", lambda: [])

    with pytest.raises(ValueError):
        discover_tags(plugins=["missing"])
