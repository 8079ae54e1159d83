"""Tests for doctags.pipeline."""

from __future__ import annotations

from pathlib import Path

from doctags.config import DocTagsConfig, MarkupConfig, TagsConfig
from doctags.errors import DocTagsError, MergeFailure
from doctags.pipeline import FileResult, Pipeline
from doctags.registry import TagRegistry


def test_cfg_round_trip(pipeline: Pipeline, make_unit) -> None:
    result = pipeline.process(make_unit("@cfg {Number} size The size."))

    assert result.record.kind == "cfg"
    assert result.record["type"] == "Number"
    assert result.record["doc"] == "<p>The size.</p>"
    assert result.html.count("Number") == 1
    assert result.html.count("The size.") == 1
    assert result.html.index("size : Number") < result.html.index("The size.")


def test_class_with_declaration(pipeline: Pipeline, make_unit) -> None:
    unit = make_unit(
        "A panel with extras.",
        "@private",
        name="My.Panel",
        declaration={"extend": "Ext.Panel", "mixins": ["My.Mixin"], "alias": "widget.mypanel"},
    )

    result = pipeline.process(unit)

    record = result.record
    assert record.kind == "class"
    assert record["class"] == "My.Panel"
    assert record["extends"] == "Ext.Panel"
    assert record["mixins"] == ["My.Mixin"]
    assert record["access"] == "private"
    assert "extends Ext.Panel" in result.html
    assert "widget.mypanel" in result.html
    assert "A panel with extras." in result.html


def test_class_without_extend_gets_default_base(pipeline: Pipeline, make_unit) -> None:
    result = pipeline.process(make_unit("@class My.Util", declaration={}))

    assert result.record["extends"] == "Ext.Base"


def test_method_from_code_only(pipeline: Pipeline, make_unit) -> None:
    result = pipeline.process(make_unit(kind="method", name="run", params=["task", "delay"]))

    assert result.record.kind == "method"
    assert "run(task, delay)" in result.html


def test_comment_for_other_member_keeps_only_doc_facts(pipeline: Pipeline, make_unit) -> None:
    unit = make_unit("@property {String} title The title.", kind="property", name="heading", default="x")

    result = pipeline.process(unit)

    assert result.record["name"] == "title"
    assert "default" not in result.record


def test_process_file_reports_failures_and_keeps_going(pipeline: Pipeline, make_unit) -> None:
    good = make_unit("@cfg {Number} size The size.")
    bad = make_unit("@cfg {Number}")

    result = pipeline.process_file("Panel.js", [bad, good])

    assert isinstance(result, FileResult)
    assert [item.record["name"] for item in result.records] == ["size"]
    assert len(result.failures) == 1
    assert isinstance(result.failures[0], MergeFailure)
    assert result.failures[0].record.incomplete is True


def test_process_files_isolates_crashes(pipeline: Pipeline, make_unit, monkeypatch) -> None:
    original = pipeline.process

    def flaky(unit):
        if unit.comment and "explode" in unit.comment:
            raise RuntimeError("walker bug")
        return original(unit)

    monkeypatch.setattr(pipeline, "process", flaky)
    files = {
        "Good.js": [make_unit("@cfg {Number} size The size.")],
        "Bad.js": [make_unit("Will explode.")],
    }

    results = pipeline.process_files(files, max_workers=2)

    assert list(results) == ["Good.js", "Bad.js"]
    assert len(results["Good.js"].records) == 1
    assert results["Bad.js"].records == []
    assert isinstance(results["Bad.js"].failures[0], DocTagsError)
    assert "walker bug" in str(results["Bad.js"].failures[0])


def test_disabled_markup_keeps_raw_text(registry: TagRegistry, make_unit, tmp_path: Path) -> None:
    config = DocTagsConfig(root=tmp_path, markup=MarkupConfig(enabled=False))
    pipeline = Pipeline(registry, config=config)

    result = pipeline.process(make_unit("@cfg {Number} size The *size*."))

    assert result.record["doc"] == "The *size*."


def test_disabled_tags_are_treated_as_unknown(make_unit, tmp_path: Path) -> None:
    config = DocTagsConfig(root=tmp_path, tags=TagsConfig(disabled=["since"]))
    pipeline = Pipeline(config=config)

    result = pipeline.process(make_unit("Main text.", "@since 4.1", kind="property", name="size"))

    assert "since" not in result.record
    assert pipeline.registry.by_pattern("since") is None
    assert "4.1" in result.record["doc"]
