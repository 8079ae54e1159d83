"""Tests for doctags.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from doctags.config import ConfigError, DocTagsConfig, load_config


def test_load_config_returns_defaults_when_missing(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert isinstance(config, DocTagsConfig)
    assert config.root == tmp_path.resolve()
    assert config.tags.disabled == []
    assert config.tags.enabled_plugins == []
    assert config.markup.enabled is True
    assert config.markup.extensions == ["fenced_code", "tables"]
    assert config.markup.link_template == "#!/api/{target}"
    assert config.render.templates_dir is None
    assert config.pipeline.max_workers is None


def test_load_config_parses_expected_fields(tmp_path: Path) -> None:
    config_file = tmp_path / ".doctags.yml"
    config_file.write_text(
        """
tags:
  disabled: [since, deprecated]
  enabled_plugins:
    - todo
markup:
  enabled: false
  extensions: [tables]
  link_template: "/api/{target}.html"
render:
  templates_dir: "docs/templates"
pipeline:
  max_workers: 4
""",
        encoding="utf-8",
    )

    config = load_config(config_file)

    assert config.tags.disabled == ["since", "deprecated"]
    assert config.tags.enabled_plugins == ["todo"]
    assert config.markup.enabled is False
    assert config.markup.extensions == ["tables"]
    assert config.markup.link_template == "/api/{target}.html"
    assert config.render.templates_dir == tmp_path.resolve() / "docs" / "templates"
    assert config.pipeline.max_workers == 4


def test_load_config_handles_empty_file(tmp_path: Path) -> None:
    (tmp_path / ".doctags.yml").write_text("", encoding="utf-8")

    config = load_config(tmp_path)

    assert config.markup.enabled is True


@pytest.mark.parametrize(
    "content",
    [
        "- just\n- a list\n",
        "markup:\n  link_template: /api/static.html\n",
        "pipeline:\n  max_workers: 0\n",
        "tags: [unclosed\n",
    ],
)
def test_load_config_rejects_invalid_settings(tmp_path: Path, content: str) -> None:
    (tmp_path / ".doctags.yml").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigError):
        load_config(tmp_path)
