"""Configuration loading for doctags (.doctags.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".doctags.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class TagsConfig:
    """Which tags make it into the registry."""

    disabled: List[str] = field(default_factory=list)
    enabled_plugins: List[str] = field(default_factory=list)


@dataclass
class MarkupConfig:
    """Markdown formatting applied before tags render."""

    enabled: bool = True
    extensions: List[str] = field(default_factory=lambda: ["fenced_code", "tables"])
    link_template: str = "#!/api/{target}"


@dataclass
class RenderConfig:
    """HTML template lookup."""

    templates_dir: Optional[Path] = None


@dataclass
class PipelineConfig:
    """Worker settings for processing several files."""

    max_workers: Optional[int] = None


@dataclass
class DocTagsConfig:
    """Represents the settings defined in .doctags.yml."""

    root: Path
    tags: TagsConfig = field(default_factory=TagsConfig)
    markup: MarkupConfig = field(default_factory=MarkupConfig)
    render: RenderConfig = field(default_factory=RenderConfig)
    pipeline: PipelineConfig = field(default_factory=PipelineConfig)


def load_config(config_path: Path) -> DocTagsConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return DocTagsConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    tags = TagsConfig()
    tags_data = _as_dict(data.get("tags"))
    if tags_data:
        tags.disabled = _as_str_list(tags_data.get("disabled"))
        tags.enabled_plugins = _as_str_list(tags_data.get("enabled_plugins"))

    markup = MarkupConfig()
    markup_data = _as_dict(data.get("markup"))
    if markup_data:
        enabled = _as_bool(markup_data.get("enabled"))
        if enabled is not None:
            markup.enabled = enabled
        if "extensions" in markup_data:
            markup.extensions = _as_str_list(markup_data.get("extensions"))
        link_template = _as_str(markup_data.get("link_template"))
        if link_template:
            if "{target}" not in link_template:
                raise ConfigError("markup.link_template must contain a {target} placeholder")
            markup.link_template = link_template

    render = RenderConfig()
    render_data = _as_dict(data.get("render"))
    templates_dir = _as_str(render_data.get("templates_dir")) if render_data else None
    if templates_dir:
        render.templates_dir = root / templates_dir

    pipeline = PipelineConfig()
    pipeline_data = _as_dict(data.get("pipeline"))
    if pipeline_data:
        workers = _as_int(pipeline_data.get("max_workers"))
        if workers is not None and workers < 1:
            raise ConfigError("pipeline.max_workers must be a positive integer")
        pipeline.max_workers = workers

    return DocTagsConfig(root=root, tags=tags, markup=markup, render=render, pipeline=pipeline)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []


__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "DocTagsConfig",
    "MarkupConfig",
    "PipelineConfig",
    "RenderConfig",
    "TagsConfig",
    "load_config",
]
