"""Built-in tags and discovery of plugin tags."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable, List, Sequence, Set

from .base import Tag
from .doc import DocTag
from .klass import (
    AliasTag,
    ClassTag,
    ExtendsTag,
    MixinsTag,
    RequiresTag,
    SingletonTag,
    UsesTag,
    XtypeTag,
)
from .member import CfgTag, EventTag, MethodTag, PropertyTag
from .modifiers import (
    AccessTag,
    ChainableTag,
    DeprecatedTag,
    PrivateTag,
    ProtectedTag,
    SinceTag,
    StaticTag,
)
from .params import ParamTag, ReturnsTag, ReturnTag, ThrowsTag, TypeTag

_ENTRY_POINT_GROUP = "doctags.tags"

# Registration order is merge order: chainable must precede return (it
# supplies the default return type) and return must precede the member
# tags that build signatures from it.
_BUILTIN_FACTORIES: Dict[str, Callable[[], Tag]] = {
    "doc": DocTag,
    "class": ClassTag,
    "extends": ExtendsTag,
    "mixins": MixinsTag,
    "alias": AliasTag,
    "xtype": XtypeTag,
    "requires": RequiresTag,
    "uses": UsesTag,
    "singleton": SingletonTag,
    "private": PrivateTag,
    "protected": ProtectedTag,
    "static": StaticTag,
    "chainable": ChainableTag,
    "deprecated": DeprecatedTag,
    "since": SinceTag,
    "access": AccessTag,
    "type": TypeTag,
    "param": ParamTag,
    "throws": ThrowsTag,
    "return": ReturnTag,
    "returns": ReturnsTag,
    "cfg": CfgTag,
    "property": PropertyTag,
    "method": MethodTag,
    "event": EventTag,
}


def builtin_tags() -> List[Tag]:
    """Fresh instances of every built-in tag, in registration order."""
    return [factory() for factory in _BUILTIN_FACTORIES.values()]


def discover_tags(
    disabled: Sequence[str] = (),
    plugins: Sequence[str] | None = None,
) -> List[Tag]:
    """Return built-in tags followed by plugin tags from the ``doctags.tags`` entry points.

    ``plugins`` restricts which entry points load; ``None`` loads all of them.
    """

    disabled_set = {name.lower() for name in disabled}
    wanted: Set[str] | None = None
    if plugins is not None:
        wanted = {name.lower() for name in plugins}

    tags: List[Tag] = []
    seen: Set[str] = set()

    def _add(name: str, factory: Callable[[], Tag]) -> None:
        key = name.lower()
        if key in disabled_set or key in seen:
            return
        instance = factory()
        if not isinstance(instance, Tag):
            raise TypeError(f"Tag factory for '{name}' did not return a Tag instance")
        tags.append(instance)
        seen.add(key)

    for name, factory in _BUILTIN_FACTORIES.items():
        _add(name, factory)

    for entry in _iter_entry_points():
        name = entry.name
        if wanted is not None:
            if name.lower() not in wanted:
                continue
            wanted.discard(name.lower())
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load tag entry point '{name}': {exc}") from exc

        def _factory(obj: object = loaded) -> Tag:
            return _coerce_tag(obj)

        _add(name, _factory)

    if wanted:
        missing = ", ".join(sorted(wanted))
        raise ValueError(f"Unknown tag plugins requested: {missing}")

    return tags


def _coerce_tag(obj: object) -> Tag:
    if isinstance(obj, Tag):
        return obj
    if isinstance(obj, type) and issubclass(obj, Tag):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, Tag):
            return instance
    raise TypeError("Tag entry point must be a Tag subclass or factory")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    return metadata.entry_points(group=_ENTRY_POINT_GROUP)


__all__ = ["Tag", "builtin_tags", "discover_tags"]
