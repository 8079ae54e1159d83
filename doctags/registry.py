"""Tag definition registry.

Tags are registered once through :class:`RegistryBuilder`; ``build()``
returns a :class:`TagRegistry` whose indexes are computed up front and never
change afterwards, so every stage can share it across worker threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .errors import ConflictError
from .logging import get_logger
from .models import ANY_MEMBER, CLASS_KIND, Signature, is_member_kind
from .tags import discover_tags
from .tags.base import Tag, capabilities_of

if TYPE_CHECKING:  # pragma: no cover - typing aid
    from .config import DocTagsConfig

_RESERVED_KINDS = {CLASS_KIND, ANY_MEMBER}


@dataclass(frozen=True)
class TagDescriptor:
    """Immutable view of a registered tag."""

    tag: Tag = field(compare=False)
    key: str
    index: int
    capabilities: FrozenSet[str]
    pattern: Optional[str] = None
    member_type: Optional[str] = None
    signature: Optional[Signature] = None
    declaration_pattern: Optional[str] = None
    declaration_default: Optional[Tuple[str, Any]] = None
    merge_context: Tuple[str, ...] = ()
    html_position: Optional[int] = None

    @property
    def name(self) -> str:
        return self.pattern or self.key

    def can(self, capability: str) -> bool:
        return capability in self.capabilities

    def applies_to(self, kind: Optional[str]) -> bool:
        if kind is None:
            return False
        return kind in self.merge_context or (ANY_MEMBER in self.merge_context and is_member_kind(kind))

    @property
    def class_only(self) -> bool:
        return self.merge_context == (CLASS_KIND,)


def describe(tag: Tag, index: int) -> TagDescriptor:
    """Freeze a tag's attributes into a descriptor."""
    key = tag.key
    if not key:
        raise ValueError(f"{tag!r} does not declare a storage key")
    if tag.member_type in _RESERVED_KINDS:
        raise ValueError(f"{tag!r} uses reserved member type '{tag.member_type}'")
    default = tag.declaration_default
    if default is not None and len(default) != 2:
        raise ValueError(f"{tag!r} declaration_default must be a (key, value) pair")
    context = tag.merge_context
    if isinstance(context, str):
        context = (context,)
    return TagDescriptor(
        tag=tag,
        key=key,
        index=index,
        capabilities=capabilities_of(tag),
        pattern=tag.pattern,
        member_type=tag.member_type,
        signature=tag.signature,
        declaration_pattern=tag.declaration_pattern,
        declaration_default=tuple(default) if default is not None else None,  # type: ignore[arg-type]
        merge_context=tuple(context),
        html_position=tag.html_position,
    )


class TagRegistry:
    """Read-only catalog of tag descriptors with precomputed stage indexes."""

    def __init__(self, descriptors: Sequence[TagDescriptor]) -> None:
        self._descriptors: Tuple[TagDescriptor, ...] = tuple(descriptors)

        by_pattern: Dict[str, TagDescriptor] = {}
        by_declaration: Dict[str, TagDescriptor] = {}
        by_key: Dict[str, TagDescriptor] = {}
        by_context: Dict[str, List[TagDescriptor]] = {}
        for descriptor in self._descriptors:
            if descriptor.pattern:
                by_pattern[descriptor.pattern] = descriptor
            if descriptor.declaration_pattern:
                by_declaration[descriptor.declaration_pattern] = descriptor
            owner = by_key.get(descriptor.key)
            if owner is None or (descriptor.can("process_doc") and not owner.can("process_doc")):
                by_key[descriptor.key] = descriptor
            for context in descriptor.merge_context:
                by_context.setdefault(context, []).append(descriptor)

        self._by_pattern = MappingProxyType(by_pattern)
        self._by_declaration = MappingProxyType(by_declaration)
        self._by_key = MappingProxyType(by_key)
        self._by_context = MappingProxyType({name: tuple(items) for name, items in by_context.items()})

        self.member_kinds: Tuple[str, ...] = tuple(
            d.member_type for d in self._descriptors if d.member_type
        )
        self.declaration_tags: Tuple[TagDescriptor, ...] = tuple(
            d for d in self._descriptors if d.declaration_pattern or d.declaration_default
        )
        self.signatures: Tuple[Tuple[str, Signature], ...] = tuple(
            (d.key, d.signature) for d in self._descriptors if d.signature is not None
        )

        kinds = {CLASS_KIND, *self.member_kinds}
        kinds.update(name for name in by_context if name != ANY_MEMBER)
        self._applicable = MappingProxyType(
            {kind: self._compute_applicable(kind) for kind in kinds}
        )
        self._renderable = MappingProxyType(
            {
                kind: tuple(
                    d for d in tags if d.html_position is not None and d.can("to_html")
                )
                for kind, tags in self._applicable.items()
            }
        )

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> Tuple[TagDescriptor, ...]:
        return self._descriptors

    def by_pattern(self, pattern: str) -> Optional[TagDescriptor]:
        return self._by_pattern.get(pattern)

    def by_declaration_pattern(self, name: str) -> Optional[TagDescriptor]:
        return self._by_declaration.get(name)

    def by_key(self, key: str) -> Optional[TagDescriptor]:
        """Return the descriptor owning ``key`` (the one that combines its fragments)."""
        return self._by_key.get(key)

    def for_context(self, context: str) -> Tuple[TagDescriptor, ...]:
        """Tags whose merge context literally names ``context``."""
        return self._by_context.get(context, ())

    def applicable(self, kind: Optional[str]) -> Tuple[TagDescriptor, ...]:
        """Tags that merge for a record of ``kind``, in registration order."""
        if kind is None:
            return ()
        cached = self._applicable.get(kind)
        if cached is not None:
            return cached
        return self._compute_applicable(kind)

    def renderable(self, kind: Optional[str]) -> Tuple[TagDescriptor, ...]:
        """Applicable tags that can render HTML, in registration order."""
        if kind is None:
            return ()
        cached = self._renderable.get(kind)
        if cached is not None:
            return cached
        return tuple(
            d for d in self._compute_applicable(kind) if d.html_position is not None and d.can("to_html")
        )

    def _compute_applicable(self, kind: str) -> Tuple[TagDescriptor, ...]:
        return tuple(d for d in self._descriptors if d.applies_to(kind))


class RegistryBuilder:
    """Collects tags and validates them before producing a registry."""

    def __init__(self) -> None:
        self._descriptors: List[TagDescriptor] = []
        self._patterns: Dict[str, TagDescriptor] = {}
        self._declarations: Dict[str, TagDescriptor] = {}
        self._key_owners: Dict[str, TagDescriptor] = {}
        self._logger = get_logger("registry")

    def register(self, tag: Tag) -> "RegistryBuilder":
        descriptor = describe(tag, len(self._descriptors))
        if descriptor.pattern:
            existing = self._patterns.get(descriptor.pattern)
            if existing is not None:
                raise ConflictError(
                    f"Tags {existing.tag!r} and {tag!r} both claim @{descriptor.pattern}"
                )
        if descriptor.declaration_pattern:
            existing = self._declarations.get(descriptor.declaration_pattern)
            if existing is not None:
                raise ConflictError(
                    f"Tags {existing.tag!r} and {tag!r} both claim declaration property "
                    f"'{descriptor.declaration_pattern}'"
                )
        if descriptor.can("process_doc"):
            existing = self._key_owners.get(descriptor.key)
            if existing is not None:
                raise ConflictError(
                    f"Tags {existing.tag!r} and {tag!r} both combine fragments stored under "
                    f"'{descriptor.key}'"
                )
            self._key_owners[descriptor.key] = descriptor
        if descriptor.pattern:
            self._patterns[descriptor.pattern] = descriptor
        if descriptor.declaration_pattern:
            self._declarations[descriptor.declaration_pattern] = descriptor
        self._descriptors.append(descriptor)
        self._logger.debug("Registered %r (key=%s)", tag, descriptor.key)
        return self

    def register_all(self, tags: Iterable[Tag]) -> "RegistryBuilder":
        for tag in tags:
            self.register(tag)
        return self

    def build(self) -> TagRegistry:
        return TagRegistry(self._descriptors)


def default_registry(config: "DocTagsConfig | None" = None) -> TagRegistry:
    """Registry of built-in tags plus installed plugin tags, honouring config."""
    disabled: Sequence[str] = ()
    plugins: Sequence[str] | None = None
    if config is not None:
        disabled = config.tags.disabled
        plugins = config.tags.enabled_plugins or None
    return RegistryBuilder().register_all(discover_tags(disabled=disabled, plugins=plugins)).build()


__all__ = ["RegistryBuilder", "TagDescriptor", "TagRegistry", "default_registry", "describe"]
