"""Fragment combiner: folds fragments into a comment-derived record."""

from __future__ import annotations

from typing import Dict, List, Optional

from .logging import get_logger
from .models import Position, Record
from .parser import ParsedComment
from .registry import TagRegistry
from .tags.base import Fragment


class FragmentCombiner:
    """Groups fragments by storage key and runs each owner's ``process_doc`` once."""

    def __init__(self, registry: TagRegistry) -> None:
        self.registry = registry
        self.logger = get_logger("combiner")

    def combine(self, parsed: ParsedComment, position: Optional[Position] = None) -> Record:
        position = position or parsed.position
        record = Record(position=position)
        record["doc"] = parsed.doc

        for key, fragments in group_fragments(parsed.fragments).items():
            owner = self.registry.by_key(key)
            if owner is None or not owner.can("process_doc"):
                self.logger.warning(
                    "no tag combines fragments stored under '%s'; dropping %d fragment(s)",
                    key,
                    len(fragments),
                    extra={"position": position},
                )
                continue
            owner.tag.process_doc(record, fragments, position)  # type: ignore[attr-defined]
        return record


def group_fragments(fragments: List[Fragment]) -> Dict[str, List[Fragment]]:
    """Group by ``key``; dict order is the first occurrence of each key."""
    grouped: Dict[str, List[Fragment]] = {}
    for fragment in fragments:
        grouped.setdefault(fragment.key, []).append(fragment)
    return grouped


__all__ = ["FragmentCombiner", "group_fragments"]
