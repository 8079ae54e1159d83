"""Merge engine: reconciles comment facts and code facts into one record."""

from __future__ import annotations

import copy
from typing import Any, Mapping, Optional, Sequence

from .errors import MergeFailure
from .logging import get_logger
from .models import CLASS_KIND, DEFAULT_MEMBER_KIND, Position, Record
from .registry import TagRegistry
from .tags.base import Fragment, code_matches


class MergeEngine:
    """Builds the authoritative record for one class or member.

    Doc fields always win. Code fields fill the gaps, but only when the code
    describes the same name as the comment; a comment documenting ``foo``
    placed above code for ``bar`` keeps none of ``bar``'s facts. Tag merge
    routines then run in registration order and may derive further fields.
    """

    def __init__(self, registry: TagRegistry) -> None:
        self.registry = registry
        self.logger = get_logger("merger")

    def detect_kind(self, fragments: Sequence[Fragment], code_kind: Optional[str] = None) -> str:
        """Resolve the record kind before merging.

        Precedence: a fragment owned by a member tag, then a fragment owned by
        a class-only tag, then the kind reported by code, then the first
        member kind named by a member-specific tag (``@param`` implies a
        method), then ``property``.
        """
        owners = [self.registry.by_key(fragment.key) for fragment in fragments]
        owners = [owner for owner in owners if owner is not None]
        for owner in owners:
            if owner.member_type:
                return owner.member_type
        if any(owner.class_only for owner in owners):
            return CLASS_KIND
        if code_kind:
            return code_kind
        for owner in owners:
            specific = [context for context in owner.merge_context if context in self.registry.member_kinds]
            if specific and len(specific) == len(owner.merge_context):
                return specific[0]
        return DEFAULT_MEMBER_KIND

    def merge(
        self,
        docs: Mapping[str, Any],
        code: Mapping[str, Any],
        kind: str,
        position: Optional[Position] = None,
    ) -> Record:
        record = Record(kind=kind, position=position)
        for key, value in docs.items():
            record[key] = value
        if code_matches(docs, code):
            for key, value in code.items():
                if key not in docs or docs[key] in (None, ""):
                    record[key] = copy.deepcopy(value)
        elif code:
            self.logger.debug(
                "code describes '%s' but comment documents '%s'; ignoring code facts",
                code.get("name"),
                docs.get("name"),
                extra={"position": position},
            )

        for descriptor in self.registry.applicable(kind):
            if not descriptor.can("merge"):
                continue
            try:
                descriptor.tag.merge(record, docs, code)  # type: ignore[attr-defined]
            except MergeFailure as exc:
                if exc.position is not None:
                    raise _mark_incomplete(exc, record)
                raise _mark_incomplete(MergeFailure(exc.detail, position), record) from exc
            except Exception as exc:
                failure = MergeFailure(f"{descriptor.tag!r} failed to merge: {exc}", position)
                raise _mark_incomplete(failure, record) from exc
        return record


def _mark_incomplete(failure: MergeFailure, record: Record) -> MergeFailure:
    record.incomplete = True
    failure.record = record
    return failure


__all__ = ["MergeEngine"]
