"""Runs parse, combine, extract, merge and render for classes and members."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence

from .combiner import FragmentCombiner
from .config import DocTagsConfig, MarkupConfig
from .declaration import DeclarationExtractor, literal_config
from .errors import DocTagsError, MergeFailure
from .formatter import DocFormatter
from .logging import get_logger
from .merger import MergeEngine
from .models import DocUnit, Position, Record, RenderedRecord
from .parser import CommentParser
from .registry import TagRegistry, default_registry
from .renderer import Renderer
from .scanner import purify


@dataclass
class FileResult:
    """Rendered records of one file plus the records that failed to merge."""

    filename: str
    records: List[RenderedRecord] = field(default_factory=list)
    failures: List[DocTagsError] = field(default_factory=list)


class Pipeline:
    """Coordinates the tag pipeline for one unit at a time.

    Holds no per-unit state, so one instance can serve several threads.
    """

    def __init__(
        self,
        registry: TagRegistry | None = None,
        *,
        config: DocTagsConfig | None = None,
        formatter: DocFormatter | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.config = config
        self.registry = registry or default_registry(config)
        self.parser = CommentParser(self.registry)
        self.combiner = FragmentCombiner(self.registry)
        self.extractor = DeclarationExtractor(self.registry)
        self.merger = MergeEngine(self.registry)
        self.renderer = renderer or Renderer(
            self.registry,
            formatter=formatter or self._default_formatter(config),
            templates_dir=config.render.templates_dir if config else None,
        )
        self.logger = get_logger("pipeline")

    def process(self, unit: DocUnit) -> RenderedRecord:
        """Run every stage for one class or member. Raises ``MergeFailure``."""
        docs = Record(position=unit.position)
        fragments = []
        if unit.comment:
            parsed = self.parser.parse(purify(unit.comment), unit.position)
            docs = self.combiner.combine(parsed, unit.position)
            fragments = parsed.fragments

        code = Record(
            kind=unit.code_kind,
            position=unit.position,
            fields={key: value for key, value in unit.code.items() if key != "kind"},
        )
        if unit.declaration is not None:
            self.extractor.extract(literal_config(unit.declaration), unit.position, record=code)

        kind = self.merger.detect_kind(fragments, unit.code_kind)
        self.logger.debug("merging %s record", kind, extra={"position": unit.position})
        record = self.merger.merge(docs, code, kind, unit.position)
        return RenderedRecord(record=record, html=self.renderer.render(record), position=unit.position)

    def process_file(self, filename: str, units: Sequence[DocUnit]) -> FileResult:
        """Process a file's units in order; failed merges are reported, not raised."""
        result = FileResult(filename=filename)
        for unit in units:
            try:
                result.records.append(self.process(unit))
            except MergeFailure as exc:
                self.logger.error("Excluding record: %s", exc.detail, extra={"position": exc.position})
                result.failures.append(exc)
        return result

    def process_files(
        self,
        files: Mapping[str, Sequence[DocUnit]],
        *,
        max_workers: Optional[int] = None,
    ) -> Dict[str, FileResult]:
        """Process files in parallel; results keep the input's file order."""
        if max_workers is None and self.config is not None:
            max_workers = self.config.pipeline.max_workers
        results: Dict[str, FileResult] = {}
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="doctags") as pool:
            futures = {name: pool.submit(self.process_file, name, units) for name, units in files.items()}
            for name, future in futures.items():
                try:
                    results[name] = future.result()
                except Exception as exc:
                    self.logger.exception("Processing %s failed", name)
                    failure = DocTagsError(f"Processing failed: {exc}", Position(name, 0))
                    results[name] = FileResult(filename=name, failures=[failure])
        return results

    @staticmethod
    def _default_formatter(config: DocTagsConfig | None) -> DocFormatter | None:
        markup = config.markup if config is not None else MarkupConfig()
        if not markup.enabled:
            return None
        return DocFormatter.from_config(markup)


__all__ = ["FileResult", "Pipeline"]
