"""Tests for doctags.logging."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from doctags.errors import MergeFailure
from doctags.logging import configure_logging, get_logger
from doctags.models import Position


@pytest.fixture
def restore_doctags_logger():
    logger = logging.getLogger("doctags")
    saved = (list(logger.handlers), logger.level, logger.propagate)
    yield logger
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    handlers, level, propagate = saved
    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate


def test_get_logger_uses_doctags_hierarchy() -> None:
    assert get_logger().name == "doctags"
    assert get_logger("parser").name == "doctags.parser"


def test_configure_logging_writes_to_file(tmp_path: Path, restore_doctags_logger) -> None:
    log_file = tmp_path / "doctags.log"

    logger = configure_logging(verbose=True, log_file=log_file)
    configure_logging(verbose=True, log_file=log_file)
    get_logger("merger").debug("merged %s", "size")

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert "doctags.merger: merged size" in log_file.read_text(encoding="utf-8")


def test_position_is_printed_before_the_message(tmp_path: Path, restore_doctags_logger) -> None:
    log_file = tmp_path / "doctags.log"
    configure_logging(log_file=log_file)

    get_logger("parser").warning(
        "Unknown tag @%s; skipping", "todo", extra={"position": Position("src/Panel.js", 11)}
    )

    assert "doctags.parser: src/Panel.js:11: Unknown tag @todo; skipping" in log_file.read_text(encoding="utf-8")


def test_position_is_taken_from_a_logged_doctags_error(tmp_path: Path, restore_doctags_logger) -> None:
    log_file = tmp_path / "doctags.log"
    configure_logging(log_file=log_file)

    try:
        raise MergeFailure("bad params", Position("src/Panel.js", 12))
    except MergeFailure:
        get_logger("pipeline").exception("Processing failed")

    assert "doctags.pipeline: src/Panel.js:12: Processing failed" in log_file.read_text(encoding="utf-8")
