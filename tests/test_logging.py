"""Tests for repoinsight.logging."""

from __future__ import annotations

import logging
from pathlib import Path

from repoinsight.logging import configure_logging, get_logger


def test_get_logger_nests_under_package() -> None:
    assert get_logger("orchestrator").name == "repoinsight.orchestrator"
    assert get_logger().name == "repoinsight"


def test_configure_logging_replaces_handlers_and_quiets_http(tmp_path: Path) -> None:
    log_file = tmp_path / "run.log"

    configure_logging()
    logger = configure_logging(verbose=False, log_file=log_file)

    assert len(logger.handlers) == 2
    assert logger.level == logging.INFO
    assert logging.getLogger("httpx").level == logging.WARNING

    get_logger("processor").info("Starting analysis for A.cls")
    for handler in logger.handlers:
        handler.flush()
    assert "repoinsight.processor: Starting analysis for A.cls" in log_file.read_text(encoding="utf-8")

    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def test_verbose_logging_enables_debug_everywhere() -> None:
    logger = configure_logging(verbose=True)

    assert logger.level == logging.DEBUG
    assert logging.getLogger("httpcore").level == logging.DEBUG

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
