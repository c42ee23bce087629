from __future__ import annotations

import logging
from pathlib import Path

from salary_analytics.logging_config import LOG_FORMAT, configure_logging


def test_configure_logging_adds_stream_handler() -> None:
    # Ensure configuring logging doesn't raise and attaches a StreamHandler
    configure_logging(None)
    root = logging.getLogger()
    assert any(isinstance(h, logging.StreamHandler) for h in root.handlers)


def test_configure_logging_writes_file(tmp_path: Path) -> None:
    log_path = tmp_path / "logs" / "analytics.log"
    configure_logging(log_path, level=logging.DEBUG)

    logging.getLogger("salary_analytics.test").info("hello")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_path.exists()
    assert "| INFO | salary_analytics.test | hello" in log_path.read_text(encoding="utf-8")
    assert logging.getLogger().level == logging.DEBUG
    assert LOG_FORMAT.startswith("%(asctime)s")
    configure_logging(None)
