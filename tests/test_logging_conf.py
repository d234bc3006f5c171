from __future__ import annotations

import logging

from adblock2hosts.logging_conf import LOGGER_NAME, configure_logging, source_logger


def test_configure_logging_creates_file_handlers(tmp_path) -> None:
    logger = configure_logging(verbose=True, log_dir=tmp_path, force=True)
    logger.info("logging_ready", component="test")
    source_logger("https://lists.example.org/a.txt").warning("fetch_failed", error="HTTP 500")

    py_logger = logging.getLogger(LOGGER_NAME)
    assert py_logger.level == logging.DEBUG
    for handler in py_logger.handlers:
        handler.flush()

    assert (tmp_path / "adblock2hosts.log").exists()
    assert (tmp_path / "error.log").exists()
    run_log = (tmp_path / "adblock2hosts.log").read_text(encoding="utf-8")
    assert "fetch_failed" in run_log
    configure_logging(force=True)
