from __future__ import annotations

import logging
from io import StringIO

from resort_import.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    logger = setup_logging()
    assert logger.name == LOGGER_NAME
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging(debug=True)
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG


def test_labeled_prefixes():
    captured = StringIO()
    logger = logging.getLogger("test_resort_import_labels")
    logger.setLevel(logging.DEBUG)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    handler = logging.StreamHandler(captured)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    logger.debug("d")
    logger.info("i")
    logger.warning("w")
    logger.error("e")
    logger.log(SUMMARY_LEVEL, "s")

    assert captured.getvalue().splitlines() == ["DEBUG d", "INFO i", "WARN w", "ERROR e", "SUMMARY s"]


def test_child_module_loggers_share_handler(capsys):
    setup_logging()
    logging.getLogger("resort_import.services.matcher").info("check complete")
    log_summary("rows=1")
    out = capsys.readouterr().out
    assert "INFO check complete" in out
    assert "SUMMARY rows=1" in out


def test_get_logger_returns_configured_logger():
    assert get_logger() is setup_logging()


def test_debug_lines_show_module_origin():
    captured = StringIO()
    logger = setup_logging(debug=True, stream=captured)
    logging.getLogger("resort_import.services.committer").debug("batch 1/2 sent")
    logger.info("plain")
    assert captured.getvalue().splitlines() == [
        "DEBUG [services.committer] batch 1/2 sent",
        "INFO plain",
    ]
