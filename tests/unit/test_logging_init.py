from __future__ import annotations

import logging

from rvmerge.logging.init import SUMMARY_LEVEL, LabeledFormatter, get_logger, log_summary, setup_logging


def test_setup_logging_configures_named_logger():
    """setup_logging returns the rvmerge logger with one stdout handler."""
    logger = setup_logging()
    assert logger.name == "rvmerge"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False


def test_setup_logging_is_idempotent():
    first = setup_logging()
    second = setup_logging(logging.DEBUG)
    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.DEBUG


def test_labels(capsys):
    logger = setup_logging()
    logger.info("hello")
    logger.warning("careful")
    logger.error("broken")
    log_summary("files=1/1")
    out = capsys.readouterr().out.splitlines()
    assert out == ["INFO hello", "WARN careful", "ERROR broken", "SUMMARY files=1/1"]


def test_child_loggers_share_handler(capsys):
    """Library modules log under rvmerge.* and reach the same handler."""
    setup_logging()
    logging.getLogger("rvmerge.services.merger").info("stage %s", "done")
    assert capsys.readouterr().out == "INFO stage done\n"


def test_summary_level_name():
    get_logger()
    assert logging.getLevelName(SUMMARY_LEVEL) == "SUMMARY"
