from __future__ import annotations

import logging

from logging_config import ContextualFormatter, configure_logging


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.pipeline",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Pipeline run finished",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_appends_known_context_in_order() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(record_count=12, run_id=4, device=None, tenant="x"))

    assert line == "Pipeline run finished | run_id=4 record_count=12"


def test_formatter_without_context_leaves_message_alone() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s")

    assert formatter.format(_record()) == "INFO Pipeline run finished"


def test_configure_logging_quiets_store_client() -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("INFO", force=True)

        assert root.level == logging.INFO
        assert logging.getLogger("httpx").level == logging.WARNING
        assert isinstance(root.handlers[-1].formatter, ContextualFormatter)

        configure_logging("DEBUG", force=True)
        assert logging.getLogger("httpcore").level == logging.DEBUG
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
