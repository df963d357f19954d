from __future__ import annotations

import logging

from logging_config import ContextualFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="services.loader",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Dataset loaded",
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_known_context_keys_are_appended() -> None:
    formatter = ContextualFormatter(fmt="%(message)s")

    line = formatter.format(_record(row_count=4, dropped_count=1, reason=None, other="x"))

    assert line == "Dataset loaded | row_count=4 dropped_count=1"


def test_message_without_context_is_unchanged() -> None:
    formatter = ContextualFormatter(fmt="%(levelname)s %(message)s", context_keys=["state"])

    assert formatter.format(_record(row_count=4)) == "INFO Dataset loaded"
