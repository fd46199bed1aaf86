# tests/services/test_error_reporter.py
import logging

from marketplace.services.error_reporter import LoggingErrorReporter, get_error_reporter


def test_logging_error_reporter_logs_with_traceback(caplog):
    try:
        raise RuntimeError("disk full")
    except RuntimeError as e:
        error = e

    with caplog.at_level(logging.ERROR, logger="marketplace.services.error_reporter"):
        get_error_reporter().capture_exception(error, {"offer_ids": [1, 2]})

    record = caplog.records[-1]
    assert record.name == "marketplace.services.error_reporter"
    assert record.getMessage() == "Captured RuntimeError: disk full context={'offer_ids': [1, 2]}"
    assert record.exc_info[1] is error


def test_logging_error_reporter_custom_logger(caplog):
    reporter = LoggingErrorReporter(logging.getLogger("export"))

    with caplog.at_level(logging.ERROR, logger="export"):
        reporter.capture_exception(ValueError("bad row"))

    assert caplog.records[-1].name == "export"
    assert "Captured ValueError: bad row context={}" in caplog.text
