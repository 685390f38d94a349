"""Structured Logging — JSON records carry the marketplace extras that are set."""

import json
import logging

from marketplace.infrastructure.observability import JSONFormatter


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "marketplace.test", logging.INFO, __file__, 1, "Payment settled", None, None,
    )
    record.__dict__.update(extra)
    return record


def test_settlement_fields_are_surfaced():
    line = JSONFormatter().format(_record(
        transaction_id="bk1", correlation_key="rent:bk1", outcome="applied",
        event_id="evt_1", event_type="checkout.session.completed",
    ))
    log = json.loads(line)
    assert log["message"] == "Payment settled"
    assert log["level"] == "INFO"
    assert log["outcome"] == "applied"
    assert log["event_type"] == "checkout.session.completed"
    assert log["transaction_id"] == "bk1"


def test_error_fields_are_surfaced():
    log = json.loads(JSONFormatter().format(_record(
        error_code="VALIDATION_ERROR", path="/api/bookings", status_code=400,
    )))
    assert (log["error_code"], log["path"], log["status_code"]) == (
        "VALIDATION_ERROR", "/api/bookings", 400,
    )


def test_unset_and_unknown_fields_are_left_out():
    log = json.loads(JSONFormatter().format(_record(transaction_id=None, secret="x")))
    assert "transaction_id" not in log
    assert "secret" not in log
