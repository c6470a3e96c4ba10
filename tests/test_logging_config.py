"""Tests for quote-context logging."""

import json
import logging

from price_updater.logging_config import QuoteJsonFormatter, get_logger, setup_logging


def test_adapter_prefixes_and_attaches_context(caplog):
    log = get_logger("price_updater.test", product_id=5).bind(quantity=3)

    with caplog.at_level(logging.INFO, logger="price_updater.test"):
        log.info("Priced", extra={"rule_id": 2})

    record = caplog.records[-1]
    assert record.getMessage() == "[product_id=5 quantity=3 rule_id=2] Priced"
    assert (record.product_id, record.quantity, record.rule_id) == (5, 3, 2)


def test_call_extra_overrides_context(caplog):
    log = get_logger("price_updater.test", quantity=1)

    with caplog.at_level(logging.INFO, logger="price_updater.test"):
        log.info("Clamped", extra={"quantity": 4})

    assert caplog.records[-1].quantity == 4


def test_json_formatter_keeps_ukrainian_text():
    formatter = QuoteJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s", json_ensure_ascii=False)
    record = logging.LogRecord("price_updater.engine", logging.INFO, "engine.py", 10, "3 товари", None, None)
    record.product_id = 1

    line = formatter.format(record)
    data = json.loads(line)

    assert "товари" in line
    assert data["service"] == "price_updater"
    assert data["level"] == "INFO"
    assert data["source"] == "engine.py:10"
    assert data["product_id"] == 1


def test_setup_logging_writes_error_file(tmp_path):
    root = setup_logging(tmp_path, log_to_file=True)
    try:
        logging.getLogger("price_updater.test").error("Rule cache down")
        for handler in root.handlers:
            handler.flush()

        lines = (tmp_path / "logs" / "error.log").read_text(encoding="utf-8").splitlines()
        assert json.loads(lines[-1])["message"] == "Rule cache down"
        assert logging.getLogger("sqlalchemy.engine").level >= logging.WARNING
    finally:
        setup_logging(log_to_file=False)


def test_setup_logging_without_files(tmp_path):
    root = setup_logging(tmp_path, log_to_file=False)

    assert not (tmp_path / "logs").exists()
    assert len(root.handlers) == 1
