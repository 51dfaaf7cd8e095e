"""
Tests for inventory_kernel/logging_config.py.

Covers:
- JSON shape of every record, extra fields and bound context
- Exception rendering, including kernel error codes and fields
- LogContext set / clear / bind semantics
- configure_logging idempotency and the logger tree
"""

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from inventory_kernel.domain.workflow import DocumentStatus
from inventory_kernel.exceptions import InsufficientStockError
from inventory_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _isolated_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def log_stream():
    """Configure the kernel logger at INFO and return its output as parsed records."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler)

    def _records() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _records


class TestStructuredFormatter:

    def test_record_shape(self, log_stream):
        get_logger("test").info("hello")

        [record] = log_stream()
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "inventory_kernel.test"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_extra_fields(self, log_stream):
        get_logger("test").info("document_posted", extra={"movement_count": 3})
        assert log_stream()[0]["movement_count"] == 3

    def test_context_fields(self, log_stream):
        LogContext.set(correlation_id="abc-123", document_id="doc-456")
        get_logger("test").info("with_context")

        record = log_stream()[0]
        assert (record["correlation_id"], record["document_id"]) == ("abc-123", "doc-456")

    def test_no_context_keys_when_unbound(self, log_stream):
        get_logger("test").info("bare")
        record = log_stream()[0]
        assert "correlation_id" not in record
        assert "document_id" not in record

    def test_plain_exception(self, log_stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("failed", exc_info=True)

        record = log_stream()[0]
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "Traceback" in record["traceback"]

    def test_kernel_exception_fields(self, log_stream):
        try:
            raise InsufficientStockError("BOLT", "MAIN", Decimal("2"), Decimal("5"))
        except InsufficientStockError:
            get_logger("test").error("post_failed", exc_info=True)

        record = log_stream()[0]
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_type"] == "InsufficientStockError"
        assert record["exc_sku"] == "BOLT"
        assert record["exc_warehouse_code"] == "MAIN"
        assert record["exc_on_hand"] == "2"
        assert record["exc_requested"] == "5"

    def test_typed_values_serialized(self, log_stream):
        uid = uuid4()
        when = datetime(2024, 3, 1, 8, 30, tzinfo=UTC)
        get_logger("test").info(
            "typed",
            extra={
                "movement_id": uid,
                "quantity": Decimal("1.500"),
                "status": DocumentStatus.POSTED,
                "occurred_at": when,
            },
        )

        record = log_stream()[0]
        assert record["movement_id"] == str(uid)
        assert record["quantity"] == "1.500"
        assert record["status"] == "posted"
        assert record["occurred_at"] == when.isoformat()

    def test_debug_dropped_at_info(self, log_stream):
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second")
        logger.debug("third")

        assert [r["message"] for r in log_stream()] == ["first", "second"]


class TestLogContext:

    def test_set_then_get(self):
        LogContext.set(correlation_id="x", actor_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "actor_id": "y"}

    def test_set_none_keeps_existing(self):
        LogContext.set(correlation_id="x")
        LogContext.set(actor_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "actor_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_removes_new_field_on_exit(self):
        with LogContext.bind(document_id=uuid4()):
            assert "document_id" in LogContext.get_all()
        assert "document_id" not in LogContext.get_all()

    def test_bind_restores_after_exception(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(document_type="stock_transfer"):
                raise RuntimeError("inside")
        assert LogContext.get_all() == {}

    def test_bind_stringifies_and_skips_none(self):
        uid = uuid4()
        with LogContext.bind(actor_id=uid, document_type=None):
            assert LogContext.get_all() == {"actor_id": str(uid)}

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="warehouse_id"):
            with LogContext.bind(warehouse_id="MAIN"):
                pass


class TestConfigureLogging:

    def test_second_call_is_noop(self):
        first = logging.StreamHandler(StringIO())
        second = logging.StreamHandler(StringIO())
        logger = logging.getLogger("inventory_kernel")

        configure_logging(handler=first)
        handlers = list(logger.handlers)
        configure_logging(handler=second)

        assert logger.handlers == handlers
        assert first in logger.handlers
        assert second not in logger.handlers

    def test_handler_gets_json_formatter(self):
        handler = logging.StreamHandler(StringIO())
        configure_logging(handler=handler)
        assert isinstance(handler.formatter, StructuredFormatter)

    def test_tree_does_not_propagate(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        assert logging.getLogger("inventory_kernel").propagate is False

    def test_child_logger_names(self):
        assert get_logger("services.document").name == "inventory_kernel.services.document"

    def test_nested_logger_reaches_handler(self):
        stream = StringIO()
        configure_logging(handler=logging.StreamHandler(stream), level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = json.loads(stream.getvalue().splitlines()[0])
        assert record["logger"] == "inventory_kernel.deep.nested.module"

    def test_reset_clears_handlers(self):
        configure_logging(handler=logging.StreamHandler(StringIO()))
        reset_logging()
        assert logging.getLogger("inventory_kernel").handlers == []
