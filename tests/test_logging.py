import asyncio
import json
import logging

import pytest

from app.core.logging import (
    ContextFilter,
    DevelopmentFormatter,
    LogContext,
    StructuredFormatter,
    get_logger,
)


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []
        self.addFilter(ContextFilter())

    def emit(self, record):
        self.records.append(record)


@pytest.fixture
def captured():
    handler = RecordingHandler()
    logger = get_logger("test_logging")
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)
    yield logger, handler.records
    logger.removeHandler(handler)


def make_record(logger_name="lycapay.test"):
    record = logging.getLogger(logger_name).makeRecord(
        logger_name, logging.INFO, __file__, 10, "Purchase done", None, None
    )
    ContextFilter().filter(record)
    return record


def test_log_context_attaches_nested_fields(captured):
    logger, records = captured

    with LogContext(user_id="256772123456", transaction_id="LYCA_1_a"):
        with LogContext(state="confirming_airtime"):
            logger.info("inner")
        logger.info("outer")
    logger.info("after")

    inner, outer, after = records
    assert (inner.user_id, inner.transaction_id, inner.state) == ("256772123456", "LYCA_1_a", "confirming_airtime")
    assert not hasattr(outer, "state")
    assert not hasattr(after, "user_id")


async def test_log_context_is_isolated_between_concurrent_tasks(captured):
    logger, records = captured
    a_entered = asyncio.Event()
    b_entered = asyncio.Event()

    async def user_a():
        with LogContext(user_id="A"):
            a_entered.set()
            await b_entered.wait()
            logger.info("from A")

    async def user_b():
        await a_entered.wait()
        with LogContext(user_id="B"):
            b_entered.set()
            await asyncio.sleep(0)
            logger.info("from B")

    await asyncio.gather(user_a(), user_b())
    logger.info("after both")

    by_message = {record.getMessage(): record for record in records}
    assert by_message["from A"].user_id == "A"
    assert by_message["from B"].user_id == "B"
    assert not hasattr(by_message["after both"], "user_id")


def test_structured_formatter_emits_context_as_json():
    with LogContext(user_id="256772123456", endpoint="/check_reseller_float_wallet_balance/"):
        record = make_record()

    data = json.loads(StructuredFormatter().format(record))

    assert data["message"] == "Purchase done"
    assert data["level"] == "INFO"
    assert data["user_id"] == "256772123456"
    assert data["endpoint"] == "/check_reseller_float_wallet_balance/"
    assert "transaction_id" not in data


def test_development_formatter_labels_context():
    with LogContext(transaction_id="LYCA_1_a", state="idle"):
        record = make_record()

    line = DevelopmentFormatter(use_color=False).format(record)

    assert "lycapay.test: Purchase done" in line
    assert "[state=idle, txn=LYCA_1_a]" in line


def test_get_logger_namespaces_under_lycapay():
    assert get_logger("app.services.reseller_api").name == "lycapay.app.services.reseller_api"
