"""
Concurrent posting against one database.

Covers:
- The same draft posted from two sessions: exactly one post wins
- Two receipts of the same serial: exactly one lands in stock
- The same serial received into two warehouses at once: exactly one wins
- Enforced availability under contention: on-hand never goes negative

Reference data and drafts are committed from the main thread first; the
workers only post.  A ConcurrencyConflictError counts as a losing outcome.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal
from threading import Barrier

import pytest

from inventory_config import InventoryConfig
from inventory_kernel.domain.tracking import TrackingType
from inventory_kernel.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    InvalidDocumentStateError,
    SerialAlreadyInStockError,
)
from inventory_kernel.selectors.ledger_selector import LedgerSelector
from inventory_kernel.services.document_service import LineInput, PostingResult
from inventory_modules.procurement import ProcurementDocumentService
from inventory_modules.sales import SalesDocumentService
from tests.conftest import TEST_ACTOR_ID, TEST_CUSTOMER_ID, TEST_SUPPLIER_ID, make_item, make_warehouse

pytestmark = pytest.mark.concurrency

LOSING_ERRORS = (
    ConcurrencyConflictError,
    InsufficientStockError,
    InvalidDocumentStateError,
    SerialAlreadyInStockError,
)


@pytest.fixture
def committed_stock(session_factory):
    """One warehouse, a plain item and a serial item, committed."""
    with session_factory() as s:
        warehouse = make_warehouse(s, "MAIN")
        item = make_item(s, "BOLT-10")
        serial_item = make_item(s, "PUMP-S", tracking_type=TrackingType.SERIAL)
        s.commit()
        return warehouse.id, item.id, serial_item.id


def _run_posts(session_factory, service_cls, document_ids, config=None):
    barrier = Barrier(len(document_ids))

    def worker(document_id):
        with session_factory() as s:
            service = service_cls(s, config or InventoryConfig())
            barrier.wait()
            try:
                return service.post(document_id, TEST_ACTOR_ID)
            except LOSING_ERRORS as exc:
                return exc

    with ThreadPoolExecutor(max_workers=len(document_ids)) as pool:
        return list(pool.map(worker, document_ids))


def _winners(outcomes):
    return [o for o in outcomes if isinstance(o, PostingResult)]


class TestConcurrentPosting:

    def test_same_draft_posted_once(self, session_factory, committed_stock):
        warehouse_id, item_id, _ = committed_stock
        with session_factory() as s:
            doc = ProcurementDocumentService(s).create_goods_receipt(
                warehouse_id,
                TEST_SUPPLIER_ID,
                TEST_ACTOR_ID,
                lines=[LineInput(item_id, Decimal("5"))],
            )
            doc_id = doc.id

        outcomes = _run_posts(session_factory, ProcurementDocumentService, [doc_id] * 4)

        assert len(_winners(outcomes)) == 1
        losers = [o for o in outcomes if not isinstance(o, PostingResult)]
        assert all(isinstance(o, (InvalidDocumentStateError, ConcurrencyConflictError)) for o in losers)
        with session_factory() as s:
            ledger = LedgerSelector(s)
            assert len(ledger.entries_for_document(doc_id)) == 1
            assert ledger.on_hand(warehouse_id, item_id) == Decimal("5")

    def test_same_serial_received_once(self, session_factory, committed_stock):
        warehouse_id, _, serial_item_id = committed_stock
        with session_factory() as s:
            service = ProcurementDocumentService(s)
            doc_ids = [
                service.create_goods_receipt(
                    warehouse_id,
                    TEST_SUPPLIER_ID,
                    TEST_ACTOR_ID,
                    lines=[LineInput(serial_item_id, Decimal("1"), serial_numbers=("SN-1",))],
                ).id
                for _ in range(4)
            ]

        outcomes = _run_posts(session_factory, ProcurementDocumentService, doc_ids)

        assert len(_winners(outcomes)) == 1
        with session_factory() as s:
            assert LedgerSelector(s).serial_balance(serial_item_id, "SN-1") == Decimal("1")

    def test_same_serial_across_warehouses(self, session_factory, committed_stock):
        warehouse_id, _, serial_item_id = committed_stock
        with session_factory() as s:
            other_id = make_warehouse(s, "EAST").id
            s.commit()
            service = ProcurementDocumentService(s)
            doc_ids = [
                service.create_goods_receipt(
                    wh_id,
                    TEST_SUPPLIER_ID,
                    TEST_ACTOR_ID,
                    lines=[LineInput(serial_item_id, Decimal("1"), serial_numbers=("SN-9",))],
                ).id
                for wh_id in (warehouse_id, other_id, warehouse_id, other_id)
            ]

        outcomes = _run_posts(session_factory, ProcurementDocumentService, doc_ids)

        assert len(_winners(outcomes)) == 1
        with session_factory() as s:
            ledger = LedgerSelector(s)
            assert ledger.serial_balance(serial_item_id, "SN-9") == Decimal("1")
            in_stock = [
                ledger.serial_balance(serial_item_id, "SN-9", wh_id) for wh_id in (warehouse_id, other_id)
            ]
            assert sorted(in_stock) == [Decimal("0"), Decimal("1")]

    def test_enforced_availability_never_negative(self, session_factory, committed_stock):
        warehouse_id, item_id, _ = committed_stock
        config = InventoryConfig(enforce_stock_availability=True)
        with session_factory() as s:
            procurement = ProcurementDocumentService(s, config)
            receipt = procurement.create_goods_receipt(
                warehouse_id,
                TEST_SUPPLIER_ID,
                TEST_ACTOR_ID,
                lines=[LineInput(item_id, Decimal("5"))],
            )
            procurement.post(receipt.id, TEST_ACTOR_ID)

            sales = SalesDocumentService(s, config)
            doc_ids = [
                sales.create_direct_dispatch(
                    warehouse_id,
                    TEST_ACTOR_ID,
                    customer_id=TEST_CUSTOMER_ID,
                    lines=[LineInput(item_id, Decimal("1"))],
                ).id
                for _ in range(8)
            ]

        outcomes = _run_posts(session_factory, SalesDocumentService, doc_ids, config)

        assert len(_winners(outcomes)) == 5
        assert sum(isinstance(o, InsufficientStockError) for o in outcomes) == 3
        with session_factory() as s:
            assert LedgerSelector(s).on_hand(warehouse_id, item_id) == Decimal("0")
