"""Integration tests for the CancelSale use case."""

from datetime import datetime, timedelta, timezone

import pytest

from ims.application.cancel_sale import CancelSaleHandler
from ims.application.dto import SaleLineSpec
from ims.application.record_sale import RecordSaleHandler
from ims.domain.exceptions import EntityNotFoundError, NotCancellableError, StockLedgerError
from ims.domain.model.product import Product
from ims.domain.model.sale import Sale, SaleItem
from ims.domain.model.stock_batch import StockBatch
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.service.stock_reversal import ReversalStrategy
from tests.fakes import FakeUnitOfWork

SOLD_AT = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)
T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _setup(
    strategy: ReversalStrategy = ReversalStrategy.NEWEST_FIRST,
) -> tuple[CancelSaleHandler, FakeUnitOfWork, list[datetime]]:
    """Record one 8-unit sale of rice, then build a cancel handler.

    The returned list holds the cancel handler's current time; replace
    its element to move the clock.
    """
    products = [Product(id="1", name="Rice 1kg", sku="RICE-1", selling_price=Money.of("15"))]
    batches = [
        StockBatch(1, "1", 5, 5, Money.of("10.00"), T0),
        StockBatch(2, "1", 10, 10, Money.of("12.00"), T0 + timedelta(days=1)),
    ]
    uow = FakeUnitOfWork(products, batches)
    RecordSaleHandler(uow, clock=lambda: SOLD_AT).handle([SaleLineSpec("RICE-1", 8)])

    now = [SOLD_AT + timedelta(hours=1)]
    handler = CancelSaleHandler(uow, clock=lambda: now[0], strategy=strategy, retry_backoff=0)
    return handler, uow, now


def _remaining(uow: FakeUnitOfWork) -> dict[int, int]:
    return {b.id: b.remaining_quantity for b in uow.batches.list_all()}


class TestCancelSaleHappyPath:

    def test_marks_sale_cancelled(self):
        handler, uow, now = _setup()
        handler.handle(1)

        sale = uow.sales.get_by_id(1)
        assert sale.is_cancelled
        assert sale.cancelled_at == now[0]

    def test_newest_first_restores_units(self):
        handler, uow, _ = _setup()
        assert _remaining(uow) == {1: 0, 2: 7}

        handler.handle(1)

        # Batch 2 fills back to 10, the rest returns to batch 1.
        assert _remaining(uow) == {1: 5, 2: 10}

    def test_exact_restores_consumed_batches(self):
        handler, uow, _ = _setup(ReversalStrategy.EXACT)
        handler.handle(1)
        assert _remaining(uow) == {1: 5, 2: 10}

    def test_exact_keeps_cost_basis_after_later_sales(self):
        handler, uow, _ = _setup(ReversalStrategy.EXACT)
        RecordSaleHandler(uow, clock=lambda: SOLD_AT).handle([SaleLineSpec("RICE-1", 2)])
        assert _remaining(uow) == {1: 0, 2: 5}

        handler.handle(1)

        assert _remaining(uow) == {1: 5, 2: 8}

    def test_newest_first_ignores_original_batches(self):
        handler, uow, _ = _setup()
        RecordSaleHandler(uow, clock=lambda: SOLD_AT).handle([SaleLineSpec("RICE-1", 2)])

        handler.handle(1)

        # 8 units: 5 fill batch 2, 3 go to batch 1.
        assert _remaining(uow) == {1: 3, 2: 10}

    def test_exact_without_recorded_batches_falls_back(self):
        products = [Product(id="1", name="Rice 1kg", sku="RICE-1", selling_price=Money.of("15"))]
        batches = [StockBatch(1, "1", 5, 2, Money.of("10.00"), T0)]
        legacy = Sale(
            id=1,
            items=[SaleItem("1", "Rice 1kg", Quantity(3), Money.of("15"), Money.of("30"))],
            created_at=SOLD_AT,
            display_id="20240304-0001",
        )
        uow = FakeUnitOfWork(products, batches, [legacy])
        handler = CancelSaleHandler(
            uow, clock=lambda: SOLD_AT + timedelta(hours=1), strategy=ReversalStrategy.EXACT
        )

        handler.handle(1)

        assert _remaining(uow) == {1: 5}


class TestCancellationWindow:

    def test_just_inside_window(self):
        handler, uow, now = _setup()
        now[0] = SOLD_AT + timedelta(hours=23, minutes=59)
        handler.handle(1)
        assert uow.sales.get_by_id(1).is_cancelled

    def test_after_window(self):
        handler, uow, now = _setup()
        now[0] = SOLD_AT + timedelta(hours=24, minutes=1)

        with pytest.raises(NotCancellableError, match="24 hours"):
            handler.handle(1)

        assert not uow.sales.get_by_id(1).is_cancelled
        assert _remaining(uow) == {1: 0, 2: 7}


class TestCancelSaleErrors:

    def test_cancel_twice(self):
        handler, uow, _ = _setup()
        handler.handle(1)
        writes_after_first = len(uow.batches.writes)

        with pytest.raises(NotCancellableError, match="already cancelled"):
            handler.handle(1)

        assert len(uow.batches.writes) == writes_after_first
        assert _remaining(uow) == {1: 5, 2: 10}

    def test_unknown_sale(self):
        handler, _, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="#99"):
            handler.handle(99)

    def test_no_room_rolls_back(self):
        handler, uow, _ = _setup()
        # Pretend stock was corrected upward out of band: batches are full.
        for batch in uow.batches.list_all():
            uow.batches.update_remaining(
                batch.id, batch.quantity, expected_remaining=batch.remaining_quantity
            )

        with pytest.raises(StockLedgerError):
            handler.handle(1)

        assert not uow.sales.get_by_id(1).is_cancelled
