"""Integration tests for the RecordSale use case.

Uses in-memory fake repositories, no file I/O.
"""

from datetime import datetime, timedelta, timezone

import pytest

from ims.application.dto import SaleLineSpec
from ims.application.record_sale import RecordSaleHandler
from ims.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    InsufficientStockError,
    InvalidRequestError,
    StoreWriteError,
    ValidationError,
)
from ims.domain.model.product import Product
from ims.domain.model.stock_batch import StockBatch
from ims.domain.model.value_objects import Money
from tests.fakes import ConflictingUnitOfWork, FailingSaleRepository, FakeUnitOfWork

NOW = datetime(2024, 3, 4, 10, 30, tzinfo=timezone.utc)
T0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def _products() -> list[Product]:
    return [
        Product(id="1", name="Rice 1kg", sku="RICE-1", selling_price=Money.of("15.00")),
        Product(id="2", name="Canned Tuna", sku="TUNA", selling_price=Money.of("40.00")),
    ]


def _batches() -> list[StockBatch]:
    return [
        StockBatch(1, "1", 5, 5, Money.of("10.00"), T0),
        StockBatch(2, "1", 10, 10, Money.of("12.00"), T0 + timedelta(days=1)),
        StockBatch(3, "2", 4, 4, Money.of("30.00"), T0),
    ]


def _setup(uow: FakeUnitOfWork | None = None) -> tuple[RecordSaleHandler, FakeUnitOfWork]:
    if uow is None:
        uow = FakeUnitOfWork(_products(), _batches())
    handler = RecordSaleHandler(uow, clock=lambda: NOW, retry_backoff=0)
    return handler, uow


def _remaining(uow: FakeUnitOfWork) -> dict[int, int]:
    return {b.id: b.remaining_quantity for b in uow.batches.list_all()}


class TestRecordSaleHappyPath:

    def test_cost_of_goods_sold_spans_batches(self):
        handler, uow = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 8)])

        assert dto.items[0].cost_of_goods_sold == "₱86.00"
        assert dto.items[0].line_total == "₱120.00"
        assert dto.items[0].gross_profit == "₱34.00"
        assert _remaining(uow) == {1: 0, 2: 7, 3: 4}

    def test_assigns_ids(self):
        handler, _ = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 1)])
        assert dto.id == 1
        assert dto.display_id == "20240304-0001"
        assert dto.status == "ACTIVE"
        assert dto.cancellable

    def test_persists_sale_with_items(self):
        handler, uow = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 2), SaleLineSpec("TUNA", 1)])

        saved = uow.sales.get_by_id(dto.id)
        assert saved is not None
        assert [i.product_id for i in saved.items] == ["1", "2"]
        assert saved.total_amount == Money.of("70.00")
        assert saved.total_cost_of_goods_sold == Money.of("50.00")
        assert uow.commits == 1

    def test_records_consumed_batches(self):
        handler, uow = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 8)])
        item = uow.sales.get_by_id(dto.id).items[0]
        assert [(c.batch_id, c.units) for c in item.consumed_batches] == [(1, 5), (2, 3)]

    def test_resolves_product_by_name_or_id(self):
        handler, uow = _setup()
        handler.handle([SaleLineSpec("Rice 1kg", 1), SaleLineSpec("2", 1)])
        assert _remaining(uow) == {1: 4, 2: 10, 3: 3}

    def test_unit_price_override(self):
        handler, _ = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 2, unit_price="9.50")])
        assert dto.items[0].selling_price == "₱9.50"
        assert dto.items[0].gross_profit == "-₱1.00"

    def test_two_lines_of_one_product_draw_in_order(self):
        handler, uow = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 4), SaleLineSpec("RICE-1", 4)])
        assert [i.cost_of_goods_sold for i in dto.items] == ["₱40.00", "₱46.00"]
        assert _remaining(uow)[2] == 7

    def test_large_cart_is_accepted(self):
        batches = [StockBatch(1, "1", 500, 500, Money.of("10.00"), T0)]
        handler, uow = _setup(FakeUnitOfWork(_products(), batches))

        dto = handler.handle([SaleLineSpec("RICE-1", 1)] * 150)

        assert len(dto.items) == 150
        assert dto.total_amount == "₱2,250.00"
        assert _remaining(uow) == {1: 350}


class TestRecordSalePriceLock:

    def test_price_change_does_not_touch_existing_sale(self):
        handler, uow = _setup()
        dto = handler.handle([SaleLineSpec("RICE-1", 1)])

        rice = uow.products.get_by_id("1")
        rice.update_price(Money.of("99.00"))
        uow.products.save(rice)

        assert str(uow.sales.get_by_id(dto.id).total_amount) == "₱15.00"


class TestRecordSaleValidation:

    def test_empty_cart(self):
        handler, uow = _setup()
        with pytest.raises(InvalidRequestError, match="at least one item"):
            handler.handle([])
        assert uow.commits == 0

    @pytest.mark.parametrize("quantity", [0, -2, 1.5])
    def test_bad_quantity(self, quantity):
        handler, uow = _setup()
        with pytest.raises(InvalidRequestError):
            handler.handle([SaleLineSpec("RICE-1", quantity)])
        assert _remaining(uow) == {1: 5, 2: 10, 3: 4}

    def test_bad_price(self):
        handler, _ = _setup()
        with pytest.raises(InvalidRequestError):
            handler.handle([SaleLineSpec("RICE-1", 1, unit_price="-3")])

    def test_blank_product(self):
        handler, _ = _setup()
        with pytest.raises(InvalidRequestError, match="needs a product"):
            handler.handle([SaleLineSpec("  ", 1)])

    def test_unknown_product(self):
        handler, _ = _setup()
        with pytest.raises(EntityNotFoundError, match="Nonexistent"):
            handler.handle([SaleLineSpec("Nonexistent", 1)])

    def test_archived_product(self):
        products = _products()
        products[0].archived_at = T0
        handler, _ = _setup(FakeUnitOfWork(products, _batches()))
        with pytest.raises(ValidationError, match="archived"):
            handler.handle([SaleLineSpec("RICE-1", 1)])


class TestRecordSaleInsufficientStock:

    def test_names_product_and_shortfall(self):
        handler, uow = _setup()
        with pytest.raises(InsufficientStockError) as exc_info:
            handler.handle([SaleLineSpec("TUNA", 7)])
        assert exc_info.value.product_name == "Canned Tuna"
        assert exc_info.value.shortfall == 3
        assert "Canned Tuna" in str(exc_info.value)
        assert len(uow.sales.list_all()) == 0

    def test_lines_for_same_product_are_summed(self):
        handler, uow = _setup()
        with pytest.raises(InsufficientStockError) as exc_info:
            handler.handle([SaleLineSpec("RICE-1", 10), SaleLineSpec("RICE-1", 6)])
        assert exc_info.value.requested == 16
        assert exc_info.value.available == 15
        assert _remaining(uow) == {1: 5, 2: 10, 3: 4}

    def test_one_short_line_blocks_whole_sale(self):
        handler, uow = _setup()
        with pytest.raises(InsufficientStockError):
            handler.handle([SaleLineSpec("RICE-1", 2), SaleLineSpec("TUNA", 5)])
        assert _remaining(uow) == {1: 5, 2: 10, 3: 4}
        assert uow.sales.list_all() == []


class TestRecordSaleAtomicity:

    def test_failed_sale_write_restores_batches(self):
        handler, uow = _setup()
        uow.sales = FailingSaleRepository()

        with pytest.raises(StoreWriteError):
            handler.handle([SaleLineSpec("RICE-1", 8)])

        assert _remaining(uow) == {1: 5, 2: 10, 3: 4}
        assert uow.commits == 0
        assert uow.rollbacks >= 1

    def test_retries_after_concurrent_modification(self):
        uow = ConflictingUnitOfWork(_products(), _batches(), conflicts=1)
        handler, _ = _setup(uow)

        dto = handler.handle([SaleLineSpec("RICE-1", 8)])

        assert dto.items[0].cost_of_goods_sold == "₱86.00"
        assert _remaining(uow) == {1: 0, 2: 7, 3: 4}
        assert len(uow.sales.list_all()) == 1

    def test_gives_up_after_retry_budget(self):
        uow = ConflictingUnitOfWork(_products(), _batches(), conflicts=5)
        handler = RecordSaleHandler(uow, clock=lambda: NOW, retry_attempts=2, retry_backoff=0)

        with pytest.raises(ConcurrentModificationError):
            handler.handle([SaleLineSpec("RICE-1", 1)])
        assert _remaining(uow) == {1: 5, 2: 10, 3: 4}
