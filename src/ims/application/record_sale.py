"""Application service: Record Sale use case.

Coordinates FIFO allocation with the stock ledger so that every sale line
carries an accurate cost of goods sold and every unit sold is removed
from exactly one batch.

The whole sale runs inside one unit of work:

1. Re-validate remaining stock for every product (stock may have changed
   since the cart was built). Lines for the same product are summed.
2. For each line, read the product's in-stock batches oldest first, run
   ``allocate`` and write the new remaining quantities back with
   conditional writes.
3. Store the sale with its items and commit.

Any failure leaves the store untouched. A concurrent modification re-runs
the whole unit against fresh data.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from datetime import timedelta, timezone, tzinfo

from ims.application.clock import Clock, utcnow
from ims.application.dto import SaleDTO, SaleLineSpec
from ims.application.lookup import find_product
from ims.application.mapping import sale_to_dto
from ims.application.retry import run_with_retry
from ims.domain.exceptions import (
    InsufficientStockError,
    InvalidRequestError,
    ValidationError,
)
from ims.domain.model.product import Product
from ims.domain.model.sale import (
    DEFAULT_CANCELLATION_WINDOW,
    BatchConsumption,
    Sale,
    SaleItem,
)
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.fifo_allocator import allocate

logger = logging.getLogger(__name__)


class RecordSaleHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        clock: Clock = utcnow,
        cancellation_window: timedelta = DEFAULT_CANCELLATION_WINDOW,
        retry_attempts: int = 3,
        retry_backoff: float = 0.05,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._window = cancellation_window
        self._retry_attempts = retry_attempts
        self._retry_backoff = retry_backoff
        self._tz = tz

    def handle(self, lines: list[SaleLineSpec]) -> SaleDTO:
        """Record a sale and return it with its generated IDs."""
        prices = self._validate_request(lines)

        sale = run_with_retry(
            lambda: self._record(lines, prices),
            attempts=self._retry_attempts,
            backoff_base=self._retry_backoff,
        )

        logger.info(
            "Recorded sale %s: %d line(s), total %s, COGS %s",
            sale.display_id, len(sale.items), sale.total_amount,
            sale.total_cost_of_goods_sold,
        )
        return sale_to_dto(sale, self._clock(), self._window, self._tz)

    # --- Steps ----------------------------------------------------------------

    @staticmethod
    def _validate_request(lines: list[SaleLineSpec]) -> list[Money | None]:
        """Reject malformed requests before the store is touched."""
        if not lines:
            raise InvalidRequestError("Sale must contain at least one item")

        prices: list[Money | None] = []
        for line in lines:
            if not line.product or not line.product.strip():
                raise InvalidRequestError("Every sale line needs a product")
            try:
                Quantity(line.quantity)
            except ValidationError as exc:
                raise InvalidRequestError(f"{line.product}: {exc}") from exc
            if line.unit_price is None:
                prices.append(None)
                continue
            try:
                prices.append(Money.of(line.unit_price))
            except ValidationError as exc:
                raise InvalidRequestError(f"{line.product}: {exc}") from exc
        return prices

    def _record(self, lines: list[SaleLineSpec], prices: list[Money | None]) -> Sale:
        with self._uow as uow:
            products = [find_product(uow.products, line.product) for line in lines]
            self._check_stock(uow, lines, products)

            items = [
                self._allocate_line(uow, product, line.quantity, price)
                for line, product, price in zip(lines, products, prices)
            ]

            sale = Sale.create(items, created_at=self._clock())
            uow.sales.add(sale)
            uow.commit()
        return sale

    @staticmethod
    def _check_stock(
        uow: UnitOfWork, lines: list[SaleLineSpec], products: list[Product]
    ) -> None:
        needed: dict[str, int] = defaultdict(int)
        by_id: dict[str, Product] = {}
        for line, product in zip(lines, products):
            if product.is_archived:
                raise ValidationError(f"Product '{product.name}' is archived")
            needed[product.id] += line.quantity
            by_id[product.id] = product

        for product_id, quantity in needed.items():
            available = uow.batches.total_remaining(product_id)
            if quantity > available:
                raise InsufficientStockError(
                    product_id,
                    requested=quantity,
                    available=available,
                    product_name=by_id[product_id].name,
                )

    @staticmethod
    def _allocate_line(
        uow: UnitOfWork, product: Product, quantity: int, price: Money | None
    ) -> SaleItem:
        batches = uow.batches.list_for_product(product.id, in_stock_only=True)
        result = allocate(
            batches, quantity, product_id=product.id, product_name=product.name
        )

        for deduction in result.deductions:
            uow.batches.update_remaining(
                deduction.batch_id,
                deduction.new_remaining,
                expected_remaining=deduction.previous_remaining,
            )

        return SaleItem(
            product_id=product.id,
            product_name=product.name,
            quantity=Quantity(quantity),
            selling_price=price if price is not None else product.selling_price,
            line_cost_of_goods_sold=result.total_cost,
            consumed_batches=tuple(
                BatchConsumption(batch_id=d.batch_id, units=d.units_taken)
                for d in result.deductions
            ),
        )
