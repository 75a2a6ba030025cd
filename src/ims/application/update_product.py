"""Application service: Update Product use case.

Changes a product's selling price, unit or low-stock threshold and records
what changed in the product's history. Existing sales are unaffected:
they captured a price snapshot at checkout.

Lowering the price below the highest unit cost of any batch that still
has stock guarantees a loss on those units, so it is refused unless the
caller passes ``force=True``.
"""

from __future__ import annotations

import logging
from datetime import timezone, tzinfo

from ims.application.clock import Clock, utcnow
from ims.application.dto import ProductChangeDTO
from ims.application.lookup import find_product
from ims.application.mapping import change_to_dto
from ims.domain.exceptions import PriceBelowCostError
from ims.domain.model.product import Product, ProductChange
from ims.domain.model.value_objects import Money
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class UpdateProductHandler:

    def __init__(
        self, uow: UnitOfWork, *, clock: Clock = utcnow, tz: tzinfo = timezone.utc
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._tz = tz

    def handle(
        self,
        product_ref: str,
        *,
        selling_price: str | None = None,
        unit: str | None = None,
        low_stock_threshold: int | None = None,
        force: bool = False,
    ) -> ProductChangeDTO | None:
        """Apply the given changes; return the logged change, or None if
        nothing actually changed."""
        new_price = Money.of(selling_price) if selling_price is not None else None

        with self._uow as uow:
            product = find_product(uow.products, product_ref)
            if new_price is not None and not force:
                self._check_price_against_cost(uow, product, new_price)

            change = ProductChange(
                product_id=product.id,
                changed_at=self._clock(),
                old_price=product.selling_price if new_price is not None else None,
                new_price=new_price,
                old_unit=product.unit if unit is not None else None,
                new_unit=unit.strip() if unit is not None else None,
                old_threshold=(
                    product.low_stock_threshold if low_stock_threshold is not None else None
                ),
                new_threshold=low_stock_threshold,
            )

            if new_price is not None:
                product.update_price(new_price)
            if unit is not None:
                product.update_unit(unit)
            if low_stock_threshold is not None:
                product.update_threshold(low_stock_threshold)

            if not change.has_changes:
                return None

            uow.products.save(product)
            uow.products.add_change(change)
            uow.commit()

        logger.info("Updated product #%s %s", product.id, product.name)
        return change_to_dto(change, self._tz)

    @staticmethod
    def _check_price_against_cost(
        uow: UnitOfWork, product: Product, new_price: Money
    ) -> None:
        in_stock = uow.batches.list_for_product(product.id, in_stock_only=True)
        if not in_stock:
            return
        highest = max(batch.cost_price for batch in in_stock)
        if new_price < highest:
            raise PriceBelowCostError(product.name, new_price.amount, highest.amount)


class ProductHistoryHandler:
    """Query: a product's price and attribute history, newest first."""

    def __init__(self, uow: UnitOfWork, *, tz: tzinfo = timezone.utc) -> None:
        self._uow = uow
        self._tz = tz

    def handle(self, product_ref: str) -> list[ProductChangeDTO]:
        with self._uow as uow:
            product = find_product(uow.products, product_ref)
            changes = uow.products.list_changes(product.id)
        return [change_to_dto(c, self._tz) for c in reversed(changes)]
