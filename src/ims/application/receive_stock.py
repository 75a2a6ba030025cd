"""Application service: Receive Stock use case.

Records a stock receipt as a new batch with its own unit cost. Batches are
never edited or deleted afterwards except for their remaining quantity.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone, tzinfo

from ims.application.clock import Clock, utcnow
from ims.application.dto import StockBatchDTO
from ims.application.lookup import find_product
from ims.application.mapping import batch_to_dto
from ims.domain.exceptions import ValidationError
from ims.domain.model.stock_batch import StockBatch
from ims.domain.model.value_objects import Money, Quantity
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ReceiveStockHandler:

    def __init__(
        self, uow: UnitOfWork, *, clock: Clock = utcnow, tz: tzinfo = timezone.utc
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._tz = tz

    def handle(
        self,
        product_ref: str,
        quantity: int,
        cost_price: str,
        received_at: datetime | None = None,
    ) -> StockBatchDTO:
        qty = Quantity(quantity)
        cost = Money.of(cost_price)
        if received_at is None:
            received_at = self._clock()
        elif received_at.tzinfo is None:
            received_at = received_at.replace(tzinfo=self._tz)

        with self._uow as uow:
            product = find_product(uow.products, product_ref)
            if product.is_archived:
                raise ValidationError(
                    f"Cannot receive stock for archived product '{product.name}'"
                )
            batch = StockBatch.receive(product.id, qty, cost, received_at)
            uow.batches.add(batch)
            uow.commit()

        logger.info(
            "Received %d %s of %s at %s each (batch #%s)",
            batch.quantity, product.unit, product.name, batch.cost_price, batch.id,
        )
        return batch_to_dto(batch, product.name, self._tz)
