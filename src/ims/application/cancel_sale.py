"""Application service: Cancel Sale use case.

A compensating action for a recorded sale: credits the sold units back to
stock batches and marks the sale cancelled, in one unit of work. Only
active sales younger than the cancellation window qualify, and a sale can
be cancelled once.

How units are credited back depends on the reversal strategy (see
``ims.domain.service.stock_reversal``).
"""

from __future__ import annotations

import logging
from datetime import timedelta

from ims.application.clock import Clock, utcnow
from ims.application.retry import run_with_retry
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.sale import DEFAULT_CANCELLATION_WINDOW, Sale, SaleItem
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.domain.service.stock_reversal import (
    BatchCredit,
    ReversalStrategy,
    credit_consumed_batches,
    credit_newest_first,
)

logger = logging.getLogger(__name__)


class CancelSaleHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        clock: Clock = utcnow,
        cancellation_window: timedelta = DEFAULT_CANCELLATION_WINDOW,
        strategy: ReversalStrategy = ReversalStrategy.NEWEST_FIRST,
        retry_attempts: int = 3,
        retry_backoff: float = 0.05,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._window = cancellation_window
        self._strategy = strategy
        self._retry_attempts = retry_attempts
        self._retry_backoff = retry_backoff

    def handle(self, sale_id: int) -> None:
        sale = run_with_retry(
            lambda: self._cancel(sale_id),
            attempts=self._retry_attempts,
            backoff_base=self._retry_backoff,
        )
        logger.info(
            "Cancelled sale %s (%d line(s) restored to stock, strategy=%s)",
            sale.display_id, len(sale.items), self._strategy.value,
        )

    def _cancel(self, sale_id: int) -> Sale:
        with self._uow as uow:
            sale = uow.sales.get_by_id(sale_id)
            if sale is None:
                raise EntityNotFoundError(f"Sale #{sale_id} not found")

            now = self._clock()
            # Check before touching stock: a refused cancellation writes nothing.
            sale.ensure_cancellable(now, self._window)

            for item in sale.items:
                for credit in self._credits_for(uow, sale, item):
                    uow.batches.update_remaining(
                        credit.batch_id,
                        credit.new_remaining,
                        expected_remaining=credit.previous_remaining,
                    )

            sale.cancel(now, self._window)
            uow.sales.mark_cancelled(sale.id, now)  # type: ignore[arg-type]
            uow.commit()
        return sale

    def _credits_for(
        self, uow: UnitOfWork, sale: Sale, item: SaleItem
    ) -> tuple[BatchCredit, ...]:
        quantity = item.quantity.value

        if self._strategy is ReversalStrategy.EXACT:
            if item.consumed_batches:
                batches = {
                    b.id: b for b in uow.batches.list_for_product(item.product_id)
                }
                return credit_consumed_batches(item.consumed_batches, batches)
            logger.warning(
                "Sale %s line %s has no recorded batch consumption; "
                "restoring %d unit(s) newest batch first",
                sale.display_id, item.product_name, quantity,
            )

        batches = uow.batches.list_for_product(item.product_id, newest_first=True)
        return credit_newest_first(batches, quantity, product_label=item.product_name)
