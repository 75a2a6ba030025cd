"""Domain service: crediting stock back when a sale is cancelled.

Two strategies are supported:

- ``NEWEST_FIRST`` puts units back into the most recently received batches,
  whichever batches the sale originally drew from. Each batch is filled at
  most up to its received quantity; the rest moves on to the next older
  batch.
- ``EXACT`` puts units back into exactly the batches recorded on the sale
  item at allocation time, restoring the original cost basis.

Like the allocator, these functions only compute credits; the caller
persists them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

from ims.domain.exceptions import EntityNotFoundError, StockLedgerError
from ims.domain.model.sale import BatchConsumption
from ims.domain.model.stock_batch import StockBatch


class ReversalStrategy(Enum):
    NEWEST_FIRST = "newest_first"
    EXACT = "exact"


@dataclass(frozen=True)
class BatchCredit:
    """Units returned to one batch."""

    batch_id: int
    units_restored: int
    previous_remaining: int
    new_remaining: int


def credit_newest_first(
    batches: Sequence[StockBatch],
    quantity: int,
    *,
    product_label: str = "product",
) -> tuple[BatchCredit, ...]:
    """Spread ``quantity`` units over ``batches``, newest batch first.

    ``batches`` must be sorted by ``received_at`` descending.
    """
    still_to_restore = quantity
    credits: list[BatchCredit] = []

    for batch in batches:
        if still_to_restore == 0:
            break
        room = batch.restock_capacity
        if room <= 0:
            continue
        units = min(room, still_to_restore)
        credits.append(
            BatchCredit(
                batch_id=batch.id,  # type: ignore[arg-type]
                units_restored=units,
                previous_remaining=batch.remaining_quantity,
                new_remaining=batch.remaining_quantity + units,
            )
        )
        still_to_restore -= units

    if still_to_restore > 0:
        raise StockLedgerError(
            f"Cannot restore {quantity} units of {product_label}: its batches "
            f"only have room for {quantity - still_to_restore}"
        )
    return tuple(credits)


def credit_consumed_batches(
    consumptions: Sequence[BatchConsumption],
    batches_by_id: Mapping[int, StockBatch],
) -> tuple[BatchCredit, ...]:
    """Return each recorded consumption to the batch it came from."""
    credits: list[BatchCredit] = []
    pending: dict[int, int] = {}

    for consumption in consumptions:
        batch = batches_by_id.get(consumption.batch_id)
        if batch is None:
            raise EntityNotFoundError(f"Stock batch #{consumption.batch_id} not found")
        # A batch may appear twice when one sale has two lines of a product.
        previous = pending.get(batch.id, batch.remaining_quantity)  # type: ignore[arg-type]
        new_remaining = previous + consumption.units
        if new_remaining > batch.quantity:
            raise StockLedgerError(
                f"Cannot return {consumption.units} units to batch #{batch.id} "
                f"(it only has room for {batch.quantity - previous})"
            )
        credits.append(
            BatchCredit(
                batch_id=batch.id,  # type: ignore[arg-type]
                units_restored=consumption.units,
                previous_remaining=previous,
                new_remaining=new_remaining,
            )
        )
        pending[batch.id] = new_remaining  # type: ignore[index]

    return tuple(credits)
