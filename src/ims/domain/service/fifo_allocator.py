"""Domain service: FIFO cost-of-goods-sold allocation.

Given a product's stock batches (oldest received first) and a quantity to
sell, works out which batches the units come from and what they cost.

``allocate`` is a pure function: it reads the batches it is given and
reports the resulting remaining quantities without writing them back.
Persisting the result is the caller's job.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from ims.domain.exceptions import InsufficientStockError, InvalidRequestError
from ims.domain.model.stock_batch import StockBatch
from ims.domain.model.value_objects import Money


@dataclass(frozen=True)
class BatchDeduction:
    """Units drawn from one batch by an allocation."""

    batch_id: int
    units_taken: int
    previous_remaining: int
    new_remaining: int


@dataclass(frozen=True)
class AllocationResult:
    product_id: str | None
    requested_quantity: int
    total_cost: Money
    deductions: tuple[BatchDeduction, ...]


def allocate(
    batches: Sequence[StockBatch],
    requested_quantity: int,
    *,
    product_id: str | None = None,
    product_name: str | None = None,
) -> AllocationResult:
    """Draw ``requested_quantity`` units from ``batches`` oldest first.

    Batches must already be sorted by ``received_at`` ascending; entries
    with nothing remaining are skipped. Only touched batches appear in the
    result. Costs are summed exactly, with no intermediate rounding.

    Raises:
        InvalidRequestError: ``requested_quantity`` is not a positive int.
        InsufficientStockError: the batches together hold fewer units than
            requested. Nothing is returned in that case.
    """
    if not isinstance(requested_quantity, int) or isinstance(requested_quantity, bool):
        raise InvalidRequestError(
            f"Requested quantity must be an integer, got {type(requested_quantity).__name__}"
        )
    if requested_quantity <= 0:
        raise InvalidRequestError("Requested quantity must be positive")

    if product_id is None and batches:
        product_id = batches[0].product_id

    still_needed = requested_quantity
    total_cost = Money.zero(batches[0].cost_price.currency) if batches else Money.zero()
    deductions: list[BatchDeduction] = []

    for batch in batches:
        if still_needed == 0:
            break
        if batch.is_exhausted:
            continue

        units = min(batch.remaining_quantity, still_needed)
        total_cost = total_cost + batch.cost_price * units
        deductions.append(
            BatchDeduction(
                batch_id=batch.id,  # type: ignore[arg-type]
                units_taken=units,
                previous_remaining=batch.remaining_quantity,
                new_remaining=batch.remaining_quantity - units,
            )
        )
        still_needed -= units

    if still_needed > 0:
        raise InsufficientStockError(
            product_id,
            requested=requested_quantity,
            available=requested_quantity - still_needed,
            product_name=product_name,
        )

    return AllocationResult(
        product_id=product_id,
        requested_quantity=requested_quantity,
        total_cost=total_cost,
        deductions=tuple(deductions),
    )
