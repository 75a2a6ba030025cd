"""StockBatch entity: one lot of stock received at one time.

Batches form an append-only ledger of receipts. Each carries its own unit
cost, so the cost of a sale depends on which batches it draws from.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money, Quantity


@dataclass
class StockBatch:
    """A received lot of a single product.

    Invariants:
    - ``0 <= remaining_quantity <= quantity``
    - ``remaining_quantity`` only goes down through ``consume`` (sales) and
      only goes up through ``restock`` (sale cancellation)
    """

    id: int | None
    product_id: str
    quantity: int
    remaining_quantity: int
    cost_price: Money  # per unit
    received_at: datetime

    def __post_init__(self) -> None:
        if self.quantity < 0:
            raise ValidationError("Batch quantity cannot be negative")
        if not 0 <= self.remaining_quantity <= self.quantity:
            raise ValidationError(
                f"Batch remaining quantity {self.remaining_quantity} must be "
                f"between 0 and {self.quantity}"
            )

    @staticmethod
    def receive(
        product_id: str,
        quantity: Quantity,
        cost_price: Money,
        received_at: datetime,
    ) -> StockBatch:
        """Create a freshly received batch with all units remaining."""
        return StockBatch(
            id=None,
            product_id=product_id,
            quantity=quantity.value,
            remaining_quantity=quantity.value,
            cost_price=cost_price,
            received_at=received_at,
        )

    @property
    def is_exhausted(self) -> bool:
        return self.remaining_quantity == 0

    @property
    def restock_capacity(self) -> int:
        """How many units can be credited back before the batch is full."""
        return self.quantity - self.remaining_quantity

    @property
    def total_cost(self) -> Money:
        return self.cost_price * self.quantity

    @property
    def sort_key(self) -> tuple[datetime, int]:
        return (self.received_at, self.id or 0)

    def consume(self, units: int) -> None:
        if units <= 0:
            raise ValidationError("Consumed units must be positive")
        if units > self.remaining_quantity:
            raise ValidationError(
                f"Cannot take {units} units from batch #{self.id} "
                f"(only {self.remaining_quantity} remaining)"
            )
        self.remaining_quantity -= units

    def restock(self, units: int) -> None:
        if units <= 0:
            raise ValidationError("Restocked units must be positive")
        if units > self.restock_capacity:
            raise ValidationError(
                f"Cannot return {units} units to batch #{self.id} "
                f"(it only has room for {self.restock_capacity})"
            )
        self.remaining_quantity += units
