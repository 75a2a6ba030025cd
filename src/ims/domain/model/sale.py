"""Sale aggregate: a checkout and the line items it owns.

A sale captures, per line, the selling price at checkout and the cost of
goods sold computed by FIFO allocation. Both are locked at creation; later
price or batch cost changes never touch an existing sale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from enum import Enum

from ims.domain.exceptions import NotCancellableError, ValidationError
from ims.domain.model.value_objects import Money, Quantity

DEFAULT_CANCELLATION_WINDOW = timedelta(hours=24)


class SaleStatus(Enum):
    ACTIVE = "ACTIVE"
    CANCELLED = "CANCELLED"


@dataclass(frozen=True)
class BatchConsumption:
    """Units of one stock batch drawn by a sale line."""

    batch_id: int
    units: int


@dataclass
class SaleItem:
    """One line of a sale.

    ``line_cost_of_goods_sold`` is the *total* cost of the units on this
    line, not a unit cost.
    """

    product_id: str
    product_name: str
    quantity: Quantity
    selling_price: Money  # per unit, locked at sale time
    line_cost_of_goods_sold: Money
    consumed_batches: tuple[BatchConsumption, ...] = ()

    @property
    def line_total(self) -> Money:
        return self.selling_price * self.quantity.value

    @property
    def gross_profit(self) -> Decimal:
        # Plain Decimal: selling below cost is a loss, which Money cannot hold.
        return self.line_total.amount - self.line_cost_of_goods_sold.amount


@dataclass
class Sale:
    """Aggregate root for sales.

    Use ``Sale.create()`` for new sales. ``__init__`` stays simple so
    repositories can reconstitute stored sales without re-validating.
    """

    id: int | None
    items: list[SaleItem]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    display_id: str | None = None
    cancelled_at: datetime | None = None

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def create(items: list[SaleItem], created_at: datetime) -> Sale:
        if not items:
            raise ValidationError("Sale must contain at least one item")
        return Sale(id=None, items=list(items), created_at=created_at)

    def assign_identity(self, sale_id: int) -> None:
        """Called by the repository when the sale is first stored."""
        self.id = sale_id
        self.display_id = make_display_id(sale_id, self.created_at)

    # --- State transitions ----------------------------------------------------

    @property
    def status(self) -> SaleStatus:
        return SaleStatus.CANCELLED if self.cancelled_at is not None else SaleStatus.ACTIVE

    @property
    def is_cancelled(self) -> bool:
        return self.status == SaleStatus.CANCELLED

    def is_cancellable(
        self, now: datetime, window: timedelta = DEFAULT_CANCELLATION_WINDOW
    ) -> bool:
        return not self.is_cancelled and now - self.created_at < window

    def ensure_cancellable(
        self, now: datetime, window: timedelta = DEFAULT_CANCELLATION_WINDOW
    ) -> None:
        if self.is_cancelled:
            raise NotCancellableError(self.id, "sale is already cancelled")
        if now - self.created_at >= window:
            hours = window.total_seconds() / 3600
            raise NotCancellableError(
                self.id, f"sales can only be cancelled within {hours:g} hours"
            )

    def cancel(
        self, now: datetime, window: timedelta = DEFAULT_CANCELLATION_WINDOW
    ) -> None:
        """Transition ACTIVE -> CANCELLED.

        Stock must be credited back *before* calling this (coordinated by the
        application handler).
        """
        self.ensure_cancellable(now, window)
        self.cancelled_at = now

    # --- Computed properties --------------------------------------------------

    @property
    def total_amount(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_total
        return result

    @property
    def total_cost_of_goods_sold(self) -> Money:
        result = Money.zero()
        for item in self.items:
            result = result + item.line_cost_of_goods_sold
        return result


def make_display_id(sale_id: int, created_at: datetime) -> str:
    return f"{created_at:%Y%m%d}-{sale_id:04d}"
