"""Product aggregate.

Products live independently of sales and stock batches. They have their
own lifecycle: prices and attributes change, and products are archived
once they run out of stock.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from ims.domain.exceptions import ValidationError
from ims.domain.model.value_objects import Money


@dataclass
class Product:
    """A product in the catalog.

    This is an aggregate root. Kept as a mutable dataclass because price,
    unit and threshold updates and archiving are legitimate mutations.
    """

    id: str
    name: str
    sku: str
    selling_price: Money
    unit: str = "pc"
    low_stock_threshold: int = 0
    archived_at: datetime | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @staticmethod
    def create(
        product_id: str,
        name: str,
        sku: str,
        selling_price: Money,
        unit: str = "pc",
        low_stock_threshold: int = 0,
    ) -> Product:
        """Create a new catalog entry, enforcing all invariants."""
        if not name or not name.strip():
            raise ValidationError("Product name is required")
        if not sku or not sku.strip():
            raise ValidationError("Product SKU is required")
        if not unit or not unit.strip():
            raise ValidationError("Product unit is required")
        if selling_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        _check_threshold(low_stock_threshold)
        return Product(
            id=product_id,
            name=name.strip(),
            sku=sku.strip(),
            selling_price=selling_price,
            unit=unit.strip(),
            low_stock_threshold=low_stock_threshold,
        )

    @property
    def is_archived(self) -> bool:
        return self.archived_at is not None

    def update_price(self, new_price: Money) -> None:
        """Change the selling price.

        Existing sales are unaffected: every sale item captures the price
        at the time of sale.
        """
        if new_price.amount <= 0:
            raise ValidationError("Product price must be greater than zero")
        self.selling_price = new_price

    def update_unit(self, unit: str) -> None:
        if not unit or not unit.strip():
            raise ValidationError("Product unit is required")
        self.unit = unit.strip()

    def update_threshold(self, threshold: int) -> None:
        _check_threshold(threshold)
        self.low_stock_threshold = threshold

    def archive(self, total_stock: int, now: datetime) -> None:
        """Hide the product from active listings.

        Only allowed when no stock remains in any batch.
        """
        if self.is_archived:
            raise ValidationError(f"Product '{self.name}' is already archived")
        if total_stock != 0:
            raise ValidationError(
                f"Cannot archive product with existing stock "
                f"({self.name} has {total_stock} {self.unit} remaining)"
            )
        self.archived_at = now

    def unarchive(self) -> None:
        if not self.is_archived:
            raise ValidationError(f"Product '{self.name}' is not archived")
        self.archived_at = None


@dataclass(frozen=True)
class ProductChange:
    """One entry of a product's price and attribute history."""

    product_id: str
    changed_at: datetime
    old_price: Money | None = None
    new_price: Money | None = None
    old_unit: str | None = None
    new_unit: str | None = None
    old_threshold: int | None = None
    new_threshold: int | None = None

    @property
    def has_changes(self) -> bool:
        return (
            self.old_price != self.new_price
            or self.old_unit != self.new_unit
            or self.old_threshold != self.new_threshold
        )


def _check_threshold(threshold: int) -> None:
    if not isinstance(threshold, int) or isinstance(threshold, bool):
        raise ValidationError("Low stock threshold must be an integer")
    if threshold < 0:
        raise ValidationError("Low stock threshold cannot be negative")
