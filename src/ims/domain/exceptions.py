"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.
"""

from __future__ import annotations

from decimal import Decimal


class DomainException(Exception):
    """Base class for all domain errors."""


class ValidationError(DomainException):
    """A business rule or invariant was violated."""


class InvalidRequestError(ValidationError):
    """A request was malformed and rejected before touching the store."""


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""


class InsufficientStockError(DomainException):
    """Not enough remaining stock to cover a requested quantity."""

    def __init__(
        self,
        product_id: str | None,
        requested: int,
        available: int,
        product_name: str | None = None,
    ) -> None:
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available
        label = product_name or (f"product '{product_id}'" if product_id else "product")
        super().__init__(
            f"Insufficient stock for {label} "
            f"(need {requested}, have {available} available, short by {self.shortfall})"
        )

    @property
    def shortfall(self) -> int:
        return self.requested - self.available


class NotCancellableError(DomainException):
    """A sale cannot be cancelled (already cancelled, or too old)."""

    def __init__(self, sale_id: int | None, reason: str) -> None:
        self.sale_id = sale_id
        self.reason = reason
        super().__init__(f"Sale #{sale_id} cannot be cancelled: {reason}")


class PriceBelowCostError(DomainException):
    """A new selling price is below the cost of stock still on hand."""

    def __init__(self, product_name: str, new_price: Decimal, highest_cost: Decimal) -> None:
        self.product_name = product_name
        self.new_price = new_price
        self.highest_cost = highest_cost
        super().__init__(
            f"New selling price ({new_price:.2f}) for {product_name} is lower than "
            f"the highest item cost still in stock ({highest_cost:.2f}); "
            f"selling those units would incur a loss"
        )


class StockLedgerError(DomainException):
    """Restored units could not be placed back into any stock batch."""


class ConcurrentModificationError(DomainException):
    """Stored data changed between read and write."""


class StoreError(DomainException):
    """The backing store failed."""


class StoreUnavailableError(StoreError):
    """The backing store could not be read."""


class StoreWriteError(StoreError):
    """The backing store rejected or failed a write."""
