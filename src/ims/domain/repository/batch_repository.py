"""Abstract repository for StockBatch entities.

This is the store's view of the stock ledger: reads in FIFO order and
conditional writes of remaining quantities.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.model.stock_batch import StockBatch


class BatchRepository(ABC):

    @abstractmethod
    def get_by_id(self, batch_id: int) -> StockBatch | None:
        """Return a batch by its ID, or None if not found."""

    @abstractmethod
    def list_for_product(
        self,
        product_id: str,
        *,
        in_stock_only: bool = False,
        newest_first: bool = False,
    ) -> list[StockBatch]:
        """Return a product's batches ordered by ``received_at`` (then ID).

        Oldest first unless ``newest_first``. With ``in_stock_only`` only
        batches whose ``remaining_quantity > 0`` are returned.
        """

    @abstractmethod
    def list_all(self) -> list[StockBatch]:
        """Return every batch, oldest first."""

    @abstractmethod
    def total_remaining(self, product_id: str) -> int:
        """Return the sum of ``remaining_quantity`` across a product's batches."""

    @abstractmethod
    def add(self, batch: StockBatch) -> None:
        """Persist a newly received batch, assigning its ID."""

    @abstractmethod
    def update_remaining(
        self, batch_id: int, new_remaining: int, *, expected_remaining: int
    ) -> None:
        """Set a batch's remaining quantity.

        Conditional write: raises ConcurrentModificationError if the stored
        remaining quantity is no longer ``expected_remaining``.
        """
