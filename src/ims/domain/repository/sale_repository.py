"""Abstract repository for the Sale aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from ims.domain.model.sale import Sale


class SaleRepository(ABC):

    @abstractmethod
    def get_by_id(self, sale_id: int) -> Sale | None:
        """Return a sale (with its items) by ID, or None if not found."""

    @abstractmethod
    def list_all(self) -> list[Sale]:
        """Return every sale, newest first."""

    @abstractmethod
    def add(self, sale: Sale) -> None:
        """Persist a new sale and its items, assigning ID and display ID."""

    @abstractmethod
    def mark_cancelled(self, sale_id: int, cancelled_at: datetime) -> None:
        """Set ``cancelled_at`` on a stored sale.

        Conditional write: raises ConcurrentModificationError if the stored
        sale is already cancelled.
        """
