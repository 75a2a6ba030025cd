"""Unit of work: the transaction boundary around all repositories.

Usage::

    with uow:
        batch = uow.batches.get_by_id(1)
        ...
        uow.commit()

Leaving the ``with`` block without calling ``commit()`` (including by an
exception) discards every write made inside it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ims.domain.repository.batch_repository import BatchRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.sale_repository import SaleRepository


class UnitOfWork(ABC):

    products: ProductRepository
    batches: BatchRepository
    sales: SaleRepository

    def __enter__(self) -> UnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.rollback()

    @abstractmethod
    def commit(self) -> None:
        """Make every write since the block was entered durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard uncommitted writes. A no-op after ``commit()``."""
