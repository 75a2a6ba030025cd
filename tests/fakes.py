"""In-memory fake repositories and unit of work for testing.

These implement the same abstract interfaces as the JSON store but keep
everything in dicts. Reads hand out copies, like a real store would, so a
handler only changes stored state through repository writes.
"""

from __future__ import annotations

import copy
from datetime import datetime

from ims.domain.exceptions import (
    ConcurrentModificationError,
    EntityNotFoundError,
    StoreWriteError,
)
from ims.domain.model.product import Product, ProductChange
from ims.domain.model.sale import Sale
from ims.domain.model.stock_batch import StockBatch
from ims.domain.repository.batch_repository import BatchRepository
from ims.domain.repository.product_repository import ProductRepository
from ims.domain.repository.sale_repository import SaleRepository
from ims.domain.repository.unit_of_work import UnitOfWork


class FakeProductRepository(ProductRepository):

    def __init__(self, products: list[Product] | None = None) -> None:
        self._store: dict[str, Product] = {}
        self._changes: list[ProductChange] = []
        for p in products or []:
            self._store[p.id] = p

    def next_id(self) -> str:
        return str(max((int(pid) for pid in self._store), default=0) + 1)

    def get_by_id(self, product_id: str) -> Product | None:
        return copy.deepcopy(self._store.get(product_id))

    def get_by_sku(self, sku: str) -> Product | None:
        for p in self._store.values():
            if p.sku.lower() == sku.lower():
                return copy.deepcopy(p)
        return None

    def get_by_name(self, name: str) -> Product | None:
        for p in self._store.values():
            if p.name.lower() == name.lower():
                return copy.deepcopy(p)
        return None

    def list_all(self) -> list[Product]:
        return copy.deepcopy(list(self._store.values()))

    def save(self, product: Product) -> None:
        self._store[product.id] = copy.deepcopy(product)

    def add_change(self, change: ProductChange) -> None:
        self._changes.append(change)

    def list_changes(self, product_id: str) -> list[ProductChange]:
        return [c for c in self._changes if c.product_id == product_id]


class FakeBatchRepository(BatchRepository):

    def __init__(self, batches: list[StockBatch] | None = None) -> None:
        self._store: dict[int, StockBatch] = {}
        self.writes: list[tuple[int, int]] = []
        for b in batches or []:
            self.add(b)

    def get_by_id(self, batch_id: int) -> StockBatch | None:
        return copy.deepcopy(self._store.get(batch_id))

    def list_for_product(
        self,
        product_id: str,
        *,
        in_stock_only: bool = False,
        newest_first: bool = False,
    ) -> list[StockBatch]:
        batches = [
            b for b in self._store.values()
            if b.product_id == product_id and (not in_stock_only or b.remaining_quantity > 0)
        ]
        return copy.deepcopy(sorted(batches, key=lambda b: b.sort_key, reverse=newest_first))

    def list_all(self) -> list[StockBatch]:
        return copy.deepcopy(sorted(self._store.values(), key=lambda b: b.sort_key))

    def total_remaining(self, product_id: str) -> int:
        return sum(
            b.remaining_quantity for b in self._store.values() if b.product_id == product_id
        )

    def add(self, batch: StockBatch) -> None:
        if batch.id is None:
            batch.id = max(self._store, default=0) + 1
        self._store[batch.id] = copy.deepcopy(batch)

    def update_remaining(
        self, batch_id: int, new_remaining: int, *, expected_remaining: int
    ) -> None:
        batch = self._store.get(batch_id)
        if batch is None:
            raise EntityNotFoundError(f"Stock batch #{batch_id} not found")
        if batch.remaining_quantity != expected_remaining:
            raise ConcurrentModificationError(f"Stock batch #{batch_id} changed")
        if new_remaining < expected_remaining:
            batch.consume(expected_remaining - new_remaining)
        elif new_remaining > expected_remaining:
            batch.restock(new_remaining - expected_remaining)
        self.writes.append((batch_id, new_remaining))


class FakeSaleRepository(SaleRepository):

    def __init__(self, sales: list[Sale] | None = None) -> None:
        self._store: dict[int, Sale] = {}
        for s in sales or []:
            self.add(s)

    def get_by_id(self, sale_id: int) -> Sale | None:
        return copy.deepcopy(self._store.get(sale_id))

    def list_all(self) -> list[Sale]:
        sales = sorted(self._store.values(), key=lambda s: (s.created_at, s.id), reverse=True)
        return copy.deepcopy(sales)

    def add(self, sale: Sale) -> None:
        if sale.id is None:
            sale.assign_identity(max(self._store, default=0) + 1)
        self._store[sale.id] = copy.deepcopy(sale)

    def mark_cancelled(self, sale_id: int, cancelled_at: datetime) -> None:
        sale = self._store.get(sale_id)
        if sale is None:
            raise EntityNotFoundError(f"Sale #{sale_id} not found")
        if sale.cancelled_at is not None:
            raise ConcurrentModificationError(f"Sale #{sale_id} is already cancelled")
        sale.cancelled_at = cancelled_at


class FakeUnitOfWork(UnitOfWork):
    """Snapshots every repository on entry and restores it on rollback."""

    def __init__(
        self,
        products: list[Product] | None = None,
        batches: list[StockBatch] | None = None,
        sales: list[Sale] | None = None,
    ) -> None:
        self.products = FakeProductRepository(products)
        self.batches = FakeBatchRepository(batches)
        self.sales = FakeSaleRepository(sales)
        self.commits = 0
        self.rollbacks = 0
        self._snapshot: tuple | None = None

    def __enter__(self) -> FakeUnitOfWork:
        self._snapshot = copy.deepcopy((self.products, self.batches, self.sales))
        return self

    def commit(self) -> None:
        self.commits += 1
        self._snapshot = None

    def rollback(self) -> None:
        if self._snapshot is not None:
            self.rollbacks += 1
            self.products, self.batches, self.sales = self._snapshot
            self._snapshot = None


class FailingSaleRepository(FakeSaleRepository):
    """Refuses to store new sales, as a store with a failed write would."""

    def add(self, sale: Sale) -> None:
        raise StoreWriteError("sales table is unavailable")


class ConflictingUnitOfWork(FakeUnitOfWork):
    """Raises ConcurrentModificationError on the first ``conflicts`` commits."""

    def __init__(self, *args, conflicts: int = 1, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._conflicts_left = conflicts

    def commit(self) -> None:
        if self._conflicts_left > 0:
            self._conflicts_left -= 1
            raise ConcurrentModificationError("data changed on disk")
        super().commit()
