"""Application services: inventory queries.

Stock levels per product, low-stock alerts and the stock-in history.
"""

from __future__ import annotations

from datetime import timezone, tzinfo

from ims.application.dto import StockBatchDTO, StockLevelDTO
from ims.application.mapping import batch_to_dto
from ims.domain.model.product import Product
from ims.domain.repository.unit_of_work import UnitOfWork

ZERO_STOCK = "Zero Stock"
LOW_STOCK = "Low Stock"
IN_STOCK = "In Stock"


def stock_status(total_stock: int, threshold: int) -> str:
    if total_stock == 0:
        return ZERO_STOCK
    if total_stock <= threshold:
        return LOW_STOCK
    return IN_STOCK


def _stock_level(product: Product, total_stock: int) -> StockLevelDTO:
    return StockLevelDTO(
        product_id=product.id,
        product_name=product.name,
        sku=product.sku,
        unit=product.unit,
        total_stock=total_stock,
        low_stock_threshold=product.low_stock_threshold,
        status=stock_status(total_stock, product.low_stock_threshold),
    )


class ShowInventoryHandler:
    """Stock level of every active product, by name."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[StockLevelDTO]:
        with self._uow as uow:
            levels = [
                _stock_level(p, uow.batches.total_remaining(p.id))
                for p in uow.products.list_all()
                if not p.is_archived
            ]
        return sorted(levels, key=lambda line: line.product_name.lower())


class LowStockHandler:
    """Active products at or below their low-stock threshold, emptiest first."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self) -> list[StockLevelDTO]:
        with self._uow as uow:
            levels = [
                _stock_level(p, uow.batches.total_remaining(p.id))
                for p in uow.products.list_all()
                if not p.is_archived
            ]
        low = [line for line in levels if line.total_stock <= line.low_stock_threshold]
        return sorted(low, key=lambda line: (line.total_stock, line.product_name.lower()))


class StockInHistoryHandler:
    """Every stock receipt, newest first."""

    def __init__(self, uow: UnitOfWork, *, tz: tzinfo = timezone.utc) -> None:
        self._uow = uow
        self._tz = tz

    def handle(self) -> list[StockBatchDTO]:
        with self._uow as uow:
            names = {p.id: p.name for p in uow.products.list_all()}
            batches = sorted(
                uow.batches.list_all(), key=lambda b: b.sort_key, reverse=True
            )
        return [
            batch_to_dto(b, names.get(b.product_id, b.product_id), self._tz)
            for b in batches
        ]
