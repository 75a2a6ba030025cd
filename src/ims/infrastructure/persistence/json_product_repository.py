"""JSON-backed implementation of ProductRepository.

Works on the record lists loaded by JsonUnitOfWork; nothing is written
to disk until the unit of work commits.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ims.domain.model.product import Product, ProductChange
from ims.domain.model.value_objects import DEFAULT_CURRENCY, Money
from ims.domain.repository.product_repository import ProductRepository


class JsonProductRepository(ProductRepository):

    def __init__(self, records: list[dict], change_records: list[dict]) -> None:
        self._records = records
        self._change_records = change_records

    # --- ProductRepository interface ------------------------------------------

    def next_id(self) -> str:
        if not self._records:
            return "1"
        return str(max(int(raw["id"]) for raw in self._records) + 1)

    def get_by_id(self, product_id: str) -> Product | None:
        for raw in self._records:
            if raw["id"] == product_id:
                return self._to_domain(raw)
        return None

    def get_by_sku(self, sku: str) -> Product | None:
        for raw in self._records:
            if raw["sku"].lower() == sku.lower():
                return self._to_domain(raw)
        return None

    def get_by_name(self, name: str) -> Product | None:
        for raw in self._records:
            if raw["name"].lower() == name.lower():
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Product]:
        return [self._to_domain(raw) for raw in self._records]

    def save(self, product: Product) -> None:
        for i, raw in enumerate(self._records):
            if raw["id"] == product.id:
                self._records[i] = self._to_raw(product)
                return
        self._records.append(self._to_raw(product))

    def add_change(self, change: ProductChange) -> None:
        self._change_records.append(self._change_to_raw(change))

    def list_changes(self, product_id: str) -> list[ProductChange]:
        changes = [
            self._change_to_domain(raw)
            for raw in self._change_records
            if raw["product_id"] == product_id
        ]
        return sorted(changes, key=lambda c: c.changed_at)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(product: Product) -> dict:
        return {
            "id": product.id,
            "name": product.name,
            "sku": product.sku,
            "unit": product.unit,
            "selling_price": str(product.selling_price.amount),
            "currency": product.selling_price.currency,
            "low_stock_threshold": product.low_stock_threshold,
            "archived_at": product.archived_at.isoformat() if product.archived_at else None,
            "created_at": product.created_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Product:
        return Product(
            id=raw["id"],
            name=raw["name"],
            sku=raw["sku"],
            selling_price=Money(
                Decimal(raw["selling_price"]), raw.get("currency", DEFAULT_CURRENCY)
            ),
            unit=raw.get("unit", "pc"),
            low_stock_threshold=raw.get("low_stock_threshold", 0),
            archived_at=_parse_datetime(raw.get("archived_at")),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )

    @staticmethod
    def _change_to_raw(change: ProductChange) -> dict:
        raw: dict = {
            "product_id": change.product_id,
            "changed_at": change.changed_at.isoformat(),
        }
        if change.old_price is not None or change.new_price is not None:
            raw["old_price"] = str(change.old_price.amount) if change.old_price else None
            raw["new_price"] = str(change.new_price.amount) if change.new_price else None
        if change.old_unit is not None or change.new_unit is not None:
            raw["old_unit"] = change.old_unit
            raw["new_unit"] = change.new_unit
        if change.old_threshold is not None or change.new_threshold is not None:
            raw["old_threshold"] = change.old_threshold
            raw["new_threshold"] = change.new_threshold
        return raw

    @staticmethod
    def _change_to_domain(raw: dict) -> ProductChange:
        def money(value: str | None) -> Money | None:
            return Money(Decimal(value)) if value is not None else None

        return ProductChange(
            product_id=raw["product_id"],
            changed_at=datetime.fromisoformat(raw["changed_at"]),
            old_price=money(raw.get("old_price")),
            new_price=money(raw.get("new_price")),
            old_unit=raw.get("old_unit"),
            new_unit=raw.get("new_unit"),
            old_threshold=raw.get("old_threshold"),
            new_threshold=raw.get("new_threshold"),
        )


def _parse_datetime(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None
