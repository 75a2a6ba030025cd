"""JSON-backed implementation of SaleRepository.

Each sale record embeds its items. The item's line cost of goods sold is
stored under ``cost_price`` (the established column name); it is the line
total, not a unit cost.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ims.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from ims.domain.model.sale import BatchConsumption, Sale, SaleItem
from ims.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from ims.domain.repository.sale_repository import SaleRepository


class JsonSaleRepository(SaleRepository):

    def __init__(self, records: list[dict]) -> None:
        self._records = records

    # --- SaleRepository interface ---------------------------------------------

    def get_by_id(self, sale_id: int) -> Sale | None:
        for raw in self._records:
            if raw["id"] == sale_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Sale]:
        sales = [self._to_domain(raw) for raw in self._records]
        return sorted(sales, key=lambda s: (s.created_at, s.id), reverse=True)

    def add(self, sale: Sale) -> None:
        sale.assign_identity(max((raw["id"] for raw in self._records), default=0) + 1)
        self._records.append(self._to_raw(sale))

    def mark_cancelled(self, sale_id: int, cancelled_at: datetime) -> None:
        for raw in self._records:
            if raw["id"] != sale_id:
                continue
            if raw.get("cancelled_at") is not None:
                raise ConcurrentModificationError(f"Sale #{sale_id} is already cancelled")
            raw["cancelled_at"] = cancelled_at.isoformat()
            return
        raise EntityNotFoundError(f"Sale #{sale_id} not found")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(sale: Sale) -> dict:
        return {
            "id": sale.id,
            "display_id": sale.display_id,
            "created_at": sale.created_at.isoformat(),
            "cancelled_at": sale.cancelled_at.isoformat() if sale.cancelled_at else None,
            "total_amount": str(sale.total_amount.amount),
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "selling_price": str(item.selling_price.amount),
                    "cost_price": str(item.line_cost_of_goods_sold.amount),
                    "currency": item.selling_price.currency,
                    "batches": [
                        {"batch_id": c.batch_id, "units": c.units}
                        for c in item.consumed_batches
                    ],
                }
                for item in sale.items
            ],
        }

    @staticmethod
    def _to_domain(raw: dict) -> Sale:
        items = [
            SaleItem(
                product_id=i["product_id"],
                product_name=i["product_name"],
                quantity=Quantity(i["quantity"]),
                selling_price=Money(
                    Decimal(i["selling_price"]), i.get("currency", DEFAULT_CURRENCY)
                ),
                line_cost_of_goods_sold=Money(
                    Decimal(i["cost_price"]), i.get("currency", DEFAULT_CURRENCY)
                ),
                consumed_batches=tuple(
                    BatchConsumption(batch_id=c["batch_id"], units=c["units"])
                    for c in i.get("batches", [])
                ),
            )
            for i in raw["items"]
        ]
        cancelled_at = raw.get("cancelled_at")
        return Sale(
            id=raw["id"],
            items=items,
            created_at=datetime.fromisoformat(raw["created_at"]),
            display_id=raw.get("display_id"),
            cancelled_at=datetime.fromisoformat(cancelled_at) if cancelled_at else None,
        )
