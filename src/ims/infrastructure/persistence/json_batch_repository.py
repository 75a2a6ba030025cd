"""JSON-backed implementation of BatchRepository."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from ims.domain.exceptions import ConcurrentModificationError, EntityNotFoundError
from ims.domain.model.stock_batch import StockBatch
from ims.domain.model.value_objects import DEFAULT_CURRENCY, Money
from ims.domain.repository.batch_repository import BatchRepository


class JsonBatchRepository(BatchRepository):

    def __init__(self, records: list[dict]) -> None:
        self._records = records

    # --- BatchRepository interface --------------------------------------------

    def get_by_id(self, batch_id: int) -> StockBatch | None:
        for raw in self._records:
            if raw["id"] == batch_id:
                return self._to_domain(raw)
        return None

    def list_for_product(
        self,
        product_id: str,
        *,
        in_stock_only: bool = False,
        newest_first: bool = False,
    ) -> list[StockBatch]:
        batches = [
            self._to_domain(raw)
            for raw in self._records
            if raw["product_id"] == product_id
            and (not in_stock_only or raw["remaining_quantity"] > 0)
        ]
        return sorted(batches, key=lambda b: b.sort_key, reverse=newest_first)

    def list_all(self) -> list[StockBatch]:
        return sorted((self._to_domain(raw) for raw in self._records), key=lambda b: b.sort_key)

    def total_remaining(self, product_id: str) -> int:
        return sum(
            raw["remaining_quantity"]
            for raw in self._records
            if raw["product_id"] == product_id
        )

    def add(self, batch: StockBatch) -> None:
        batch.id = max((raw["id"] for raw in self._records), default=0) + 1
        self._records.append(self._to_raw(batch))

    def update_remaining(
        self, batch_id: int, new_remaining: int, *, expected_remaining: int
    ) -> None:
        for i, raw in enumerate(self._records):
            if raw["id"] != batch_id:
                continue
            if raw["remaining_quantity"] != expected_remaining:
                raise ConcurrentModificationError(
                    f"Stock batch #{batch_id} changed: expected {expected_remaining} "
                    f"remaining, found {raw['remaining_quantity']}"
                )
            batch = self._to_domain(raw)
            if new_remaining < expected_remaining:
                batch.consume(expected_remaining - new_remaining)
            elif new_remaining > expected_remaining:
                batch.restock(new_remaining - expected_remaining)
            self._records[i] = self._to_raw(batch)
            return
        raise EntityNotFoundError(f"Stock batch #{batch_id} not found")

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(batch: StockBatch) -> dict:
        return {
            "id": batch.id,
            "product_id": batch.product_id,
            "quantity": batch.quantity,
            "remaining_quantity": batch.remaining_quantity,
            "cost_price": str(batch.cost_price.amount),
            "currency": batch.cost_price.currency,
            "received_at": batch.received_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> StockBatch:
        return StockBatch(
            id=raw["id"],
            product_id=raw["product_id"],
            quantity=raw["quantity"],
            remaining_quantity=raw["remaining_quantity"],
            cost_price=Money(Decimal(raw["cost_price"]), raw.get("currency", DEFAULT_CURRENCY)),
            received_at=datetime.fromisoformat(raw["received_at"]),
        )
