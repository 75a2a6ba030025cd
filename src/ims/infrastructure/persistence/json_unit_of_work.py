"""JSON-file-backed UnitOfWork.

Entering the block loads every data file into memory; repositories work
on those in-memory records. ``commit()`` first checks that no file changed
on disk since it was loaded (ConcurrentModificationError otherwise), then
writes back the files that were modified.
"""

from __future__ import annotations

import logging
from pathlib import Path

from ims.domain.exceptions import ConcurrentModificationError
from ims.domain.repository.unit_of_work import UnitOfWork
from ims.infrastructure.persistence.json_batch_repository import JsonBatchRepository
from ims.infrastructure.persistence.json_document import JsonDocument
from ims.infrastructure.persistence.json_product_repository import JsonProductRepository
from ims.infrastructure.persistence.json_sale_repository import JsonSaleRepository

logger = logging.getLogger(__name__)

DATA_FILES = {
    "products": "products.json",
    "product_changes": "product_changes.json",
    "batches": "batches.json",
    "sales": "sales.json",
}


class JsonUnitOfWork(UnitOfWork):

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._documents: dict[str, JsonDocument] = {}
        self._records: dict[str, list[dict]] = {}

    def __enter__(self) -> JsonUnitOfWork:
        self._documents = {
            name: JsonDocument(self._data_dir / filename)
            for name, filename in DATA_FILES.items()
        }
        self._records = {name: doc.load() for name, doc in self._documents.items()}

        self.products = JsonProductRepository(
            self._records["products"], self._records["product_changes"]
        )
        self.batches = JsonBatchRepository(self._records["batches"])
        self.sales = JsonSaleRepository(self._records["sales"])
        return self

    def commit(self) -> None:
        changed_on_disk = [
            doc.file_path.name for doc in self._documents.values() if doc.has_changed()
        ]
        if changed_on_disk:
            raise ConcurrentModificationError(
                f"Data changed on disk during the operation: {', '.join(changed_on_disk)}"
            )

        for name, doc in self._documents.items():
            records = self._records[name]
            if doc.is_modified(records):
                doc.write(records)
                logger.debug("Wrote %d record(s) to %s", len(records), doc.file_path)
        self._clear()

    def rollback(self) -> None:
        self._clear()

    def _clear(self) -> None:
        self._documents = {}
        self._records = {}
