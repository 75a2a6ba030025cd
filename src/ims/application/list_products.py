"""Application service: List Products use case (query)."""

from __future__ import annotations

from ims.application.dto import ProductDTO
from ims.application.mapping import product_to_dto
from ims.domain.repository.unit_of_work import UnitOfWork


class ListProductsHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, include_archived: bool = False) -> list[ProductDTO]:
        with self._uow as uow:
            products = [
                p for p in uow.products.list_all()
                if include_archived or not p.is_archived
            ]
            return [
                product_to_dto(p, uow.batches.total_remaining(p.id))
                for p in sorted(products, key=lambda p: p.name.lower())
            ]
