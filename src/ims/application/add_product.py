"""Application service: Add Product use case."""

from __future__ import annotations

import logging

from ims.application.dto import ProductDTO
from ims.application.mapping import product_to_dto
from ims.domain.exceptions import ValidationError
from ims.domain.model.product import Product
from ims.domain.model.value_objects import Money
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class AddProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(
        self,
        name: str,
        sku: str,
        selling_price: str,
        unit: str = "pc",
        low_stock_threshold: int = 0,
    ) -> ProductDTO:
        """Add a new product to the catalog."""
        with self._uow as uow:
            if name and uow.products.get_by_name(name.strip()) is not None:
                raise ValidationError(f"Product '{name.strip()}' already exists")
            if sku and uow.products.get_by_sku(sku.strip()) is not None:
                raise ValidationError(f"SKU '{sku.strip()}' is already in use")

            product = Product.create(
                product_id=uow.products.next_id(),
                name=name,
                sku=sku,
                selling_price=Money.of(selling_price),
                unit=unit,
                low_stock_threshold=low_stock_threshold,
            )
            uow.products.save(product)
            uow.commit()

        logger.info("Added product #%s %s (%s)", product.id, product.name, product.sku)
        return product_to_dto(product, total_stock=0)
