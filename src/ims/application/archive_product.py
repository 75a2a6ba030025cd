"""Application service: Archive / Unarchive Product use cases.

Archived products keep their history but disappear from active listings,
cannot receive stock and cannot be sold. A product can only be archived
once all of its batches are empty.
"""

from __future__ import annotations

import logging

from ims.application.clock import Clock, utcnow
from ims.application.lookup import find_product
from ims.domain.repository.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class ArchiveProductHandler:

    def __init__(self, uow: UnitOfWork, *, clock: Clock = utcnow) -> None:
        self._uow = uow
        self._clock = clock

    def handle(self, product_ref: str) -> None:
        with self._uow as uow:
            product = find_product(uow.products, product_ref)
            product.archive(uow.batches.total_remaining(product.id), self._clock())
            uow.products.save(product)
            uow.commit()
        logger.info("Archived product #%s %s", product.id, product.name)


class UnarchiveProductHandler:

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, product_ref: str) -> None:
        with self._uow as uow:
            product = find_product(uow.products, product_ref)
            product.unarchive()
            uow.products.save(product)
            uow.commit()
        logger.info("Unarchived product #%s %s", product.id, product.name)
