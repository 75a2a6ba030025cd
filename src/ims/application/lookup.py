"""Resolve user-supplied product references (ID, SKU or name)."""

from __future__ import annotations

from ims.domain.exceptions import EntityNotFoundError, InvalidRequestError
from ims.domain.model.product import Product
from ims.domain.repository.product_repository import ProductRepository


def find_product(repo: ProductRepository, ref: str) -> Product:
    """Return the one product whose ID, SKU or name equals ``ref``.

    A reference that names different products through different fields
    (e.g. one product's SKU is another product's ID) is rejected rather
    than guessed.
    """
    ref = ref.strip()
    matches: dict[str, Product] = {}
    for product in (repo.get_by_id(ref), repo.get_by_sku(ref), repo.get_by_name(ref)):
        if product is not None:
            matches.setdefault(product.id, product)

    if not matches:
        raise EntityNotFoundError(f"Product not found: '{ref}'")
    if len(matches) > 1:
        names = ", ".join(f"#{p.id} {p.name} ({p.sku})" for p in matches.values())
        raise InvalidRequestError(
            f"Product reference '{ref}' is ambiguous: it matches {names}"
        )
    return next(iter(matches.values()))
