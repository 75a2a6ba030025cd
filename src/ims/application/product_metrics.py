"""Application services: fast-moving and high-profit items.

All rank products over every non-cancelled sale.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal

from ims.application.dto import ProductClassificationDTO, ProductMetricDTO, format_amount
from ims.domain.repository.unit_of_work import UnitOfWork

DEFAULT_LIMIT = 5


@dataclass
class _Totals:
    units_sold: int = 0
    sales: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")


def _product_totals(uow: UnitOfWork) -> list[tuple[_Totals, ProductMetricDTO]]:
    totals: dict[str, _Totals] = defaultdict(_Totals)
    names: dict[str, str] = {}
    for sale in uow.sales.list_all():
        if sale.is_cancelled:
            continue
        for item in sale.items:
            t = totals[item.product_id]
            t.units_sold += item.quantity.value
            t.sales += item.line_total.amount
            t.gross_profit += item.gross_profit
            names[item.product_id] = item.product_name

    metrics: list[tuple[_Totals, ProductMetricDTO]] = []
    for product_id, t in totals.items():
        product = uow.products.get_by_id(product_id)
        metrics.append((
            t,
            ProductMetricDTO(
                product_name=product.name if product else names[product_id],
                sku=product.sku if product else "",
                units_sold=t.units_sold,
                sales=format_amount(t.sales),
                gross_profit=format_amount(t.gross_profit),
            ),
        ))
    return metrics


def _by_units_sold(metrics: list[tuple[_Totals, ProductMetricDTO]]) -> list[ProductMetricDTO]:
    ranked = sorted(metrics, key=lambda m: (-m[0].units_sold, m[1].product_name.lower()))
    return [dto for _, dto in ranked]


def _by_gross_profit(metrics: list[tuple[_Totals, ProductMetricDTO]]) -> list[ProductMetricDTO]:
    ranked = sorted(metrics, key=lambda m: (-m[0].gross_profit, m[1].product_name.lower()))
    return [dto for _, dto in ranked]


class FastMovingItemsHandler:
    """Products with the most units sold."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, limit: int = DEFAULT_LIMIT) -> list[ProductMetricDTO]:
        with self._uow as uow:
            metrics = _product_totals(uow)
        return _by_units_sold(metrics)[:limit]


class HighProfitItemsHandler:
    """Products with the highest gross profit."""

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, limit: int = DEFAULT_LIMIT) -> list[ProductMetricDTO]:
        with self._uow as uow:
            metrics = _product_totals(uow)
        return _by_gross_profit(metrics)[:limit]


class ProductClassificationHandler:
    """Compare the top fast-moving and top high-profit products.

    Products on both lists are "golden"; the rest of each list are either
    high-profit but slow-moving, or fast-moving but low-profit. Each group
    keeps the order of the list it comes from.
    """

    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    def handle(self, limit: int = DEFAULT_LIMIT) -> ProductClassificationDTO:
        with self._uow as uow:
            metrics = _product_totals(uow)

        fast = [m.product_name for m in _by_units_sold(metrics)[:limit]]
        profitable = [m.product_name for m in _by_gross_profit(metrics)[:limit]]

        return ProductClassificationDTO(
            golden=[name for name in fast if name in profitable],
            high_profit_slow_moving=[name for name in profitable if name not in fast],
            fast_moving_low_profit=[name for name in fast if name not in profitable],
        )
