"""Application services: dashboard sales figures.

All figures exclude cancelled sales. Days, weeks and months are counted in
the configured local time zone; weeks start on Monday.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Hashable
from dataclasses import dataclass
from datetime import date, timedelta, timezone, tzinfo
from decimal import Decimal

from ims.application.clock import Clock, local_date, utcnow
from ims.application.dto import (
    DailySalesDTO,
    DayDetailDTO,
    DayProductSalesDTO,
    DayStockInDTO,
    PeriodFiguresDTO,
    SalesSummaryDTO,
    format_amount,
)
from ims.domain.model.sale import Sale, SaleItem
from ims.domain.repository.unit_of_work import UnitOfWork


@dataclass
class _DayFigures:
    sales: Decimal = Decimal("0")
    gross_profit: Decimal = Decimal("0")
    units_sold: int = 0


@dataclass
class _StockInFigures:
    quantity: int = 0
    total_cost: Decimal = Decimal("0")


def _aggregate(
    sales: list[Sale], key: Callable[[Sale, SaleItem], Hashable]
) -> dict:
    groups: dict = defaultdict(_DayFigures)
    for sale in sales:
        if sale.is_cancelled:
            continue
        for item in sale.items:
            figures = groups[key(sale, item)]
            figures.sales += item.line_total.amount
            figures.gross_profit += item.gross_profit
            figures.units_sold += item.quantity.value
    return dict(groups)


def aggregate_by_day(sales: list[Sale], tz: tzinfo) -> dict[date, _DayFigures]:
    return _aggregate(sales, lambda sale, _: local_date(sale.created_at, tz))


class SalesSummaryHandler:
    """Sales and gross profit for today, this week and this month."""

    def __init__(
        self, uow: UnitOfWork, *, clock: Clock = utcnow, tz: tzinfo = timezone.utc
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._tz = tz

    def handle(self) -> SalesSummaryDTO:
        with self._uow as uow:
            days = aggregate_by_day(uow.sales.list_all(), self._tz)

        today = local_date(self._clock(), self._tz)
        week_start = today - timedelta(days=today.weekday())
        month_start = today.replace(day=1)

        return SalesSummaryDTO(
            today=self._period(days, today, today),
            week=self._period(days, week_start, today),
            month=self._period(days, month_start, today),
        )

    @staticmethod
    def _period(days: dict[date, _DayFigures], start: date, end: date) -> PeriodFiguresDTO:
        sales = Decimal("0")
        profit = Decimal("0")
        for day, figures in days.items():
            if start <= day <= end:
                sales += figures.sales
                profit += figures.gross_profit
        return PeriodFiguresDTO(sales=format_amount(sales), gross_profit=format_amount(profit))


class DailySalesHandler:
    """Per-day sales, gross profit and units sold, oldest day first."""

    def __init__(self, uow: UnitOfWork, *, tz: tzinfo = timezone.utc) -> None:
        self._uow = uow
        self._tz = tz

    def handle(self, start: date | None = None, end: date | None = None) -> list[DailySalesDTO]:
        with self._uow as uow:
            days = aggregate_by_day(uow.sales.list_all(), self._tz)

        return [
            DailySalesDTO(
                date=day.isoformat(),
                sales=format_amount(figures.sales),
                gross_profit=format_amount(figures.gross_profit),
                units_sold=figures.units_sold,
            )
            for day, figures in sorted(days.items())
            if (start is None or day >= start) and (end is None or day <= end)
        ]


class DayDetailHandler:
    """One local day in detail: sales and stock received, per product."""

    def __init__(self, uow: UnitOfWork, *, tz: tzinfo = timezone.utc) -> None:
        self._uow = uow
        self._tz = tz

    def handle(self, day: date) -> DayDetailDTO:
        with self._uow as uow:
            sales = [
                s for s in uow.sales.list_all()
                if local_date(s.created_at, self._tz) == day
            ]
            received = [
                b for b in uow.batches.list_all()
                if local_date(b.received_at, self._tz) == day
            ]
            products = {p.id: p for p in uow.products.list_all()}

        names = {
            item.product_id: item.product_name for sale in sales for item in sale.items
        }
        for product_id, product in products.items():
            names[product_id] = product.name

        def sku(product_id: str) -> str:
            product = products.get(product_id)
            return product.sku if product else ""

        sold = _aggregate(sales, lambda _, item: item.product_id)
        stock_in: dict[str, _StockInFigures] = defaultdict(_StockInFigures)
        for batch in received:
            entry = stock_in[batch.product_id]
            entry.quantity += batch.quantity
            entry.total_cost += batch.total_cost.amount

        totals = aggregate_by_day(sales, self._tz).get(day, _DayFigures())
        stock_in_cost = sum((e.total_cost for e in stock_in.values()), Decimal("0"))

        return DayDetailDTO(
            date=day.isoformat(),
            sales=sorted(
                (
                    DayProductSalesDTO(
                        product_name=names[product_id],
                        sku=sku(product_id),
                        quantity=figures.units_sold,
                        sales=format_amount(figures.sales),
                        gross_profit=format_amount(figures.gross_profit),
                    )
                    for product_id, figures in sold.items()
                ),
                key=lambda line: line.product_name.lower(),
            ),
            stock_in=sorted(
                (
                    DayStockInDTO(
                        product_name=names.get(product_id, product_id),
                        sku=sku(product_id),
                        quantity=entry.quantity,
                        total_cost=format_amount(entry.total_cost),
                    )
                    for product_id, entry in stock_in.items()
                ),
                key=lambda line: line.product_name.lower(),
            ),
            total_sales=format_amount(totals.sales),
            total_gross_profit=format_amount(totals.gross_profit),
            units_sold=totals.units_sold,
            total_stock_in_cost=format_amount(stock_in_cost),
        )
