"""Application services: sale queries, per sale and per sale line."""

from __future__ import annotations

from datetime import date, timedelta, timezone, tzinfo

from ims.application.clock import Clock, format_timestamp, local_date, utcnow
from ims.application.dto import SaleDTO, SaleLineDTO, format_amount
from ims.application.mapping import sale_to_dto
from ims.domain.exceptions import EntityNotFoundError
from ims.domain.model.sale import DEFAULT_CANCELLATION_WINDOW
from ims.domain.repository.unit_of_work import UnitOfWork


class ShowSaleHandler:

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        clock: Clock = utcnow,
        cancellation_window: timedelta = DEFAULT_CANCELLATION_WINDOW,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._window = cancellation_window
        self._tz = tz

    def handle(self, sale_id: int) -> SaleDTO:
        with self._uow as uow:
            sale = uow.sales.get_by_id(sale_id)
        if sale is None:
            raise EntityNotFoundError(f"Sale #{sale_id} not found")
        return sale_to_dto(sale, self._clock(), self._window, self._tz)


class ListSalesHandler:
    """All sales, newest first, optionally filtered by display ID."""

    def __init__(
        self,
        uow: UnitOfWork,
        *,
        clock: Clock = utcnow,
        cancellation_window: timedelta = DEFAULT_CANCELLATION_WINDOW,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self._uow = uow
        self._clock = clock
        self._window = cancellation_window
        self._tz = tz

    def handle(self, display_id_filter: str | None = None) -> list[SaleDTO]:
        with self._uow as uow:
            sales = uow.sales.list_all()
        if display_id_filter:
            sales = [s for s in sales if display_id_filter in (s.display_id or "")]
        now = self._clock()
        return [sale_to_dto(s, now, self._window, self._tz) for s in sales]


class SaleItemsHandler:
    """Every line of every non-cancelled sale, newest sale first.

    ``product_filter`` matches product names case-insensitively by
    substring. ``start`` and ``end`` are inclusive local dates.
    """

    def __init__(self, uow: UnitOfWork, *, tz: tzinfo = timezone.utc) -> None:
        self._uow = uow
        self._tz = tz

    def handle(
        self,
        product_filter: str | None = None,
        start: date | None = None,
        end: date | None = None,
    ) -> list[SaleLineDTO]:
        with self._uow as uow:
            sales = uow.sales.list_all()
            skus = {p.id: p.sku for p in uow.products.list_all()}

        needle = product_filter.strip().lower() if product_filter else ""
        lines: list[SaleLineDTO] = []
        for sale in sales:
            if sale.is_cancelled:
                continue
            day = local_date(sale.created_at, self._tz)
            if (start is not None and day < start) or (end is not None and day > end):
                continue
            for item in sale.items:
                if needle not in item.product_name.lower():
                    continue
                lines.append(
                    SaleLineDTO(
                        sale_id=sale.id,  # type: ignore[arg-type]
                        display_id=sale.display_id or "",
                        sold_at=format_timestamp(sale.created_at, self._tz),
                        product_name=item.product_name,
                        sku=skus.get(item.product_id, ""),
                        quantity=item.quantity.value,
                        selling_price=str(item.selling_price),
                        amount=str(item.line_total),
                        cost_of_goods_sold=str(item.line_cost_of_goods_sold),
                        gross_profit=format_amount(
                            item.gross_profit, item.selling_price.currency
                        ),
                    )
                )
        return lines
