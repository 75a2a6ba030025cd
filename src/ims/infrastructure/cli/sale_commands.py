"""CLI commands for the Sale aggregate."""

from __future__ import annotations

from datetime import datetime

import click

from ims.application.cancel_sale import CancelSaleHandler
from ims.application.dto import SaleDTO, SaleLineSpec
from ims.application.record_sale import RecordSaleHandler
from ims.application.show_sale import ListSalesHandler, SaleItemsHandler, ShowSaleHandler
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import (
    cancellation_window,
    local_timezone,
    retry_options,
    reversal_strategy,
    unit_of_work,
)


def _parse_items(raw: str) -> list[SaleLineSpec]:
    """Parse 'SKU1:3,Widget:2@14.50' into SaleLineSpec list."""
    specs: list[SaleLineSpec] = []
    for pair in raw.split(","):
        pair = pair.strip()
        if ":" not in pair:
            raise click.BadParameter(
                f"Invalid item format '{pair}'. Expected 'Product:Quantity[@Price]'."
            )
        name, rest = pair.rsplit(":", 1)
        qty_str, _, price = rest.partition("@")
        try:
            qty = int(qty_str)
        except ValueError:
            raise click.BadParameter(
                f"Invalid quantity '{qty_str}' for product '{name}'."
            )
        specs.append(
            SaleLineSpec(product=name.strip(), quantity=qty, unit_price=price.strip() or None)
        )
    return specs


def _display_sale(dto: SaleDTO) -> None:
    """Shared formatting for displaying a sale."""
    click.echo(f"Sale {dto.display_id}  (#{dto.id}, status={dto.status})")
    click.echo(f"Created:  {dto.created_at}")
    if dto.cancelled_at:
        click.echo(f"Cancelled: {dto.cancelled_at}")
    click.echo()
    click.echo(
        f"  {'Product':<20} {'Qty':>5} {'Price':>12} {'Total':>12} {'COGS':>12} {'Profit':>12}"
    )
    click.echo(f"  {'-'*78}")
    for item in dto.items:
        click.echo(
            f"  {item.product_name:<20} {item.quantity:>5} {item.selling_price:>12} "
            f"{item.line_total:>12} {item.cost_of_goods_sold:>12} {item.gross_profit:>12}"
        )
    click.echo(f"  {'-'*78}")
    click.echo(f"  {'Sale Total':<27} {dto.total_amount:>25}")


@click.command("record")
@click.option("--items", required=True, help="Items as 'Product:Qty[@Price],...' (product ID, SKU or name).")
def sale_record(items: str) -> None:
    """Record a sale, costing every line by FIFO."""
    specs = _parse_items(items)

    handler = RecordSaleHandler(
        unit_of_work(),
        cancellation_window=cancellation_window(),
        tz=local_timezone(),
        **retry_options(),
    )

    try:
        dto = handler.handle(specs)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_sale(dto)


@click.command("show")
@click.option("--id", "sale_id", required=True, type=int, help="Sale ID to display.")
def sale_show(sale_id: int) -> None:
    """Show details of a sale."""
    handler = ShowSaleHandler(
        unit_of_work(), cancellation_window=cancellation_window(), tz=local_timezone()
    )

    try:
        dto = handler.handle(sale_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_sale(dto)


@click.command("list")
@click.option("--filter", "display_id_filter", default=None, help="Only sales whose display ID contains this text.")
def sale_list(display_id_filter: str | None) -> None:
    """List sales, newest first."""
    handler = ListSalesHandler(
        unit_of_work(), cancellation_window=cancellation_window(), tz=local_timezone()
    )

    try:
        sales = handler.handle(display_id_filter)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not sales:
        click.echo("No sales found.")
        return

    click.echo(f"{'ID':<6} {'Display ID':<16} {'Created':<22} {'Total':>14}  Status")
    click.echo("-" * 72)
    for s in sales:
        status = s.status + (" (cancellable)" if s.cancellable else "")
        click.echo(f"{s.id:<6} {s.display_id:<16} {s.created_at:<22} {s.total_amount:>14}  {status}")


@click.command("cancel")
@click.option("--id", "sale_id", required=True, type=int, help="Sale ID to cancel.")
def sale_cancel(sale_id: int) -> None:
    """Cancel a recent sale and restore its stock."""
    handler = CancelSaleHandler(
        unit_of_work(),
        cancellation_window=cancellation_window(),
        strategy=reversal_strategy(),
        **retry_options(),
    )

    try:
        handler.handle(sale_id)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Sale #{sale_id} cancelled, stock restored.")


@click.command("items")
@click.option("--product", "product_filter", default=None, help="Only lines whose product name contains this text.")
@click.option("--start", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="First day (YYYY-MM-DD).")
@click.option("--end", type=click.DateTime(formats=["%Y-%m-%d"]), default=None, help="Last day (YYYY-MM-DD).")
def sale_items(product_filter: str | None, start: datetime | None, end: datetime | None) -> None:
    """List every line of non-cancelled sales."""
    handler = SaleItemsHandler(unit_of_work(), tz=local_timezone())
    try:
        lines = handler.handle(
            product_filter,
            start=start.date() if start else None,
            end=end.date() if end else None,
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No sale items found.")
        return

    click.echo(
        f"{'Sold':<22} {'Sale':<16} {'Product':<20} {'Qty':>5} {'Amount':>12} {'Profit':>12}"
    )
    click.echo("-" * 92)
    for line in lines:
        click.echo(
            f"{line.sold_at:<22} {line.display_id:<16} {line.product_name:<20} "
            f"{line.quantity:>5} {line.amount:>12} {line.gross_profit:>12}"
        )
