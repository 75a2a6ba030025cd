"""CLI commands for stock receipts and stock levels."""

from __future__ import annotations

from datetime import datetime

import click

from ims.application.receive_stock import ReceiveStockHandler
from ims.application.show_inventory import (
    LowStockHandler,
    ShowInventoryHandler,
    StockInHistoryHandler,
)
from ims.domain.exceptions import DomainException
from ims.infrastructure.bootstrap import local_timezone, unit_of_work


@click.command("receive")
@click.option("--product", "product_ref", required=True, help="Product ID, SKU or name.")
@click.option("--quantity", required=True, type=int, help="Units received.")
@click.option("--cost", required=True, help="Unit cost (e.g. 10.50).")
@click.option("--received-at", type=click.DateTime(), default=None, help="Receipt time (local); defaults to now.")
def inventory_receive(
    product_ref: str, quantity: int, cost: str, received_at: datetime | None
) -> None:
    """Record a stock receipt as a new batch."""
    handler = ReceiveStockHandler(unit_of_work(), tz=local_timezone())

    try:
        dto = handler.handle(product_ref, quantity=quantity, cost_price=cost, received_at=received_at)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Batch #{dto.id}: {dto.quantity} x {dto.product_name} at {dto.cost_price} "
        f"(total {dto.total_cost})"
    )


def _print_levels(lines) -> None:
    click.echo(f"{'Product':<20} {'SKU':<12} {'Stock':>8} {'Threshold':>10}  Status")
    click.echo("-" * 66)
    for line in lines:
        click.echo(
            f"{line.product_name:<20} {line.sku:<12} {line.total_stock:>8} "
            f"{line.low_stock_threshold:>10}  {line.status}"
        )


@click.command("show")
def inventory_show() -> None:
    """Show current stock levels."""
    try:
        lines = ShowInventoryHandler(unit_of_work()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No products found.")
        return
    _print_levels(lines)


@click.command("low")
def inventory_low() -> None:
    """Show products at or below their low stock threshold."""
    try:
        lines = LowStockHandler(unit_of_work()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No low stock items.")
        return
    _print_levels(lines)


@click.command("history")
def inventory_history() -> None:
    """Show every stock receipt, newest first."""
    try:
        batches = StockInHistoryHandler(unit_of_work(), tz=local_timezone()).handle()
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not batches:
        click.echo("No stock received yet.")
        return

    click.echo(
        f"{'Batch':<6} {'Received':<22} {'Product':<20} {'Qty':>6} {'Left':>6} {'Cost':>12} {'Total':>14}"
    )
    click.echo("-" * 92)
    for b in batches:
        click.echo(
            f"{b.id:<6} {b.received_at:<22} {b.product_name:<20} {b.quantity:>6} "
            f"{b.remaining_quantity:>6} {b.cost_price:>12} {b.total_cost:>14}"
        )
