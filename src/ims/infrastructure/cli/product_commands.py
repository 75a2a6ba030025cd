"""CLI commands for the Product aggregate."""

from __future__ import annotations

import click

from ims.application.add_product import AddProductHandler
from ims.application.archive_product import ArchiveProductHandler, UnarchiveProductHandler
from ims.application.list_products import ListProductsHandler
from ims.application.update_product import ProductHistoryHandler, UpdateProductHandler
from ims.domain.exceptions import DomainException, PriceBelowCostError
from ims.infrastructure.bootstrap import local_timezone, unit_of_work


@click.command("add")
@click.option("--name", required=True, help="Product name.")
@click.option("--sku", required=True, help="Stock keeping unit code.")
@click.option("--price", required=True, help="Selling price (e.g. 15.00).")
@click.option("--unit", default="pc", show_default=True, help="Unit of measure.")
@click.option("--threshold", default=0, type=int, show_default=True, help="Low stock threshold.")
def product_add(name: str, sku: str, price: str, unit: str, threshold: int) -> None:
    """Add a new product to the catalog."""
    handler = AddProductHandler(unit_of_work())

    try:
        dto = handler.handle(
            name=name, sku=sku, selling_price=price, unit=unit, low_stock_threshold=threshold
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product #{dto.id} '{dto.name}' ({dto.sku}) added at {dto.selling_price}")


@click.command("list")
@click.option("--all", "include_archived", is_flag=True, default=False, help="Include archived products.")
def product_list(include_archived: bool) -> None:
    """List products in the catalog."""
    try:
        products = ListProductsHandler(unit_of_work()).handle(include_archived=include_archived)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not products:
        click.echo("No products found.")
        return

    click.echo(f"{'ID':<6} {'Name':<20} {'SKU':<12} {'Price':>12} {'Stock':>8} {'Unit':<6}")
    click.echo("-" * 70)
    for p in products:
        name = f"{p.name} (archived)" if p.archived else p.name
        click.echo(
            f"{p.id:<6} {name:<20} {p.sku:<12} {p.selling_price:>12} {p.total_stock:>8} {p.unit:<6}"
        )


@click.command("update")
@click.option("--product", "product_ref", required=True, help="Product ID, SKU or name.")
@click.option("--price", default=None, help="New selling price.")
@click.option("--unit", default=None, help="New unit of measure.")
@click.option("--threshold", default=None, type=int, help="New low stock threshold.")
@click.option("--force", is_flag=True, default=False, help="Accept a price below stock cost.")
def product_update(
    product_ref: str,
    price: str | None,
    unit: str | None,
    threshold: int | None,
    force: bool,
) -> None:
    """Update a product's price, unit or low stock threshold."""
    if price is None and unit is None and threshold is None:
        raise click.UsageError("Nothing to update: give --price, --unit or --threshold.")

    handler = UpdateProductHandler(unit_of_work(), tz=local_timezone())

    def run(force_update: bool):
        return handler.handle(
            product_ref,
            selling_price=price,
            unit=unit,
            low_stock_threshold=threshold,
            force=force_update,
        )

    try:
        try:
            change = run(force)
        except PriceBelowCostError as exc:
            click.echo(str(exc))
            if not click.confirm("Proceed anyway?", default=False):
                raise click.ClickException("Update cancelled.")
            change = run(True)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if change is None:
        click.echo("No changes.")
    else:
        click.echo(f"Product '{product_ref}' updated.")


@click.command("history")
@click.option("--product", "product_ref", required=True, help="Product ID, SKU or name.")
def product_history(product_ref: str) -> None:
    """Show a product's price and attribute history."""
    try:
        changes = ProductHistoryHandler(unit_of_work(), tz=local_timezone()).handle(product_ref)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not changes:
        click.echo("No changes recorded.")
        return

    for c in changes:
        parts = []
        if c.new_price is not None:
            parts.append(f"price {c.old_price} -> {c.new_price}")
        if c.new_unit is not None:
            parts.append(f"unit {c.old_unit} -> {c.new_unit}")
        if c.new_threshold is not None:
            parts.append(f"threshold {c.old_threshold} -> {c.new_threshold}")
        click.echo(f"{c.changed_at}  {', '.join(parts)}")


@click.command("archive")
@click.option("--product", "product_ref", required=True, help="Product ID, SKU or name.")
def product_archive(product_ref: str) -> None:
    """Archive a product that has no stock left."""
    try:
        ArchiveProductHandler(unit_of_work()).handle(product_ref)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product '{product_ref}' archived.")


@click.command("unarchive")
@click.option("--product", "product_ref", required=True, help="Product ID, SKU or name.")
def product_unarchive(product_ref: str) -> None:
    """Return an archived product to the active catalog."""
    try:
        UnarchiveProductHandler(unit_of_work()).handle(product_ref)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Product '{product_ref}' unarchived.")
