import click

from ims.infrastructure.cli.inventory_commands import (
    inventory_history,
    inventory_low,
    inventory_receive,
    inventory_show,
)
from ims.infrastructure.cli.product_commands import (
    product_add,
    product_archive,
    product_history,
    product_list,
    product_unarchive,
    product_update,
)
from ims.infrastructure.cli.report_commands import (
    report_daily,
    report_day,
    report_fast_moving,
    report_high_profit,
    report_metrics,
    report_summary,
)
from ims.infrastructure.cli.sale_commands import (
    sale_cancel,
    sale_items,
    sale_list,
    sale_record,
    sale_show,
)
from ims.infrastructure.log_config import setup_logging


@click.group()
def cli() -> None:
    """IMS — Inventory & Point-of-Sale"""
    setup_logging()


@cli.group()
def product() -> None:
    """Manage the product catalog."""


@cli.group()
def inventory() -> None:
    """Receive stock and inspect stock levels."""


@cli.group()
def sale() -> None:
    """Record, inspect and cancel sales."""


@cli.group()
def report() -> None:
    """Dashboard figures."""


# Register subcommands
product.add_command(product_add)
product.add_command(product_archive)
product.add_command(product_history)
product.add_command(product_list)
product.add_command(product_unarchive)
product.add_command(product_update)
inventory.add_command(inventory_history)
inventory.add_command(inventory_low)
inventory.add_command(inventory_receive)
inventory.add_command(inventory_show)
sale.add_command(sale_cancel)
sale.add_command(sale_items)
sale.add_command(sale_list)
sale.add_command(sale_record)
sale.add_command(sale_show)
report.add_command(report_daily)
report.add_command(report_day)
report.add_command(report_fast_moving)
report.add_command(report_high_profit)
report.add_command(report_metrics)
report.add_command(report_summary)
