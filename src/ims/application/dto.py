"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world. Money is pre-formatted
for display (e.g. "₱1,250.00").
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from ims.domain.model.value_objects import CURRENCY_SYMBOLS, DEFAULT_CURRENCY


def format_amount(amount: Decimal, currency: str = DEFAULT_CURRENCY) -> str:
    """Format a signed amount, e.g. a gross loss as "-₱5.00"."""
    symbol = CURRENCY_SYMBOLS.get(currency, f"{currency} ")
    sign = "-" if amount < 0 else ""
    return f"{sign}{symbol}{abs(amount):,.2f}"


# --- Input -------------------------------------------------------------------


@dataclass(frozen=True)
class SaleLineSpec:
    """Input: one cart line (product id, SKU or name + quantity).

    ``unit_price`` defaults to the product's current selling price.
    """

    product: str
    quantity: int
    unit_price: str | None = None


# --- Output ------------------------------------------------------------------


@dataclass(frozen=True)
class SaleItemDTO:
    product_id: str
    product_name: str
    quantity: int
    selling_price: str
    line_total: str
    cost_of_goods_sold: str
    gross_profit: str


@dataclass(frozen=True)
class SaleDTO:
    id: int
    display_id: str
    status: str
    items: list[SaleItemDTO]
    total_amount: str
    total_cost_of_goods_sold: str
    created_at: str
    cancelled_at: str | None
    cancellable: bool


@dataclass(frozen=True)
class ProductDTO:
    id: str
    name: str
    sku: str
    unit: str
    selling_price: str
    low_stock_threshold: int
    total_stock: int
    archived: bool


@dataclass(frozen=True)
class ProductChangeDTO:
    changed_at: str
    old_price: str | None
    new_price: str | None
    old_unit: str | None
    new_unit: str | None
    old_threshold: int | None
    new_threshold: int | None


@dataclass(frozen=True)
class StockBatchDTO:
    id: int
    product_id: str
    product_name: str
    quantity: int
    remaining_quantity: int
    cost_price: str
    total_cost: str
    received_at: str


@dataclass(frozen=True)
class StockLevelDTO:
    product_id: str
    product_name: str
    sku: str
    unit: str
    total_stock: int
    low_stock_threshold: int
    status: str  # "Zero Stock", "Low Stock" or "In Stock"


@dataclass(frozen=True)
class PeriodFiguresDTO:
    sales: str
    gross_profit: str


@dataclass(frozen=True)
class SalesSummaryDTO:
    today: PeriodFiguresDTO
    week: PeriodFiguresDTO
    month: PeriodFiguresDTO


@dataclass(frozen=True)
class DailySalesDTO:
    date: str  # YYYY-MM-DD, local time
    sales: str
    gross_profit: str
    units_sold: int


@dataclass(frozen=True)
class ProductMetricDTO:
    product_name: str
    sku: str
    units_sold: int
    sales: str
    gross_profit: str


@dataclass(frozen=True)
class SaleLineDTO:
    """One line of a non-cancelled sale, for the all-sales listing."""

    sale_id: int
    display_id: str
    sold_at: str
    product_name: str
    sku: str
    quantity: int
    selling_price: str
    amount: str
    cost_of_goods_sold: str
    gross_profit: str


@dataclass(frozen=True)
class DayProductSalesDTO:
    product_name: str
    sku: str
    quantity: int
    sales: str
    gross_profit: str


@dataclass(frozen=True)
class DayStockInDTO:
    product_name: str
    sku: str
    quantity: int
    total_cost: str


@dataclass(frozen=True)
class DayDetailDTO:
    date: str
    sales: list[DayProductSalesDTO]
    stock_in: list[DayStockInDTO]
    total_sales: str
    total_gross_profit: str
    units_sold: int
    total_stock_in_cost: str


@dataclass(frozen=True)
class ProductClassificationDTO:
    """Product names grouped by how the top fast-moving and top
    high-profit lists overlap."""

    golden: list[str]
    high_profit_slow_moving: list[str]
    fast_moving_low_profit: list[str]
