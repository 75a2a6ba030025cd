"""Domain -> DTO mapping shared by several handlers."""

from __future__ import annotations

from datetime import datetime, timedelta, tzinfo

from ims.application.clock import format_timestamp
from ims.application.dto import (
    ProductChangeDTO,
    ProductDTO,
    SaleDTO,
    SaleItemDTO,
    StockBatchDTO,
    format_amount,
)
from ims.domain.model.product import Product, ProductChange
from ims.domain.model.sale import Sale
from ims.domain.model.stock_batch import StockBatch


def sale_to_dto(sale: Sale, now: datetime, window: timedelta, tz: tzinfo) -> SaleDTO:
    return SaleDTO(
        id=sale.id,  # type: ignore[arg-type]
        display_id=sale.display_id or "",
        status=sale.status.value,
        items=[
            SaleItemDTO(
                product_id=item.product_id,
                product_name=item.product_name,
                quantity=item.quantity.value,
                selling_price=str(item.selling_price),
                line_total=str(item.line_total),
                cost_of_goods_sold=str(item.line_cost_of_goods_sold),
                gross_profit=format_amount(item.gross_profit, item.selling_price.currency),
            )
            for item in sale.items
        ],
        total_amount=str(sale.total_amount),
        total_cost_of_goods_sold=str(sale.total_cost_of_goods_sold),
        created_at=format_timestamp(sale.created_at, tz),
        cancelled_at=(
            format_timestamp(sale.cancelled_at, tz) if sale.cancelled_at else None
        ),
        cancellable=sale.is_cancellable(now, window),
    )


def product_to_dto(product: Product, total_stock: int) -> ProductDTO:
    return ProductDTO(
        id=product.id,
        name=product.name,
        sku=product.sku,
        unit=product.unit,
        selling_price=str(product.selling_price),
        low_stock_threshold=product.low_stock_threshold,
        total_stock=total_stock,
        archived=product.is_archived,
    )


def change_to_dto(change: ProductChange, tz: tzinfo) -> ProductChangeDTO:
    return ProductChangeDTO(
        changed_at=format_timestamp(change.changed_at, tz),
        old_price=str(change.old_price) if change.old_price is not None else None,
        new_price=str(change.new_price) if change.new_price is not None else None,
        old_unit=change.old_unit,
        new_unit=change.new_unit,
        old_threshold=change.old_threshold,
        new_threshold=change.new_threshold,
    )


def batch_to_dto(batch: StockBatch, product_name: str, tz: tzinfo) -> StockBatchDTO:
    return StockBatchDTO(
        id=batch.id,  # type: ignore[arg-type]
        product_id=batch.product_id,
        product_name=product_name,
        quantity=batch.quantity,
        remaining_quantity=batch.remaining_quantity,
        cost_price=str(batch.cost_price),
        total_cost=str(batch.total_cost),
        received_at=format_timestamp(batch.received_at, tz),
    )
