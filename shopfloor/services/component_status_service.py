from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from shopfloor.config import settings
from shopfloor.services.demand_service import ComponentOrderNeed, build_order_breakdown
from shopfloor.services.inventory_data_service import (
    InventorySnapshot,
    get_bom_entries,
    get_inventory_record,
    get_inventory_transactions,
    get_open_sales_order_lines,
    get_supplier_prices,
)
from shopfloor.services.purchase_order_reconciliation_service import OnOrderSummary, summarize_on_order
from shopfloor.services.purchasing_data_service import get_open_purchase_order_lines
from shopfloor.services.stock_health_service import (
    StockPosition,
    StockPositionInput,
    StockValuation,
    TransactionStats,
    UsageStats,
    compute_stock_position,
    compute_stock_valuation,
    compute_usage_stats,
    summarize_transactions,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')


@dataclass(frozen=True)
class ComponentStatus:
    component_id: int
    inventory: InventorySnapshot
    position: StockPosition
    on_order: OnOrderSummary
    order_breakdown: list[ComponentOrderNeed]
    usage: UsageStats
    transactions: TransactionStats
    valuation: StockValuation


def _load_or_default(label: str, component_id: int, loader: Callable[[], T], default: T) -> T:
    try:
        return loader()
    except SQLAlchemyError:
        logger.warning('Failed to load %s for component %s; treating as empty', label, component_id, exc_info=True)
        return default


def load_required_for_orders(db: Session, *, component_id: int) -> list[ComponentOrderNeed]:
    bom_entries = _load_or_default('bill of materials', component_id, lambda: get_bom_entries(db, component_id=component_id), [])
    if not bom_entries:
        return []
    product_ids = sorted({entry.product_id for entry in bom_entries})
    sales_lines = _load_or_default(
        'open sales order lines',
        component_id,
        lambda: get_open_sales_order_lines(db, product_ids=product_ids),
        [],
    )
    return build_order_breakdown(component_id, bom_entries, sales_lines)


def build_component_status(db: Session, *, component_id: int, as_of: datetime | None = None) -> ComponentStatus:
    as_of = as_of or datetime.now(tz=timezone.utc)
    inventory = _load_or_default(
        'inventory record',
        component_id,
        lambda: get_inventory_record(db, component_id=component_id),
        InventorySnapshot(component_id=component_id, quantity_on_hand=0, reorder_level=0, location=None),
    )
    open_orders = _load_or_default(
        'open purchase order lines',
        component_id,
        lambda: get_open_purchase_order_lines(db, component_id=component_id),
        [],
    )
    on_order = summarize_on_order(open_orders).get(component_id) or OnOrderSummary(component_id=component_id)
    breakdown = load_required_for_orders(db, component_id=component_id)
    required = sum((need.component_needed for need in breakdown), Decimal('0'))

    position = compute_stock_position(
        StockPositionInput(
            current_stock=inventory.quantity_on_hand,
            reorder_level=inventory.reorder_level,
            on_order=on_order.total,
            required=required,
        )
    )

    transactions = _load_or_default(
        'inventory transactions',
        component_id,
        lambda: get_inventory_transactions(db, component_id=component_id),
        [],
    )
    usage = compute_usage_stats(
        transactions,
        current_stock=inventory.quantity_on_hand,
        as_of=as_of,
        lookback_days=settings.usage_lookback_days,
        stockout_warning_days=settings.stockout_warning_days,
    )
    prices = _load_or_default('supplier prices', component_id, lambda: get_supplier_prices(db, component_id=component_id), [])

    return ComponentStatus(
        component_id=component_id,
        inventory=inventory,
        position=position,
        on_order=on_order,
        order_breakdown=breakdown,
        usage=usage,
        transactions=summarize_transactions(transactions, as_of=as_of),
        valuation=compute_stock_valuation(
            current_stock=inventory.quantity_on_hand,
            on_order=on_order.total,
            required=required,
            prices=prices,
        ),
    )
