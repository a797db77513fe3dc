from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from shopfloor.models import (
    BillOfMaterials,
    Component,
    ComponentCategory,
    InventoryRecord,
    InventoryTransaction,
    OrderStatus,
    Product,
    SalesOrder,
    SalesOrderLine,
    SupplierComponent,
)
from shopfloor.services.demand_service import TERMINAL_ORDER_STATUSES, BomEntry, SalesOrderLineInput
from shopfloor.services.stock_health_service import InventoryLevel, TransactionInput
from shopfloor.services.text_utils import normalize_text


@dataclass(frozen=True)
class InventorySnapshot:
    component_id: int
    quantity_on_hand: int
    reorder_level: int
    location: str | None


@dataclass(frozen=True)
class ComponentHeader:
    component_id: int
    internal_code: str
    description: str | None
    unit_of_measure: str | None
    category_name: str | None


def get_component(db: Session, *, component_id: int) -> ComponentHeader:
    row = db.execute(
        select(Component, ComponentCategory.categoryname)
        .outerjoin(ComponentCategory, ComponentCategory.cat_id == Component.category_id)
        .where(Component.component_id == component_id)
    ).one_or_none()
    if not row:
        raise ValueError('Component not found')
    component, category_name = row
    return ComponentHeader(
        component_id=component.component_id,
        internal_code=component.internal_code,
        description=component.description,
        unit_of_measure=component.unit_of_measure,
        category_name=category_name,
    )


def get_inventory_record(db: Session, *, component_id: int) -> InventorySnapshot:
    row = db.execute(
        select(InventoryRecord).where(InventoryRecord.component_id == component_id)
    ).scalar_one_or_none()
    if row is None:
        return InventorySnapshot(component_id=component_id, quantity_on_hand=0, reorder_level=0, location=None)
    return InventorySnapshot(
        component_id=component_id,
        quantity_on_hand=int(row.quantity_on_hand or 0),
        reorder_level=int(row.reorder_level or 0),
        location=row.location,
    )


def get_low_stock_components(db: Session) -> list[InventoryLevel]:
    rows = db.execute(
        select(
            InventoryRecord.component_id,
            InventoryRecord.quantity_on_hand,
            InventoryRecord.reorder_level,
            InventoryRecord.location,
            Component.internal_code,
            Component.description,
        )
        .join(Component, Component.component_id == InventoryRecord.component_id)
        .where(
            InventoryRecord.reorder_level > 0,
            InventoryRecord.quantity_on_hand <= InventoryRecord.reorder_level,
        )
        .order_by(InventoryRecord.quantity_on_hand.asc())
    ).all()
    return [
        InventoryLevel(
            component_id=int(row.component_id),
            internal_code=row.internal_code,
            description=row.description,
            quantity_on_hand=int(row.quantity_on_hand or 0),
            reorder_level=int(row.reorder_level or 0),
            location=row.location,
        )
        for row in rows
    ]


def get_bom_entries(db: Session, *, component_id: int) -> list[BomEntry]:
    rows = db.execute(
        select(BillOfMaterials.product_id, BillOfMaterials.component_id, BillOfMaterials.quantity_required)
        .where(BillOfMaterials.component_id == component_id)
    ).all()
    return [
        BomEntry(
            product_id=int(row.product_id),
            component_id=int(row.component_id),
            quantity_required=Decimal(row.quantity_required or 0),
        )
        for row in rows
    ]


def get_open_sales_order_lines(
    db: Session,
    *,
    product_ids: list[int],
    excluded_statuses: frozenset[str] = TERMINAL_ORDER_STATUSES,
) -> list[SalesOrderLineInput]:
    if not product_ids:
        return []
    rows = db.execute(
        select(
            SalesOrderLine.order_id,
            SalesOrderLine.product_id,
            SalesOrderLine.quantity,
            SalesOrder.order_number,
            SalesOrder.order_date,
            OrderStatus.status_name,
            Product.internal_code,
            Product.name,
        )
        .join(SalesOrder, SalesOrder.order_id == SalesOrderLine.order_id)
        .join(OrderStatus, OrderStatus.status_id == SalesOrder.status_id)
        .join(Product, Product.product_id == SalesOrderLine.product_id)
        .where(
            SalesOrderLine.product_id.in_(product_ids),
            func.lower(OrderStatus.status_name).not_in(sorted(normalize_text(name) for name in excluded_statuses)),
        )
        .order_by(SalesOrder.order_date.asc(), SalesOrderLine.order_id.asc())
    ).all()
    return [
        SalesOrderLineInput(
            order_id=int(row.order_id),
            product_id=int(row.product_id),
            quantity=int(row.quantity or 0),
            status_name=row.status_name,
            order_number=row.order_number,
            order_date=row.order_date,
            product_code=row.internal_code,
            product_name=row.name,
        )
        for row in rows
    ]


def get_supplier_prices(db: Session, *, component_id: int) -> list[Decimal | None]:
    return list(
        db.execute(select(SupplierComponent.price).where(SupplierComponent.component_id == component_id)).scalars().all()
    )


def get_inventory_transactions(db: Session, *, component_id: int, since: datetime | None = None) -> list[TransactionInput]:
    query = select(InventoryTransaction.quantity, InventoryTransaction.transaction_date).where(
        InventoryTransaction.component_id == component_id
    )
    if since is not None:
        query = query.where(InventoryTransaction.transaction_date >= since)
    rows = db.execute(query.order_by(InventoryTransaction.transaction_date.asc())).all()
    return [TransactionInput(quantity=row.quantity, transaction_date=row.transaction_date) for row in rows]
