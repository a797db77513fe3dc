from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from shopfloor.models import (
    Component,
    PurchaseOrder,
    Supplier,
    SupplierComponent,
    SupplierOrder,
    SupplierOrderStatus,
)
from shopfloor.services.purchase_order_reconciliation_service import (
    ON_ORDER_STATUSES,
    PurchaseOrderInput,
    PurchaseOrderLineInput,
)
from shopfloor.services.text_utils import normalize_text


def _lines_by_order(db: Session, *, purchase_order_ids: list[int], component_id: int | None = None) -> dict[int, list[PurchaseOrderLineInput]]:
    if not purchase_order_ids:
        return {}
    query = (
        select(
            SupplierOrder.order_id,
            SupplierOrder.purchase_order_id,
            SupplierOrder.order_quantity,
            SupplierOrder.total_received,
            SupplierComponent.component_id,
            Component.internal_code,
            Supplier.name,
        )
        .join(SupplierComponent, SupplierComponent.supplier_component_id == SupplierOrder.supplier_component_id)
        .join(Component, Component.component_id == SupplierComponent.component_id)
        .join(Supplier, Supplier.supplier_id == SupplierComponent.supplier_id)
        .where(SupplierOrder.purchase_order_id.in_(purchase_order_ids))
        .order_by(SupplierOrder.order_id.asc())
    )
    if component_id is not None:
        query = query.where(SupplierComponent.component_id == component_id)
    by_order: dict[int, list[PurchaseOrderLineInput]] = {}
    for row in db.execute(query).all():
        by_order.setdefault(int(row.purchase_order_id), []).append(
            PurchaseOrderLineInput(
                line_id=int(row.order_id),
                order_quantity=row.order_quantity,
                total_received=row.total_received,
                component_id=int(row.component_id),
                component_code=row.internal_code,
                supplier_name=row.name,
            )
        )
    return by_order


def list_purchase_orders(db: Session, *, limit: int | None = None) -> list[PurchaseOrderInput]:
    query = (
        select(PurchaseOrder, SupplierOrderStatus.status_name)
        .join(SupplierOrderStatus, SupplierOrderStatus.status_id == PurchaseOrder.status_id)
        .order_by(PurchaseOrder.created_at.desc())
    )
    if limit is not None:
        query = query.limit(limit)
    rows = db.execute(query).all()
    lines = _lines_by_order(db, purchase_order_ids=[po.purchase_order_id for po, _ in rows])
    return [
        PurchaseOrderInput(
            purchase_order_id=po.purchase_order_id,
            status_name=status_name,
            q_number=po.q_number,
            created_at=po.created_at,
            order_date=po.order_date,
            lines=tuple(lines.get(po.purchase_order_id, [])),
        )
        for po, status_name in rows
    ]


def get_open_purchase_order_lines(db: Session, *, component_id: int) -> list[PurchaseOrderInput]:
    """Purchase orders in an on-order status, carrying only their lines for the given component."""
    rows = db.execute(
        select(PurchaseOrder, SupplierOrderStatus.status_name)
        .join(SupplierOrderStatus, SupplierOrderStatus.status_id == PurchaseOrder.status_id)
        .join(SupplierOrder, SupplierOrder.purchase_order_id == PurchaseOrder.purchase_order_id)
        .join(SupplierComponent, SupplierComponent.supplier_component_id == SupplierOrder.supplier_component_id)
        .where(SupplierComponent.component_id == component_id)
        .distinct()
    ).all()
    open_rows = [(po, name) for po, name in rows if normalize_text(name) in ON_ORDER_STATUSES]
    lines = _lines_by_order(
        db,
        purchase_order_ids=[po.purchase_order_id for po, _ in open_rows],
        component_id=component_id,
    )
    return [
        PurchaseOrderInput(
            purchase_order_id=po.purchase_order_id,
            status_name=status_name,
            q_number=po.q_number,
            created_at=po.created_at,
            order_date=po.order_date,
            lines=tuple(lines.get(po.purchase_order_id, [])),
        )
        for po, status_name in open_rows
    ]
