from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shopfloor.db import get_db
from shopfloor.services.purchase_order_reconciliation_service import (
    PurchaseOrderFilter,
    PurchaseOrderInput,
    compute_purchasing_metrics,
    derive_order_status,
    filter_purchase_orders,
    line_owing,
    list_awaiting_receipt,
    partition_orders,
)
from shopfloor.services.purchasing_data_service import list_purchase_orders

router = APIRouter(prefix='/purchasing', tags=['purchasing'])


def _build_filter(
    *,
    status: str | None = None,
    search: str | None = None,
    supplier: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> PurchaseOrderFilter:
    if start_date and end_date and end_date < start_date:
        raise HTTPException(status_code=400, detail='End date must be on or after start date')
    return PurchaseOrderFilter(
        status=status,
        search=search,
        supplier=supplier,
        start_date=start_date,
        end_date=end_date,
    )


def _order_payload(order: PurchaseOrderInput) -> dict:
    return {
        'purchase_order_id': order.purchase_order_id,
        'q_number': order.q_number,
        'stored_status': order.status_name,
        'status': derive_order_status(order),
        'created_at': order.created_at,
        'order_date': order.order_date,
        'lines': [
            {
                'line_id': line.line_id,
                'component_code': line.component_code,
                'supplier_name': line.supplier_name,
                'order_quantity': line.order_quantity,
                'total_received': line.total_received,
                'owing': line_owing(line.order_quantity, line.total_received),
            }
            for line in order.lines
        ],
    }


@router.get('/purchase-orders')
def purchase_orders(
    status: str | None = None,
    search: str | None = None,
    supplier: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    flt = _build_filter(status=status, search=search, supplier=supplier, start_date=start_date, end_date=end_date)
    tabs = partition_orders(filter_purchase_orders(list_purchase_orders(db), flt))
    return {
        'in_progress': [_order_payload(order) for order in tabs.in_progress],
        'completed': [_order_payload(order) for order in tabs.completed],
    }


@router.get('/metrics')
def metrics(db: Session = Depends(get_db)):
    result = compute_purchasing_metrics(list_purchase_orders(db))
    return {
        'pending': result.pending,
        'approved': result.approved,
        'partial_received': result.partial_received,
    }


@router.get('/awaiting-receipt')
def awaiting_receipt(
    supplier: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    db: Session = Depends(get_db),
):
    flt = _build_filter(supplier=supplier, start_date=start_date, end_date=end_date)
    return [
        {
            'purchase_order_id': row.purchase_order_id,
            'q_number': row.q_number,
            'status': row.order_status,
            'created_at': row.created_at,
            'order_date': row.order_date,
            'line_id': row.line.line_id,
            'component_code': row.line.component_code,
            'supplier_name': row.line.supplier_name,
            'order_quantity': row.line.order_quantity,
            'total_received': row.line.total_received,
            'owing': row.owing,
        }
        for row in list_awaiting_receipt(list_purchase_orders(db), flt)
    ]
