from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from shopfloor.db import get_db
from shopfloor.services.component_status_service import ComponentStatus, build_component_status
from shopfloor.services.inventory_data_service import ComponentHeader, get_component, get_low_stock_components
from shopfloor.services.purchase_order_reconciliation_service import summarize_on_order
from shopfloor.services.purchasing_data_service import list_purchase_orders
from shopfloor.services.stock_health_service import select_low_stock

router = APIRouter(prefix='/inventory', tags=['inventory'])


def _status_payload(header: ComponentHeader, status: ComponentStatus) -> dict:
    position = status.position
    return {
        'component_id': status.component_id,
        'internal_code': header.internal_code,
        'description': header.description,
        'unit_of_measure': header.unit_of_measure,
        'category': header.category_name,
        'inventory': {
            'quantity_on_hand': status.inventory.quantity_on_hand,
            'reorder_level': status.inventory.reorder_level,
            'location': status.inventory.location,
        },
        'health': {
            'status': position.health.value,
            'label': position.health.label,
            'description': position.health.description,
        },
        'on_order': status.on_order.total,
        'purchase_orders': status.on_order.orders,
        'required_for_orders': position.required,
        'projected_stock_after_orders': position.projected_stock_after_orders,
        'current_shortage': position.current_shortage,
        'shortfall_after_orders': position.shortfall_after_orders,
        'is_projected_low': position.is_projected_low,
        'is_projected_negative': position.is_projected_negative,
        'order_breakdown': status.order_breakdown,
        'usage': status.usage,
        'transactions': status.transactions,
        'valuation': status.valuation,
    }


@router.get('/components/{component_id}/status')
def component_status(component_id: int, db: Session = Depends(get_db)):
    try:
        header = get_component(db, component_id=component_id)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _status_payload(header, build_component_status(db, component_id=component_id))


@router.get('/on-order')
def on_order(db: Session = Depends(get_db)):
    summaries = summarize_on_order(list_purchase_orders(db))
    return [
        {
            'component_id': summary.component_id,
            'on_order_quantity': summary.total,
            'purchase_orders': summary.orders,
        }
        for summary in sorted(summaries.values(), key=lambda row: row.component_id)
    ]


@router.get('/low-stock')
def low_stock(db: Session = Depends(get_db)):
    return [
        {
            'component_id': alert.level.component_id,
            'internal_code': alert.level.internal_code,
            'description': alert.level.description,
            'quantity_on_hand': alert.level.quantity_on_hand,
            'reorder_level': alert.level.reorder_level,
            'location': alert.level.location,
            'health': alert.health.value,
            'label': alert.health.label,
        }
        for alert in select_low_stock(get_low_stock_components(db))
    ]
