from sqlalchemy import select

from shopfloor.db import SessionLocal, engine
from shopfloor.models import (
    Base,
    Component,
    InventoryRecord,
    OrderStatus,
    SupplierOrderStatus,
)

SUPPLIER_ORDER_STATUSES = [
    'Draft',
    'Pending Approval',
    'Approved',
    'Partially Received',
    'Fully Received',
    'Cancelled',
]
SALES_ORDER_STATUSES = ['New', 'In Progress', 'Completed', 'Cancelled']


def _ensure_statuses(db, model, names: list[str]) -> None:
    existing = set(db.execute(select(model.status_name)).scalars().all())
    for name in names:
        if name not in existing:
            db.add(model(status_name=name))
    db.flush()


def seed() -> None:
    Base.metadata.create_all(engine)
    with SessionLocal() as db:
        _ensure_statuses(db, SupplierOrderStatus, SUPPLIER_ORDER_STATUSES)
        _ensure_statuses(db, OrderStatus, SALES_ORDER_STATUSES)

        component = db.execute(select(Component).where(Component.internal_code == 'DEMO-001')).scalar_one_or_none()
        if not component:
            component = Component(internal_code='DEMO-001', description='Demo hinge', unit_of_measure='each')
            db.add(component)
            db.flush()
            db.add(InventoryRecord(component_id=component.component_id, quantity_on_hand=5, reorder_level=10, location='A1'))

        db.commit()


if __name__ == '__main__':
    seed()
    print('Seed complete')
