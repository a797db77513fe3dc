from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ClockEventType(str, Enum):
    CLOCK_IN = 'clock_in'
    CLOCK_OUT = 'clock_out'
    BREAK_START = 'break_start'
    BREAK_END = 'break_end'


class SegmentType(str, Enum):
    WORK = 'work'
    BREAK = 'break'


class ComponentCategory(Base):
    __tablename__ = 'component_categories'

    cat_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    categoryname: Mapped[str] = mapped_column(Text, nullable=False)


class Component(Base):
    __tablename__ = 'components'

    component_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    internal_code: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text)
    unit_of_measure: Mapped[str | None] = mapped_column(Text)
    category_id: Mapped[int | None] = mapped_column(BigInteger, ForeignKey('component_categories.cat_id'))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class InventoryRecord(Base):
    __tablename__ = 'inventory'
    __table_args__ = (
        CheckConstraint('quantity_on_hand >= 0', name='inventory_quantity_on_hand_non_negative'),
    )

    inventory_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    component_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey('components.component_id', ondelete='CASCADE'),
        nullable=False,
        unique=True,
    )
    quantity_on_hand: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    reorder_level: Mapped[int | None] = mapped_column(Integer)
    location: Mapped[str | None] = mapped_column(Text)


class InventoryTransaction(Base):
    __tablename__ = 'inventory_transactions'

    transaction_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    component_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('components.component_id'), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    reference: Mapped[str | None] = mapped_column(Text)


class Supplier(Base):
    __tablename__ = 'suppliers'

    supplier_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class SupplierComponent(Base):
    __tablename__ = 'suppliercomponents'
    __table_args__ = (
        UniqueConstraint('supplier_id', 'component_id', name='suppliercomponents_supplier_component_uniq'),
    )

    supplier_component_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    supplier_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('suppliers.supplier_id'), nullable=False)
    component_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('components.component_id'), nullable=False)
    supplier_code: Mapped[str | None] = mapped_column(Text)
    price: Mapped[Decimal | None] = mapped_column(Numeric(14, 2))


class SupplierOrderStatus(Base):
    __tablename__ = 'supplier_order_statuses'

    status_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    status_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class PurchaseOrder(Base):
    __tablename__ = 'purchase_orders'

    purchase_order_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    q_number: Mapped[str | None] = mapped_column(Text)
    status_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('supplier_order_statuses.status_id'), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    order_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SupplierOrder(Base):
    __tablename__ = 'supplier_orders'
    __table_args__ = (
        CheckConstraint('order_quantity > 0', name='supplier_orders_order_quantity_positive'),
        CheckConstraint('total_received >= 0', name='supplier_orders_total_received_non_negative'),
    )

    order_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    purchase_order_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey('purchase_orders.purchase_order_id', ondelete='CASCADE'),
        nullable=False,
    )
    supplier_component_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey('suppliercomponents.supplier_component_id'),
        nullable=False,
    )
    order_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    total_received: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')


class Product(Base):
    __tablename__ = 'products'

    product_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    internal_code: Mapped[str] = mapped_column(Text, nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)


class BillOfMaterials(Base):
    __tablename__ = 'billofmaterials'

    bom_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    product_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('products.product_id', ondelete='CASCADE'), nullable=False)
    component_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('components.component_id'), nullable=False)
    quantity_required: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)


class OrderStatus(Base):
    __tablename__ = 'order_statuses'

    status_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    status_name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class SalesOrder(Base):
    __tablename__ = 'orders'

    order_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    order_number: Mapped[str | None] = mapped_column(Text)
    order_date: Mapped[date | None] = mapped_column(Date)
    status_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('order_statuses.status_id'), nullable=False)


class SalesOrderLine(Base):
    __tablename__ = 'order_details'

    order_detail_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    order_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('orders.order_id', ondelete='CASCADE'), nullable=False)
    product_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('products.product_id'), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')


class Staff(Base):
    __tablename__ = 'staff'

    staff_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    job_description: Mapped[str | None] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default='true')


class PublicHoliday(Base):
    __tablename__ = 'public_holidays'

    holiday_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    holiday_date: Mapped[date] = mapped_column(Date, nullable=False, unique=True)
    holiday_name: Mapped[str] = mapped_column(Text, nullable=False)


class ClockEvent(Base):
    __tablename__ = 'time_clock_events'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    staff_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('staff.staff_id'), nullable=False)
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    event_type: Mapped[ClockEventType] = mapped_column(
        SQLEnum(ClockEventType, name='clock_event_type', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    break_type: Mapped[str | None] = mapped_column(Text)
    verification_method: Mapped[str] = mapped_column(Text, nullable=False, default='manual', server_default='manual')
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class TimeSegment(Base):
    __tablename__ = 'time_segments'

    segment_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    staff_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('staff.staff_id'), nullable=False)
    date_worked: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    segment_type: Mapped[SegmentType] = mapped_column(
        SQLEnum(SegmentType, name='time_segment_type', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    break_type: Mapped[str | None] = mapped_column(Text)
    duration_minutes: Mapped[int | None] = mapped_column(Integer)


class TimeDailySummary(Base):
    __tablename__ = 'time_daily_summary'
    __table_args__ = (
        UniqueConstraint('staff_id', 'date_worked', name='time_daily_summary_staff_date_uniq'),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    staff_id: Mapped[int] = mapped_column(BigInteger, ForeignKey('staff.staff_id'), nullable=False)
    date_worked: Mapped[date] = mapped_column(Date, nullable=False)
    first_clock_in: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    last_clock_out: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_work_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    total_break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    lunch_break_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    other_breaks_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    regular_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    ot_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    dt_minutes: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default='0')
    is_complete: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default='false')
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class AuditLog(Base):
    __tablename__ = 'audit_log'

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    actor: Mapped[str | None] = mapped_column(Text)
    action: Mapped[str] = mapped_column(Text, nullable=False)
    entity_id: Mapped[int | None] = mapped_column(BigInteger)
    meta: Mapped[dict] = mapped_column('metadata', JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
