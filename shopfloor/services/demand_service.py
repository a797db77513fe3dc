from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from shopfloor.services.text_utils import normalize_text

TERMINAL_ORDER_STATUSES = frozenset({'Completed', 'Cancelled'})
_TERMINAL_NORMALIZED = frozenset(normalize_text(name) for name in TERMINAL_ORDER_STATUSES)


@dataclass(frozen=True)
class BomEntry:
    product_id: int
    component_id: int
    quantity_required: Decimal


@dataclass(frozen=True)
class SalesOrderLineInput:
    order_id: int
    product_id: int
    quantity: int | None
    status_name: str | None = None
    order_number: str | None = None
    order_date: date | None = None
    product_code: str | None = None
    product_name: str | None = None


@dataclass(frozen=True)
class ComponentOrderNeed:
    order_id: int
    order_number: str | None
    order_date: date | None
    status: str | None
    product_id: int
    product_code: str | None
    product_name: str | None
    order_quantity: int
    component_needed: Decimal


def is_open_order_status(status_name: str | None) -> bool:
    return normalize_text(status_name) not in _TERMINAL_NORMALIZED


def per_unit_requirements(component_id: int, bom_entries: list[BomEntry]) -> dict[int, Decimal]:
    # Products carry BOM rows for many components; keep only the one under evaluation.
    per_unit: dict[int, Decimal] = {}
    for entry in bom_entries:
        if entry.component_id != component_id:
            continue
        per_unit[entry.product_id] = per_unit.get(entry.product_id, Decimal('0')) + Decimal(entry.quantity_required or 0)
    return per_unit


def build_order_breakdown(
    component_id: int,
    bom_entries: list[BomEntry],
    sales_lines: list[SalesOrderLineInput],
) -> list[ComponentOrderNeed]:
    per_unit = per_unit_requirements(component_id, bom_entries)
    if not per_unit:
        return []
    needs: list[ComponentOrderNeed] = []
    for line in sales_lines:
        if not is_open_order_status(line.status_name):
            continue
        if line.product_id not in per_unit:
            continue
        quantity = line.quantity or 0
        needs.append(
            ComponentOrderNeed(
                order_id=line.order_id,
                order_number=line.order_number,
                order_date=line.order_date,
                status=line.status_name,
                product_id=line.product_id,
                product_code=line.product_code,
                product_name=line.product_name,
                order_quantity=quantity,
                component_needed=Decimal(quantity) * per_unit[line.product_id],
            )
        )
    return needs


def compute_required_for_orders(
    component_id: int,
    bom_entries: list[BomEntry],
    sales_lines: list[SalesOrderLineInput],
) -> Decimal:
    return sum(
        (need.component_needed for need in build_order_breakdown(component_id, bom_entries, sales_lines)),
        Decimal('0'),
    )
