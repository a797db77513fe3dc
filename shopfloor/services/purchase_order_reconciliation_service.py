from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time

from shopfloor.services.text_utils import code_sort_key, normalize_text

logger = logging.getLogger(__name__)

DRAFT = 'Draft'
PENDING_APPROVAL = 'Pending Approval'
APPROVED = 'Approved'
PARTIALLY_RECEIVED = 'Partially Received'
FULLY_RECEIVED = 'Fully Received'
CANCELLED = 'Cancelled'

IN_PROGRESS_STATUSES = frozenset(
    normalize_text(name) for name in (DRAFT, PENDING_APPROVAL, APPROVED, PARTIALLY_RECEIVED)
)
COMPLETED_STATUSES = frozenset(normalize_text(name) for name in (FULLY_RECEIVED, CANCELLED))
PENDING_METRIC_STATUSES = frozenset(normalize_text(name) for name in (DRAFT, PENDING_APPROVAL))
APPROVED_METRIC_STATUSES = frozenset(normalize_text(name) for name in (APPROVED, PARTIALLY_RECEIVED))
# Statuses whose outstanding quantities still count as stock on order.
ON_ORDER_STATUSES = frozenset(
    normalize_text(name) for name in ('Open', 'In Progress', PENDING_APPROVAL, APPROVED, PARTIALLY_RECEIVED)
)

_ALL_STATUSES = {'', 'all', 'all statuses'}


@dataclass(frozen=True)
class PurchaseOrderLineInput:
    line_id: int
    order_quantity: int | None
    total_received: int | None
    component_id: int | None = None
    component_code: str | None = None
    supplier_name: str | None = None


@dataclass(frozen=True)
class PurchaseOrderInput:
    purchase_order_id: int
    status_name: str | None
    q_number: str | None = None
    created_at: datetime | None = None
    order_date: datetime | None = None
    lines: tuple[PurchaseOrderLineInput, ...] = ()

    @property
    def filter_date(self) -> datetime | None:
        return self.order_date or self.created_at


@dataclass(frozen=True)
class PurchaseOrderTabs:
    in_progress: list[PurchaseOrderInput]
    completed: list[PurchaseOrderInput]


@dataclass(frozen=True)
class PurchasingMetrics:
    pending: int = 0
    approved: int = 0
    partial_received: int = 0


@dataclass(frozen=True)
class PurchaseOrderFilter:
    status: str | None = None
    search: str | None = None
    supplier: str | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(frozen=True)
class AwaitingReceiptLine:
    purchase_order_id: int
    q_number: str | None
    order_status: str
    created_at: datetime | None
    line: PurchaseOrderLineInput
    owing: int
    order_date: datetime | None = None

    @property
    def filter_date(self) -> datetime | None:
        return self.order_date or self.created_at


@dataclass
class OnOrderSummary:
    component_id: int
    total: int = 0
    orders: list[dict] = field(default_factory=list)


def line_owing(order_quantity: int | None, total_received: int | None) -> int:
    return max((order_quantity or 0) - (total_received or 0), 0)


def is_over_received(order_quantity: int | None, total_received: int | None) -> bool:
    return (total_received or 0) > (order_quantity or 0)


def _warn_if_over_received(order: PurchaseOrderInput, line: PurchaseOrderLineInput) -> None:
    if is_over_received(line.order_quantity, line.total_received):
        logger.warning(
            'Purchase order %s line %s is over-received (ordered %s, received %s); owing clamped to 0',
            order.purchase_order_id,
            line.line_id,
            line.order_quantity,
            line.total_received,
        )


def _is_fully_received(line: PurchaseOrderLineInput) -> bool:
    ordered = line.order_quantity or 0
    return ordered > 0 and (line.total_received or 0) == ordered


def _is_partially_received(line: PurchaseOrderLineInput) -> bool:
    return 0 < (line.total_received or 0) < (line.order_quantity or 0)


def derive_order_status(order: PurchaseOrderInput) -> str:
    stored = order.status_name or 'Unknown'
    if not order.lines:
        return stored
    if normalize_text(stored) != normalize_text(APPROVED):
        return stored
    if all(_is_fully_received(line) for line in order.lines):
        return FULLY_RECEIVED
    if any(_is_partially_received(line) for line in order.lines):
        return PARTIALLY_RECEIVED
    return stored


def partition_orders(orders: list[PurchaseOrderInput]) -> PurchaseOrderTabs:
    in_progress: list[PurchaseOrderInput] = []
    completed: list[PurchaseOrderInput] = []
    for order in orders:
        status = normalize_text(derive_order_status(order))
        if status in IN_PROGRESS_STATUSES:
            in_progress.append(order)
        elif status in COMPLETED_STATUSES:
            completed.append(order)
    return PurchaseOrderTabs(in_progress=in_progress, completed=completed)


def compute_purchasing_metrics(orders: list[PurchaseOrderInput]) -> PurchasingMetrics:
    pending = 0
    approved = 0
    partial_received = 0
    for order in orders:
        stored = normalize_text(order.status_name)
        if stored in PENDING_METRIC_STATUSES:
            pending += 1
            continue
        if stored not in APPROVED_METRIC_STATUSES:
            continue
        if order.lines and all(_is_fully_received(line) for line in order.lines):
            continue
        approved += 1
        if any((line.total_received or 0) > 0 for line in order.lines):
            partial_received += 1
    return PurchasingMetrics(pending=pending, approved=approved, partial_received=partial_received)


def _day_bounds(value: datetime, start_date: date | None, end_date: date | None) -> tuple[datetime | None, datetime | None]:
    tz = value.tzinfo
    start = datetime.combine(start_date, time.min, tzinfo=tz) if start_date else None
    end = datetime.combine(end_date, time.max, tzinfo=tz) if end_date else None
    return start, end


def _in_date_range(value: datetime | None, flt: PurchaseOrderFilter) -> bool:
    # Undated orders stay visible under any date range.
    if value is None or (flt.start_date is None and flt.end_date is None):
        return True
    start, end = _day_bounds(value, flt.start_date, flt.end_date)
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def _matches_status(order: PurchaseOrderInput, status: str | None) -> bool:
    wanted = normalize_text(status)
    if wanted in _ALL_STATUSES:
        return True
    return normalize_text(derive_order_status(order)) == wanted


def _matches_search(order: PurchaseOrderInput, search: str | None) -> bool:
    needle = normalize_text(search)
    if not needle:
        return True
    return needle in normalize_text(order.q_number)


def _line_matches_supplier(line: PurchaseOrderLineInput, supplier: str | None) -> bool:
    wanted = normalize_text(supplier)
    if not wanted:
        return True
    return normalize_text(line.supplier_name) == wanted


def filter_purchase_orders(
    orders: list[PurchaseOrderInput],
    flt: PurchaseOrderFilter | None = None,
) -> list[PurchaseOrderInput]:
    flt = flt or PurchaseOrderFilter()
    return [
        order
        for order in orders
        if _matches_status(order, flt.status)
        and _matches_search(order, flt.search)
        and (not normalize_text(flt.supplier) or any(_line_matches_supplier(line, flt.supplier) for line in order.lines))
        and _in_date_range(order.filter_date, flt)
    ]


def list_awaiting_receipt(
    orders: list[PurchaseOrderInput],
    flt: PurchaseOrderFilter | None = None,
) -> list[AwaitingReceiptLine]:
    """
    Lines still owed by suppliers on orders that are not cancelled. Fully received and
    over-received lines leave the working set before the supplier and date filters run, so
    they never show up in any filtered view.
    """
    flt = flt or PurchaseOrderFilter()
    working: list[AwaitingReceiptLine] = []
    for order in orders:
        status = derive_order_status(order)
        if normalize_text(status) == normalize_text(CANCELLED):
            continue
        for line in order.lines:
            _warn_if_over_received(order, line)
            owing = line_owing(line.order_quantity, line.total_received)
            if owing <= 0:
                continue
            working.append(
                AwaitingReceiptLine(
                    purchase_order_id=order.purchase_order_id,
                    q_number=order.q_number,
                    order_status=status,
                    created_at=order.created_at,
                    line=line,
                    owing=owing,
                    order_date=order.order_date,
                )
            )
    return [
        row
        for row in working
        if _line_matches_supplier(row.line, flt.supplier) and _in_date_range(row.filter_date, flt)
    ]


def summarize_on_order(orders: list[PurchaseOrderInput]) -> dict[int, OnOrderSummary]:
    by_component: dict[int, OnOrderSummary] = {}
    for order in orders:
        if normalize_text(order.status_name) not in ON_ORDER_STATUSES:
            continue
        for line in order.lines:
            if line.component_id is None:
                continue
            _warn_if_over_received(order, line)
            owing = line_owing(line.order_quantity, line.total_received)
            if owing <= 0:
                continue
            summary = by_component.setdefault(line.component_id, OnOrderSummary(component_id=line.component_id))
            summary.total += owing
            summary.orders.append(
                {
                    'purchase_order_id': order.purchase_order_id,
                    'order_number': order.q_number or 'N/A',
                    'pending_quantity': owing,
                }
            )
    for summary in by_component.values():
        summary.orders.sort(key=lambda row: code_sort_key(row['order_number']))
    return by_component


def total_on_order(orders: list[PurchaseOrderInput], *, component_id: int) -> int:
    summary = summarize_on_order(orders).get(component_id)
    return summary.total if summary else 0
