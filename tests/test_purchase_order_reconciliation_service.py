from __future__ import annotations

import unittest
from datetime import date, datetime, timezone

from shopfloor.services.purchase_order_reconciliation_service import (
    PurchaseOrderFilter,
    PurchaseOrderInput,
    PurchaseOrderLineInput,
    compute_purchasing_metrics,
    derive_order_status,
    filter_purchase_orders,
    line_owing,
    list_awaiting_receipt,
    partition_orders,
    summarize_on_order,
    total_on_order,
)

_DEFAULT_CREATED = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)


def _line(line_id: int, ordered: int, received: int, *, supplier: str = 'Acme', component_id: int = 1) -> PurchaseOrderLineInput:
    return PurchaseOrderLineInput(
        line_id=line_id,
        order_quantity=ordered,
        total_received=received,
        component_id=component_id,
        supplier_name=supplier,
    )


def _order(
    po_id: int,
    status: str,
    *lines: PurchaseOrderLineInput,
    q_number: str | None = None,
    created_at=_DEFAULT_CREATED,
    order_date=None,
) -> PurchaseOrderInput:
    return PurchaseOrderInput(
        purchase_order_id=po_id,
        status_name=status,
        q_number=q_number or f'Q26-{po_id:03d}',
        created_at=created_at,
        order_date=order_date,
        lines=tuple(lines),
    )


class LineOwingTests(unittest.TestCase):
    def test_owing_is_ordered_minus_received(self) -> None:
        self.assertEqual(line_owing(10, 3), 7)

    def test_over_receipt_clamps_to_zero(self) -> None:
        self.assertEqual(line_owing(5, 8), 0)

    def test_missing_values_are_zero(self) -> None:
        self.assertEqual(line_owing(None, None), 0)
        self.assertEqual(line_owing(4, None), 4)

    def test_receiving_more_never_increases_owing(self) -> None:
        previous = line_owing(10, 0)
        for received in range(1, 15):
            current = line_owing(10, received)
            self.assertLessEqual(current, previous)
            self.assertGreaterEqual(current, 0)
            previous = current


class DerivedStatusTests(unittest.TestCase):
    def test_one_full_one_partial_is_partially_received(self) -> None:
        order = _order(1, 'Approved', _line(1, 10, 10), _line(2, 5, 2))
        self.assertEqual(derive_order_status(order), 'Partially Received')

    def test_all_lines_received_is_fully_received(self) -> None:
        order = _order(1, 'Approved', _line(1, 10, 10), _line(2, 5, 5))
        self.assertEqual(derive_order_status(order), 'Fully Received')

    def test_nothing_received_keeps_stored_status(self) -> None:
        order = _order(1, 'Approved', _line(1, 10, 0))
        self.assertEqual(derive_order_status(order), 'Approved')

    def test_other_statuses_pass_through(self) -> None:
        order = _order(1, 'Pending Approval', _line(1, 10, 10))
        self.assertEqual(derive_order_status(order), 'Pending Approval')

    def test_order_without_lines_uses_stored_name(self) -> None:
        self.assertEqual(derive_order_status(_order(1, 'Approved')), 'Approved')
        self.assertEqual(derive_order_status(PurchaseOrderInput(purchase_order_id=2, status_name=None)), 'Unknown')

    def test_zero_quantity_line_is_not_fully_received(self) -> None:
        self.assertEqual(derive_order_status(_order(1, 'Approved', _line(1, 0, 0))), 'Approved')
        order = _order(2, 'Approved', _line(2, 4, 4), _line(3, 0, 0))
        self.assertEqual(derive_order_status(order), 'Approved')

    def test_derivation_is_idempotent(self) -> None:
        order = _order(1, 'Approved', _line(1, 10, 10), _line(2, 5, 2))
        once = derive_order_status(order)
        twice = derive_order_status(order)
        self.assertEqual(once, twice)


class PartitionAndMetricsTests(unittest.TestCase):
    def setUp(self) -> None:
        self.orders = [
            _order(1, 'Draft', _line(1, 4, 0)),
            _order(2, 'pending approval', _line(2, 4, 0)),
            _order(3, 'Approved', _line(3, 4, 0)),
            _order(4, 'Approved', _line(4, 4, 2)),
            _order(5, 'Approved', _line(5, 4, 4)),
            _order(6, 'Cancelled', _line(6, 4, 0)),
            _order(7, 'Partially Received', _line(7, 4, 1)),
            _order(8, 'Fully Received'),
        ]

    def test_partition_uses_derived_status_case_insensitively(self) -> None:
        tabs = partition_orders(self.orders)
        self.assertEqual([o.purchase_order_id for o in tabs.in_progress], [1, 2, 3, 4, 7])
        self.assertEqual([o.purchase_order_id for o in tabs.completed], [5, 6, 8])

    def test_metrics(self) -> None:
        metrics = compute_purchasing_metrics(self.orders)
        self.assertEqual(metrics.pending, 2)
        self.assertEqual(metrics.approved, 3)
        self.assertEqual(metrics.partial_received, 2)

    def test_metrics_on_empty_input(self) -> None:
        metrics = compute_purchasing_metrics([])
        self.assertEqual((metrics.pending, metrics.approved, metrics.partial_received), (0, 0, 0))


class FilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.orders = [
            _order(1, 'Approved', _line(1, 10, 0, supplier='Acme'), q_number='Q26-001',
                   created_at=datetime(2026, 3, 1, 0, 0, tzinfo=timezone.utc)),
            _order(2, 'Approved', _line(2, 10, 3, supplier='Boxco'), q_number='Q26-002',
                   created_at=datetime(2026, 3, 5, 23, 59, tzinfo=timezone.utc)),
            _order(3, 'Draft', _line(3, 10, 0, supplier='Boxco'), q_number='X-77',
                   created_at=datetime(2026, 3, 6, 0, 0, tzinfo=timezone.utc)),
        ]

    def _ids(self, flt: PurchaseOrderFilter) -> list[int]:
        return [order.purchase_order_id for order in filter_purchase_orders(self.orders, flt)]

    def test_no_filter_keeps_everything(self) -> None:
        self.assertEqual(self._ids(PurchaseOrderFilter()), [1, 2, 3])
        self.assertEqual(self._ids(PurchaseOrderFilter(status='all')), [1, 2, 3])

    def test_status_filter_matches_derived_status(self) -> None:
        self.assertEqual(self._ids(PurchaseOrderFilter(status='partially received')), [2])

    def test_search_is_case_insensitive_substring(self) -> None:
        self.assertEqual(self._ids(PurchaseOrderFilter(search='q26')), [1, 2])

    def test_supplier_matches_any_line(self) -> None:
        self.assertEqual(self._ids(PurchaseOrderFilter(supplier='boxco')), [2, 3])

    def test_date_range_is_inclusive_by_day(self) -> None:
        self.assertEqual(self._ids(PurchaseOrderFilter(start_date=date(2026, 3, 1), end_date=date(2026, 3, 5))), [1, 2])

    def test_order_date_takes_precedence_over_created_at(self) -> None:
        orders = [
            _order(1, 'Approved', _line(1, 10, 0), order_date=datetime(2026, 2, 20, tzinfo=timezone.utc),
                   created_at=datetime(2026, 3, 2, tzinfo=timezone.utc)),
            _order(2, 'Approved', _line(2, 10, 0), created_at=datetime(2026, 3, 2, tzinfo=timezone.utc)),
        ]
        kept = filter_purchase_orders(orders, PurchaseOrderFilter(start_date=date(2026, 3, 1)))
        self.assertEqual([order.purchase_order_id for order in kept], [2])

    def test_undated_orders_survive_a_date_range(self) -> None:
        orders = [_order(1, 'Approved', _line(1, 10, 0), created_at=None)]
        kept = filter_purchase_orders(orders, PurchaseOrderFilter(start_date=date(2026, 3, 1), end_date=date(2026, 3, 31)))
        self.assertEqual([order.purchase_order_id for order in kept], [1])
        rows = list_awaiting_receipt(orders, PurchaseOrderFilter(start_date=date(2026, 3, 1)))
        self.assertEqual([row.line.line_id for row in rows], [1])

    def test_filters_combine_with_and(self) -> None:
        flt = PurchaseOrderFilter(supplier='Boxco', search='Q26', end_date=date(2026, 3, 5))
        self.assertEqual(self._ids(flt), [2])


class AwaitingReceiptTests(unittest.TestCase):
    def test_settled_lines_are_removed_before_filters(self) -> None:
        orders = [
            _order(1, 'Approved', _line(1, 10, 10, supplier='Acme'), _line(2, 5, 2, supplier='Acme')),
            _order(2, 'Approved', _line(3, 5, 9, supplier='Boxco')),
        ]
        with self.assertLogs('shopfloor.services.purchase_order_reconciliation_service', level='WARNING'):
            rows = list_awaiting_receipt(orders)
        self.assertEqual([(row.line.line_id, row.owing) for row in rows], [(2, 3)])
        self.assertEqual(rows[0].order_status, 'Partially Received')

        self.assertEqual(list_awaiting_receipt(orders, PurchaseOrderFilter(supplier='Boxco')), [])

    def test_cancelled_orders_are_not_awaiting_receipt(self) -> None:
        orders = [_order(1, 'Cancelled', _line(1, 10, 0))]
        self.assertEqual(list_awaiting_receipt(orders), [])

    def test_date_filter_applies_to_awaiting_lines(self) -> None:
        orders = [_order(1, 'Approved', _line(1, 10, 0), created_at=datetime(2026, 2, 1, tzinfo=timezone.utc))]
        rows = list_awaiting_receipt(orders, PurchaseOrderFilter(start_date=date(2026, 3, 1)))
        self.assertEqual(rows, [])


class OnOrderTests(unittest.TestCase):
    def test_on_order_sums_owing_for_open_orders_only(self) -> None:
        orders = [
            _order(1, 'Approved', _line(1, 10, 4, component_id=7)),
            _order(2, 'Pending Approval', _line(2, 3, 0, component_id=7), _line(3, 2, 0, component_id=8)),
            _order(3, 'Cancelled', _line(4, 50, 0, component_id=7)),
            _order(4, 'Draft', _line(5, 50, 0, component_id=7)),
            _order(5, 'Partially Received', _line(6, 5, 5, component_id=7)),
        ]
        summaries = summarize_on_order(orders)
        self.assertEqual(summaries[7].total, 9)
        self.assertEqual([row['purchase_order_id'] for row in summaries[7].orders], [1, 2])
        self.assertEqual(summaries[8].total, 2)
        self.assertEqual(total_on_order(orders, component_id=7), 9)
        self.assertEqual(total_on_order(orders, component_id=99), 0)

    def test_on_order_detail_uses_natural_order_number_ordering(self) -> None:
        orders = [
            _order(1, 'Approved', _line(1, 2, 0), q_number='PO-10'),
            _order(2, 'Approved', _line(2, 2, 0), q_number='PO-9'),
        ]
        detail = summarize_on_order(orders)[1].orders
        self.assertEqual([row['order_number'] for row in detail], ['PO-9', 'PO-10'])


if __name__ == '__main__':
    unittest.main()
