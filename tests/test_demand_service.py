from __future__ import annotations

import unittest
from decimal import Decimal

from shopfloor.services.demand_service import (
    BomEntry,
    SalesOrderLineInput,
    build_order_breakdown,
    compute_required_for_orders,
    is_open_order_status,
)

COMPONENT_ID = 11


class DemandServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.bom = [
            BomEntry(product_id=1, component_id=COMPONENT_ID, quantity_required=Decimal('2')),
            BomEntry(product_id=2, component_id=COMPONENT_ID, quantity_required=Decimal('0.5')),
            # Same product, different component: must not leak into the total.
            BomEntry(product_id=1, component_id=99, quantity_required=Decimal('10')),
        ]

    def test_no_bom_entries_means_no_requirement(self) -> None:
        lines = [SalesOrderLineInput(order_id=1, product_id=1, quantity=5, status_name='New')]
        self.assertEqual(compute_required_for_orders(COMPONENT_ID, [], lines), Decimal('0'))

    def test_required_sums_quantity_times_per_unit_for_this_component(self) -> None:
        lines = [
            SalesOrderLineInput(order_id=1, product_id=1, quantity=3, status_name='New'),
            SalesOrderLineInput(order_id=2, product_id=2, quantity=4, status_name='In Progress'),
            SalesOrderLineInput(order_id=3, product_id=1, quantity=1, status_name='Completed'),
            SalesOrderLineInput(order_id=4, product_id=2, quantity=8, status_name='cancelled'),
        ]
        self.assertEqual(compute_required_for_orders(COMPONENT_ID, self.bom, lines), Decimal('8'))

    def test_product_without_bom_row_contributes_zero(self) -> None:
        lines = [SalesOrderLineInput(order_id=1, product_id=42, quantity=7, status_name='New')]
        self.assertEqual(compute_required_for_orders(COMPONENT_ID, self.bom, lines), Decimal('0'))

    def test_missing_quantity_counts_as_zero(self) -> None:
        lines = [SalesOrderLineInput(order_id=1, product_id=1, quantity=None, status_name='New')]
        self.assertEqual(compute_required_for_orders(COMPONENT_ID, self.bom, lines), Decimal('0'))

    def test_breakdown_reports_need_per_order_line(self) -> None:
        lines = [
            SalesOrderLineInput(
                order_id=5,
                product_id=2,
                quantity=6,
                status_name='New',
                order_number='SO-5',
                product_code='CHAIR',
            ),
        ]
        needs = build_order_breakdown(COMPONENT_ID, self.bom, lines)
        self.assertEqual(len(needs), 1)
        self.assertEqual(needs[0].order_number, 'SO-5')
        self.assertEqual(needs[0].product_code, 'CHAIR')
        self.assertEqual(needs[0].component_needed, Decimal('3.0'))

    def test_terminal_statuses(self) -> None:
        self.assertFalse(is_open_order_status('Completed'))
        self.assertFalse(is_open_order_status(' CANCELLED '))
        self.assertTrue(is_open_order_status('New'))
        self.assertTrue(is_open_order_status(None))


if __name__ == '__main__':
    unittest.main()
