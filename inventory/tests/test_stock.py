from django.test import SimpleTestCase

from inventory.services.snapshots import ComboLine, PersistedCombo, ProductCatalog, ProductSnapshot
from inventory.services.stock import (
    INSUFFICIENT_STOCK,
    OUT_OF_STOCK,
    StockIssue,
    check_stock_issues,
    combo_available_quantity,
    is_effectively_active,
    low_stock_alerts,
)


def _combo(*lines, is_active=True):
    return PersistedCombo(id=7, name='Bundle', items=tuple(ComboLine(pid, qty) for pid, qty in lines),
                          is_active=is_active)


class StockConsistencyTests(SimpleTestCase):
    def setUp(self):
        self.catalog = ProductCatalog([
            ProductSnapshot(id=1, name='Product A', stock=0),
            ProductSnapshot(id=2, name='Product B', stock=3),
            ProductSnapshot(id=3, name='Product C', stock=5),
            ProductSnapshot(id=4, name='Product D', stock=40, min_stock_alert=10),
        ])

    def test_out_of_stock(self):
        issues = check_stock_issues(_combo((1, 1)), self.catalog)
        self.assertEqual(issues, [StockIssue(1, 'Product A', OUT_OF_STOCK, 1, 0)])

    def test_insufficient_stock_carries_both_numbers(self):
        issues = check_stock_issues(_combo((3, 8)), self.catalog)
        self.assertEqual(len(issues), 1)
        self.assertEqual(issues[0].issue_kind, INSUFFICIENT_STOCK)
        self.assertEqual((issues[0].required, issues[0].available), (8, 5))

    def test_exact_stock_is_fine(self):
        self.assertEqual(check_stock_issues(_combo((3, 5)), self.catalog), [])

    def test_missing_product_raises_no_issue(self):
        self.assertEqual(check_stock_issues(_combo((404, 2)), self.catalog), [])

    def test_issues_follow_item_order(self):
        issues = check_stock_issues(_combo((2, 5), (4, 1), (1, 2)), self.catalog)
        self.assertEqual([issue.product_id for issue in issues], [2, 1])

    def test_two_issues_deactivate_combo(self):
        combo = _combo((1, 1), (2, 5))
        issues = check_stock_issues(combo, self.catalog)
        self.assertEqual([issue.issue_kind for issue in issues], [OUT_OF_STOCK, INSUFFICIENT_STOCK])
        self.assertFalse(is_effectively_active(combo, issues))

    def test_active_combo_without_issues_is_active(self):
        combo = _combo((4, 2))
        self.assertTrue(is_effectively_active(combo, check_stock_issues(combo, self.catalog)))

    def test_admin_disabled_combo_is_inactive(self):
        combo = _combo((4, 2), is_active=False)
        self.assertFalse(is_effectively_active(combo, check_stock_issues(combo, self.catalog)))

    def test_low_stock_alerts_do_not_count_as_issues(self):
        combo = _combo((2, 1), (4, 1), (1, 1))
        alerts = low_stock_alerts(combo, self.catalog)
        self.assertEqual([alert.product_id for alert in alerts], [2])

    def test_available_quantity_uses_lowest_stock(self):
        self.assertEqual(combo_available_quantity(_combo((3, 2), (4, 3)), self.catalog), 2)
        self.assertEqual(combo_available_quantity(_combo((1, 1), (4, 1)), self.catalog), 0)
        self.assertEqual(combo_available_quantity(_combo(), self.catalog), 0)
        self.assertEqual(combo_available_quantity(_combo((404, 1)), self.catalog), 0)
