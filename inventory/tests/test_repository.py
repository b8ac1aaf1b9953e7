from decimal import Decimal

from django.test import TestCase

from currencies.models import Currency
from inventory.exceptions import ComboDraftError
from inventory.models import Combo, Product
from inventory.services import ComboPricingService, PersistedCombo
from inventory.services.drafts import ComboDraft
from inventory.services.repository import DjangoComboRepository


class DjangoComboRepositoryTests(TestCase):
    def setUp(self):
        self.usd = Currency.objects.create(code='usd', name='US Dollar', symbol='$', is_base=True)
        self.printer = Product.objects.create(
            name='Printer', sku='PRN-001', base_price=Decimal('100.00'), base_currency=self.usd, stock=20,
        )
        self.press = Product.objects.create(
            name='Heat Press', sku='PRESS-001', base_price=Decimal('250.00'), base_currency=self.usd, stock=15,
        )
        self.kit = Product.objects.create(
            name='Starter Kit', sku='KIT-001', base_price=Decimal('60.00'), base_currency=self.usd, stock=40,
        )
        self.repository = DjangoComboRepository()

    def _draft(self, name='Starter Bundle', lines=None, combo_id=None):
        lines = lines or [(self.press.pk, 1), (self.printer.pk, 2)]
        return ComboDraft(
            id=combo_id,
            name=name,
            product_ids=[pk for pk, _ in lines],
            quantities={pk: qty for pk, qty in lines},
        )

    def test_save_creates_combo_with_ordered_items(self):
        saved = self.repository.save(self._draft(), profit_margin=Decimal('12.50'))

        combo = Combo.objects.get(pk=saved.id)
        self.assertEqual(combo.code, 'starter-bundle')
        self.assertEqual(combo.profit_margin, Decimal('12.50'))
        self.assertTrue(combo.is_active)
        self.assertEqual(
            [(item.product_id, item.quantity, item.position) for item in combo.items.all()],
            [(self.press.pk, 1, 0), (self.printer.pk, 2, 1)],
        )
        self.assertEqual(saved.items[1].quantity, 2)

    def test_update_replaces_items(self):
        saved = self.repository.save(self._draft(), profit_margin=Decimal('10'))
        updated = self.repository.save(
            self._draft(name='Starter Bundle', lines=[(self.kit.pk, 3)], combo_id=saved.id),
            profit_margin=Decimal('20'),
        )
        self.assertEqual(updated.id, saved.id)
        self.assertEqual(Combo.objects.count(), 1)
        self.assertEqual([(line.product_id, line.quantity) for line in updated.items], [(self.kit.pk, 3)])
        self.assertEqual(updated.profit_margin, Decimal('20.00'))

    def test_duplicate_name_rejected(self):
        self.repository.save(self._draft(), profit_margin=Decimal('10'))
        with self.assertRaises(ComboDraftError) as ctx:
            self.repository.save(self._draft(name='  Starter Bundle '), profit_margin=Decimal('10'))
        self.assertEqual(ctx.exception.code, 'duplicate_name')

    def test_unknown_product_rejected_without_writing(self):
        with self.assertRaises(ComboDraftError):
            self.repository.save(self._draft(lines=[(self.kit.pk, 1), (9999, 1)]), profit_margin=Decimal('10'))
        self.assertFalse(Combo.objects.exists())

    def test_set_active_toggles_flag(self):
        saved = self.repository.save(self._draft(), profit_margin=Decimal('10'))
        result = self.repository.set_active(saved.id, False)
        self.assertFalse(result.is_active)
        self.assertFalse(Combo.objects.get(pk=saved.id).is_active)

    def test_deleted_product_is_skipped_when_pricing(self):
        saved = self.repository.save(self._draft(), profit_margin=Decimal('0'))
        self.press.delete()

        combo = PersistedCombo.from_model(Combo.objects.get(pk=saved.id))
        display = ComboPricingService.from_database().display(combo)
        self.assertEqual(display.base_price, Decimal('200.00'))
        self.assertEqual(display.incomplete_items, 1)
        self.assertEqual(display.available_quantity, 0)

    def test_service_reads_products_and_margins_from_database(self):
        self.printer.profit_margin = Decimal('50')
        self.printer.save()
        saved = self.repository.save(self._draft(lines=[(self.printer.pk, 1)]), profit_margin=Decimal('20'))

        display = ComboPricingService.from_database().display(saved)
        self.assertEqual(display.final_price, Decimal('120.00'))
        self.assertEqual(display.individual_total, Decimal('150.00'))
        self.assertEqual(display.savings, Decimal('30.00'))
        self.assertEqual(display.final_price_formatted, '$120.00 USD')
