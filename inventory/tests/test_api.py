from datetime import date
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from currencies.models import Currency, ExchangeRate
from inventory.models import Combo, ComboItem, Product


class ComboApiTests(TestCase):
    def setUp(self):
        self.usd = Currency.objects.create(code='USD', name='US Dollar', symbol='$', is_base=True)
        self.eur = Currency.objects.create(code='EUR', name='Euro', symbol='€')
        ExchangeRate.objects.create(
            from_currency=self.usd, to_currency=self.eur, rate=Decimal('0.5'), effective_date=date(2024, 1, 1),
        )
        self.printer = Product.objects.create(
            name='Printer', sku='PRN-001', base_price=Decimal('100.00'), base_currency=self.usd, stock=20,
        )
        self.ink = Product.objects.create(
            name='Ink Set', sku='INK-001', base_price=Decimal('20.00'), base_currency=self.eur, stock=3,
            profit_margin=Decimal('25'),
        )
        self.combo = Combo.objects.create(name='Print Starter', profit_margin=Decimal('10'))
        ComboItem.objects.create(combo=self.combo, product=self.printer, quantity=1, position=0)
        ComboItem.objects.create(combo=self.combo, product=self.ink, quantity=2, position=1)

        self.user = get_user_model().objects.create_user(username='vendor', password='safe-pass')
        self.client = APIClient()
        self.client.force_authenticate(self.user)
        self.list_url = reverse('inventory:combo-list')

    def _payload(self, **overrides):
        payload = {
            'name': 'Office Pack',
            'items': [{'product': self.printer.pk, 'quantity': 1}],
            'margin_mode': 'percentage',
            'margin_value': '20',
        }
        payload.update(overrides)
        return payload

    def test_requires_authentication(self):
        response = APIClient().get(self.list_url)
        self.assertIn(response.status_code, (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN))

    def test_list_includes_pricing(self):
        response = self.client.get(self.list_url)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        pricing = response.data[0]['pricing']
        # 100 USD + 2 * 20 EUR / 0.5
        self.assertEqual(pricing['base_price'], Decimal('180.00'))
        self.assertEqual(pricing['final_price'], Decimal('198.00'))
        self.assertEqual(pricing['final_price_formatted'], '$198.00 USD')
        # 100 USD + 2 * 25 EUR / 0.5
        self.assertEqual(pricing['individual_total'], Decimal('200.00'))
        self.assertEqual(pricing['savings'], Decimal('2.00'))
        self.assertTrue(pricing['is_effectively_active'])
        self.assertEqual(pricing['available_quantity'], 1)

    def test_detail_in_requested_currency(self):
        url = reverse('inventory:combo-detail', args=[self.combo.pk])
        response = self.client.get(url, {'currency': self.eur.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pricing']['currency'], 'EUR')
        self.assertEqual(response.data['pricing']['base_price'], Decimal('90.00'))
        self.assertEqual([item['product'] for item in response.data['items']], [self.printer.pk, self.ink.pk])

    def test_stock_shortage_marks_combo_inactive(self):
        self.ink.stock = 1
        self.ink.save()
        url = reverse('inventory:combo-detail', args=[self.combo.pk])
        pricing = self.client.get(url).data['pricing']
        self.assertFalse(pricing['is_effectively_active'])
        self.assertEqual(pricing['stock_issues'][0]['issue_kind'], 'insufficient_stock')
        self.assertEqual(pricing['stock_issues'][0]['required'], 2)

    def test_preview_derives_figures_from_sell_price(self):
        response = self.client.post(
            reverse('inventory:combo-preview'),
            self._payload(margin_mode='sell_price', margin_value='150'),
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['base_price'], Decimal('100.00'))
        self.assertEqual(response.data['percentage'], Decimal('50.00'))
        self.assertEqual(response.data['amount'], Decimal('50.00'))
        self.assertEqual(response.data['advisories'], [])

    def test_preview_flags_sell_price_below_cost(self):
        response = self.client.post(
            reverse('inventory:combo-preview'),
            self._payload(margin_mode='sell_price', margin_value='90'),
            format='json',
        )
        self.assertEqual(response.data['percentage'], Decimal('0.00'))
        self.assertEqual(response.data['advisories'][0]['code'], 'sell_price_below_cost')

    def test_create_combo(self):
        response = self.client.post(self.list_url, self._payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        combo = Combo.objects.get(name='Office Pack')
        self.assertEqual(combo.profit_margin, Decimal('20.00'))
        self.assertEqual(response.data['pricing']['final_price'], Decimal('120.00'))
        self.assertEqual(response.data['advisories'], [])

    def test_zero_margin_needs_confirmation(self):
        payload = self._payload(margin_value='0')
        response = self.client.post(self.list_url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['code'], 'zero_margin_confirmation_required')
        self.assertFalse(Combo.objects.filter(name='Office Pack').exists())

        response = self.client.post(self.list_url, {**payload, 'confirm_zero_margin': True}, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Combo.objects.get(name='Office Pack').profit_margin, Decimal('0.00'))

    def test_negative_margin_rejected(self):
        response = self.client.post(self.list_url, self._payload(margin_value='-5'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'negative_margin')

    def test_duplicate_name_rejected(self):
        response = self.client.post(self.list_url, self._payload(name='Print Starter'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'duplicate_name')

    def test_low_margin_saves_with_warning(self):
        response = self.client.post(self.list_url, self._payload(margin_value='2'), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['advisories'][0]['code'], 'below_minimum_margin')

    def test_update_combo(self):
        url = reverse('inventory:combo-detail', args=[self.combo.pk])
        payload = self._payload(
            name='Print Starter',
            items=[{'product': self.ink.pk, 'quantity': 1}],
            margin_mode='amount',
            margin_value='10',
        )
        response = self.client.put(url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.combo.refresh_from_db()
        # 10 on a 40 base
        self.assertEqual(self.combo.profit_margin, Decimal('25.00'))
        self.assertEqual(list(self.combo.items.values_list('product_id', flat=True)), [self.ink.pk])

    def test_set_active_and_soft_delete(self):
        url = reverse('inventory:combo-set-active', args=[self.combo.pk])
        response = self.client.post(url, {'is_active': False}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])
        self.assertFalse(response.data['pricing']['is_effectively_active'])

        self.client.post(url, {'is_active': True}, format='json')
        response = self.client.delete(reverse('inventory:combo-detail', args=[self.combo.pk]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.combo.refresh_from_db()
        self.assertFalse(self.combo.is_active)

    def test_margin_too_large_to_store_rejected(self):
        sticker = Product.objects.create(
            name='Sticker', sku='STK-001', base_price=Decimal('1.00'), base_currency=self.usd, stock=100,
        )
        payload = self._payload(items=[{'product': sticker.pk}], margin_mode='sell_price', margin_value='200')
        response = self.client.post(self.list_url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['code'], 'margin_out_of_range')
        self.assertFalse(Combo.objects.filter(name='Office Pack').exists())
        self.assertEqual(self.client.get(self.list_url).status_code, status.HTTP_200_OK)

    def test_small_margin_on_large_base_is_kept(self):
        press = Product.objects.create(
            name='Press Line', sku='PRESS-900', base_price=Decimal('100000.00'), base_currency=self.usd, stock=2,
        )
        payload = self._payload(items=[{'product': press.pk}], margin_mode='amount', margin_value='4')
        response = self.client.post(self.list_url, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(Combo.objects.get(name='Office Pack').profit_margin, Decimal('0.0040'))
        self.assertEqual(response.data['pricing']['final_price'], Decimal('100004.00'))
