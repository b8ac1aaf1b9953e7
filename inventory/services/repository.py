from __future__ import annotations

from decimal import Decimal

from django.db import transaction

from inventory.exceptions import ComboDraftError
from inventory.models import Combo, ComboItem, Product

from .drafts import ComboDraft
from .snapshots import PersistedCombo


def _product_pks(draft: ComboDraft) -> list[int]:
    try:
        return [int(pid) for pid in draft.product_ids]
    except (TypeError, ValueError) as exc:
        raise ComboDraftError('Product ids must be integers.', code='unknown_product') from exc


class DjangoComboRepository:
    """Stores combos and their ordered items in the database."""

    @transaction.atomic
    def save(self, draft: ComboDraft, *, profit_margin: Decimal) -> PersistedCombo:
        name = draft.name.strip()
        if draft.id:
            combo = Combo.objects.select_for_update().get(pk=draft.id)
        else:
            combo = Combo(is_active=True)
        if Combo.objects.filter(name=name).exclude(pk=combo.pk).exists():
            raise ComboDraftError(f'A combo named {name!r} already exists.', code='duplicate_name')

        pks = _product_pks(draft)
        products = Product.objects.in_bulk(pks)
        missing = [pk for pk in pks if pk not in products]
        if missing:
            raise ComboDraftError(f'Unknown product(s): {missing}.', code='unknown_product')

        combo.name = name
        combo.description = draft.description or ''
        combo.profit_margin = profit_margin
        combo.save()

        combo.items.all().delete()
        for position, (pk, line) in enumerate(zip(pks, draft.items)):
            ComboItem.objects.create(combo=combo, product=products[pk], quantity=line.quantity, position=position)
        return PersistedCombo.from_model(combo)

    @transaction.atomic
    def set_active(self, combo_id, is_active: bool) -> PersistedCombo:
        combo = Combo.objects.select_for_update().get(pk=combo_id)
        combo.is_active = is_active
        combo.save(update_fields=['is_active', 'updated_at'])
        return PersistedCombo.from_model(combo)
