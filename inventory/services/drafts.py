from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from inventory.exceptions import ComboDraftError

from .margins import MarginFigures, MarginInput
from .snapshots import ComboLine


def validated_quantity(quantity) -> int:
    try:
        qty = int(quantity or 1)
    except (TypeError, ValueError) as exc:
        raise ComboDraftError('Quantity must be a positive integer.', code='invalid_quantity') from exc
    if qty <= 0:
        raise ComboDraftError('Quantity must be a positive integer.', code='invalid_quantity')
    return qty


@dataclass
class ComboDraft:
    """A combo being authored. Only ``margin`` is authoritative; ``figures`` is derived."""

    id: object = None
    name: str = ''
    description: str = ''
    product_ids: list = field(default_factory=list)
    quantities: dict = field(default_factory=dict)
    margin: MarginInput = field(default_factory=MarginInput)
    base_price: Decimal = Decimal('0')
    figures: MarginFigures = field(default_factory=MarginFigures)

    @property
    def items(self) -> tuple[ComboLine, ...]:
        return tuple(ComboLine(product_id=pid, quantity=self.quantities.get(pid, 1)) for pid in self.product_ids)

    @property
    def is_active(self) -> bool:
        return True

    @property
    def advisories(self):
        return list(self.figures.advisories)

    @property
    def profit_margin(self) -> Optional[Decimal]:
        return self.figures.percentage

    def _find(self, product_id):
        return next((pid for pid in self.product_ids if str(pid) == str(product_id)), None)

    def has_product(self, product_id) -> bool:
        return self._find(product_id) is not None

    def toggle_product(self, product_id) -> bool:
        """Add or remove a product; returns True when it was added."""
        existing = self._find(product_id)
        if existing is not None:
            self.product_ids.remove(existing)
            self.quantities.pop(existing, None)
            return False
        self.product_ids.append(product_id)
        self.quantities[product_id] = 1
        return True

    def set_quantity(self, product_id, quantity) -> None:
        existing = self._find(product_id)
        if existing is None:
            raise ComboDraftError(f'Product {product_id} is not part of this combo.', code='unknown_product')
        self.quantities[existing] = validated_quantity(quantity)
