from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from currencies.services import convert

from .snapshots import ProductCatalog

logger = logging.getLogger(__name__)

ZERO = Decimal('0')


@dataclass(frozen=True)
class ComboBaseTotal:
    amount: Decimal = ZERO
    missing_product_ids: tuple = field(default=())
    unconverted_product_ids: tuple = field(default=())

    @property
    def is_complete(self) -> bool:
        return not self.missing_product_ids and not self.unconverted_product_ids

    @property
    def incomplete_count(self) -> int:
        return len(self.missing_product_ids) + len(self.unconverted_product_ids)


def _sum_lines(combo, catalog: ProductCatalog, rates, currency_id, price_of) -> ComboBaseTotal:
    total = ZERO
    missing = []
    unconverted = []
    for line in combo.items:
        product = catalog.get(line.product_id)
        if product is None:
            missing.append(line.product_id)
            continue
        result = convert(price_of(product), product.base_currency_id, currency_id, rates)
        if result.rate_missing:
            unconverted.append(product.id)
        total += Decimal(str(result.value or 0)) * Decimal(line.quantity)
    if missing:
        logger.warning('Combo %s references %d unknown product(s); they were left out of the price.',
                       getattr(combo, 'id', None), len(missing))
    return ComboBaseTotal(amount=total, missing_product_ids=tuple(missing), unconverted_product_ids=tuple(unconverted))


def aggregate_base_price(combo, catalog: ProductCatalog, rates, base_currency_id) -> ComboBaseTotal:
    """Quantity-weighted sum of product base prices, normalized to ``base_currency_id``."""
    return _sum_lines(combo, catalog, rates, base_currency_id, lambda product: product.base_price)


def compute_base_price(combo, catalog: ProductCatalog, rates, base_currency_id) -> Decimal:
    return aggregate_base_price(combo, catalog, rates, base_currency_id).amount


def compute_final_price(base_price, profit_margin, default_margin: Optional[Decimal] = None) -> Decimal:
    margin = profit_margin if profit_margin is not None else default_margin
    base = Decimal(str(base_price or 0))
    if margin is None:
        return base
    return base * (1 + Decimal(str(margin)) / Decimal('100'))


def individual_total(combo, catalog: ProductCatalog, rates, currency_id) -> ComboBaseTotal:
    """What the combo's products cost when bought one by one."""
    def _unit_price(product):
        return product.final_price if product.final_price is not None else product.base_price

    return _sum_lines(combo, catalog, rates, currency_id, _unit_price)
