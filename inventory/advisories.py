"""Non-blocking findings surfaced next to a price; callers decide whether to block."""
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class Advisory:
    code: str = field(init=False, default='advisory')
    message: str = ''

    def as_dict(self):
        return {'code': self.code, 'message': self.message}


@dataclass(frozen=True)
class SellPriceBelowCostWarning(Advisory):
    code: str = field(init=False, default='sell_price_below_cost')
    sell_price: Optional[Decimal] = None
    base_price: Optional[Decimal] = None


@dataclass(frozen=True)
class BelowMinimumMarginWarning(Advisory):
    code: str = field(init=False, default='below_minimum_margin')
    percentage: Optional[Decimal] = None
    minimum: Optional[Decimal] = None


@dataclass(frozen=True)
class MarginRoundedWarning(Advisory):
    code: str = field(init=False, default='margin_rounded')
    requested_sell_price: Optional[Decimal] = None
    saved_sell_price: Optional[Decimal] = None


@dataclass(frozen=True)
class ZeroMarginConfirmationRequired(Advisory):
    code: str = field(init=False, default='zero_margin_confirmation_required')


@dataclass(frozen=True)
class IncompletePricingWarning(Advisory):
    code: str = field(init=False, default='incomplete_pricing')
    missing_products: int = 0
    unconverted_products: int = 0
