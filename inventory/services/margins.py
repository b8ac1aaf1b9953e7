"""Three interchangeable ways to express a combo's margin over its base price.

A margin can be typed as a percentage of the base price, as a fixed amount on
top of it, or as the target sell price. Whichever one the user edits drives;
the other two are derived from it and the current base price. Values stay at
full precision here and are rounded only by ``MarginFigures.rounded()``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from currencies.services import quantize
from inventory.advisories import (
    Advisory,
    BelowMinimumMarginWarning,
    MarginRoundedWarning,
    SellPriceBelowCostWarning,
    ZeroMarginConfirmationRequired,
)
from inventory.exceptions import ComboDraftError, NegativeMarginError

HUNDRED = Decimal('100')
ZERO = Decimal('0')

# Shape of the stored ``Combo.profit_margin`` column.
MARGIN_MAX_DIGITS = 8
MARGIN_DECIMAL_PLACES = 4
MARGIN_QUANTUM = Decimal(1).scaleb(-MARGIN_DECIMAL_PLACES)
MARGIN_LIMIT = Decimal(10) ** (MARGIN_MAX_DIGITS - MARGIN_DECIMAL_PLACES)

PERCENTAGE = 'percentage'
AMOUNT = 'amount'
SELL_PRICE = 'sell_price'
MODES = (PERCENTAGE, AMOUNT, SELL_PRICE)
MODE_CHOICES = [(PERCENTAGE, 'Percentage'), (AMOUNT, 'Fixed amount'), (SELL_PRICE, 'Target sell price')]

_MODE_ALIASES = {'sellPrice': SELL_PRICE, 'sell': SELL_PRICE, 'percent': PERCENTAGE, 'fixed': AMOUNT}


def normalize_mode(mode: str) -> str:
    mode = _MODE_ALIASES.get(mode, mode)
    if mode not in MODES:
        raise ValueError(f'Unknown margin mode {mode!r}.')
    return mode


def _to_decimal(value) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    return Decimal(str(value))


def _reject_negative(field_name: str, value: Optional[Decimal]) -> None:
    if value is not None and value < 0:
        raise NegativeMarginError(field_name, value)


@dataclass(frozen=True)
class MarginInput:
    """The driving margin field: one mode and its value (``None`` means blank)."""

    mode: str = PERCENTAGE
    value: Optional[Decimal] = None

    def __post_init__(self):
        object.__setattr__(self, 'mode', normalize_mode(self.mode))
        value = _to_decimal(self.value)
        _reject_negative(self.mode, value)
        object.__setattr__(self, 'value', value)


@dataclass(frozen=True)
class MarginFigures:
    percentage: Optional[Decimal] = None
    amount: Optional[Decimal] = None
    sell_price: Optional[Decimal] = None
    advisories: tuple[Advisory, ...] = field(default=(), compare=False)

    def rounded(self) -> 'MarginFigures':
        def _round(value):
            return None if value is None else quantize(value)

        return replace(
            self,
            percentage=_round(self.percentage),
            amount=_round(self.amount),
            sell_price=_round(self.sell_price),
        )

    def value_for(self, mode: str) -> Optional[Decimal]:
        return getattr(self, normalize_mode(mode))

    def as_dict(self):
        figures = self.rounded()
        return {
            'percentage': figures.percentage,
            'amount': figures.amount,
            'sell_price': figures.sell_price,
        }


def _base(base_price) -> Decimal:
    return _to_decimal(base_price) or ZERO


def derive_from_percentage(base_price, percentage) -> MarginFigures:
    base = _base(base_price)
    percentage = _to_decimal(percentage)
    _reject_negative(PERCENTAGE, percentage)
    if percentage is None:
        return MarginFigures()
    return MarginFigures(
        percentage=percentage,
        amount=base * percentage / HUNDRED,
        sell_price=base * (1 + percentage / HUNDRED),
    )


def derive_from_amount(base_price, amount) -> MarginFigures:
    base = _base(base_price)
    amount = _to_decimal(amount)
    _reject_negative(AMOUNT, amount)
    if amount is None:
        return MarginFigures()
    percentage = amount / base * HUNDRED if base > 0 else None
    return MarginFigures(percentage=percentage, amount=amount, sell_price=base + amount)


def derive_from_sell_price(base_price, sell_price) -> MarginFigures:
    base = _base(base_price)
    sell_price = _to_decimal(sell_price)
    _reject_negative(SELL_PRICE, sell_price)
    if sell_price is None:
        return MarginFigures()
    percentage = max(ZERO, (sell_price / base - 1) * HUNDRED) if base > 0 else None
    advisories = ()
    if sell_price < base:
        advisories = (
            SellPriceBelowCostWarning(
                message=f'Sell price {quantize(sell_price)} is below the base price {quantize(base)}.',
                sell_price=sell_price,
                base_price=base,
            ),
        )
    return MarginFigures(
        percentage=percentage,
        amount=max(ZERO, sell_price - base),
        sell_price=sell_price,
        advisories=advisories,
    )


def recompute_for_new_base(base_price, stored_percentage) -> MarginFigures:
    """Keep the percentage, refresh amount and sell price for a new base price."""
    return derive_from_percentage(base_price, stored_percentage)


_DERIVERS = {
    PERCENTAGE: derive_from_percentage,
    AMOUNT: derive_from_amount,
    SELL_PRICE: derive_from_sell_price,
}


def derive(base_price, margin: MarginInput) -> MarginFigures:
    return _DERIVERS[margin.mode](base_price, margin.value)


def margin_advisories(percentage, minimum) -> list[Advisory]:
    percentage = _to_decimal(percentage)
    minimum = _to_decimal(minimum) or ZERO
    if percentage is not None and ZERO < percentage < minimum:
        return [
            BelowMinimumMarginWarning(
                message=f'Margin {quantize(percentage)}% is below the recommended minimum of {quantize(minimum)}%.',
                percentage=percentage,
                minimum=minimum,
            )
        ]
    return []


def stored_margin(percentage) -> Decimal:
    """Round a percentage to what the combo row holds; out-of-range values are rejected."""
    percentage = _to_decimal(percentage) or ZERO
    _reject_negative(PERCENTAGE, percentage)
    stored = percentage.quantize(MARGIN_QUANTUM, rounding=ROUND_HALF_UP)
    if stored >= MARGIN_LIMIT:
        raise ComboDraftError(
            f'Margin {quantize(percentage)}% is too large; it must stay below {MARGIN_LIMIT}%.',
            code='margin_out_of_range',
        )
    return stored


def rounding_advisories(base_price, requested_sell_price, stored_percentage) -> list[Advisory]:
    """Flag a stored percentage that no longer reproduces the requested sell price."""
    if requested_sell_price is None:
        return []
    requested = quantize(requested_sell_price)
    saved = quantize(derive_from_percentage(base_price, stored_percentage).sell_price)
    if requested == saved:
        return []
    return [
        MarginRoundedWarning(
            message=f'Rounding the margin to {stored_percentage}% changes the sell price from {requested} to {saved}.',
            requested_sell_price=requested,
            saved_sell_price=saved,
        )
    ]


def validate_for_save(percentage, *, minimum, confirm_zero_margin: bool = False) -> list[Advisory]:
    """Save-time margin policy. A zero margin needs an explicit confirmation."""
    percentage = _to_decimal(percentage)
    _reject_negative(PERCENTAGE, percentage)
    if percentage == ZERO and not confirm_zero_margin:
        return [ZeroMarginConfirmationRequired(message='A 0% margin sells the combo at cost. Confirm to save.')]
    return margin_advisories(percentage, minimum)
