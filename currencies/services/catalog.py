from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Mapping, Optional

TWOPLACES = Decimal('0.01')


def quantize(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class CurrencySnapshot:
    id: object
    code: str
    symbol: str = ''
    is_base: bool = False

    @classmethod
    def from_model(cls, currency) -> 'CurrencySnapshot':
        return cls(id=currency.pk, code=currency.code, symbol=currency.symbol or '', is_base=currency.is_base)

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'CurrencySnapshot':
        return cls(
            id=data['id'],
            code=data.get('code', ''),
            symbol=data.get('symbol') or '',
            is_base=bool(data.get('isBase', data.get('is_base', False))),
        )


def load_currencies(currencies: Iterable | None = None) -> list[CurrencySnapshot]:
    if currencies is None:
        from currencies.models import Currency

        currencies = Currency.objects.all()
    snapshots = []
    for currency in currencies:
        if isinstance(currency, CurrencySnapshot):
            snapshots.append(currency)
        elif isinstance(currency, Mapping):
            snapshots.append(CurrencySnapshot.from_mapping(currency))
        else:
            snapshots.append(CurrencySnapshot.from_model(currency))
    return snapshots


def find_base_currency(currencies: Iterable[CurrencySnapshot]) -> Optional[CurrencySnapshot]:
    return next((c for c in currencies if c.is_base), None)


def find_currency(currencies: Iterable[CurrencySnapshot], currency_id) -> Optional[CurrencySnapshot]:
    if currency_id is None:
        return None
    return next((c for c in currencies if str(c.id) == str(currency_id)), None)


def format_money(amount, currency: Optional[CurrencySnapshot] = None) -> str:
    value = quantize(amount)
    if currency is None:
        return f'{value}'
    return f'{currency.symbol}{value} {currency.code}'
