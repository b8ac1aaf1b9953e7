from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, Mapping, Optional

logger = logging.getLogger(__name__)


class MissingExchangeRateError(LookupError):
    """No direct or inverse rate links the two currencies."""

    def __init__(self, from_id, to_id):
        super().__init__(f'No exchange rate between {from_id} and {to_id}.')
        self.from_id = from_id
        self.to_id = to_id


def _key(currency_id) -> str:
    return str(currency_id)


def _split_pair_key(key) -> tuple[str, str]:
    if isinstance(key, (tuple, list)):
        if len(key) != 2:
            raise ValueError(f'Rate key {key!r} must hold exactly two currency ids.')
        return _key(key[0]), _key(key[1])
    parts = str(key).split('-')
    if len(parts) == 2:
        return parts[0], parts[1]
    # "uuid-uuid": each UUID has five hyphen-separated groups
    if len(parts) == 10:
        return '-'.join(parts[:5]), '-'.join(parts[5:])
    raise ValueError(f'Cannot read currency pair from rate key {key!r}.')


class RateTable:
    """Sparse ``(from_id, to_id) -> rate`` lookup; one direction per pair is enough."""

    def __init__(self, rates: Optional[Mapping] = None):
        self._rates: dict[tuple[str, str], Decimal] = {}
        for key, rate in (rates or {}).items():
            from_id, to_id = _split_pair_key(key)
            self.add(from_id, to_id, rate)

    def add(self, from_id, to_id, rate) -> None:
        if _key(from_id) == _key(to_id):
            raise ValueError('An exchange rate needs two different currencies.')
        rate = Decimal(str(rate))
        if rate <= 0:
            raise ValueError(f'Exchange rate {from_id}->{to_id} must be positive, got {rate}.')
        self._rates[(_key(from_id), _key(to_id))] = rate

    def rate(self, from_id, to_id) -> Optional[Decimal]:
        return self._rates.get((_key(from_id), _key(to_id)))

    def __len__(self):
        return len(self._rates)

    def __contains__(self, pair):
        from_id, to_id = pair
        return (_key(from_id), _key(to_id)) in self._rates

    def as_dict(self) -> dict[str, Decimal]:
        return {f'{from_id}-{to_id}': rate for (from_id, to_id), rate in self._rates.items()}


@dataclass(frozen=True)
class ConversionResult:
    value: Optional[Decimal]
    was_converted: bool = False
    rate_missing: bool = False


def _as_rate_table(rates) -> RateTable:
    if isinstance(rates, RateTable):
        return rates
    return RateTable(rates)


def convert(amount, from_id, to_id, rates, *, strict: bool = False) -> ConversionResult:
    """Convert ``amount`` from one currency id to another.

    Tries the direct rate first, then divides by the inverse rate. When neither
    exists the amount passes through unchanged with ``rate_missing`` set, unless
    ``strict`` is requested.
    """
    if not amount or from_id is None or to_id is None or _key(from_id) == _key(to_id):
        return ConversionResult(amount)

    table = _as_rate_table(rates)
    value = Decimal(str(amount))

    direct = table.rate(from_id, to_id)
    if direct:
        return ConversionResult(value * direct, was_converted=True)

    inverse = table.rate(to_id, from_id)
    if inverse:
        return ConversionResult(value / inverse, was_converted=True)

    if strict:
        raise MissingExchangeRateError(from_id, to_id)
    logger.warning('No exchange rate from %s to %s; amount left unconverted.', from_id, to_id)
    return ConversionResult(amount, rate_missing=True)


def convert_amount(amount, from_id, to_id, rates, *, strict: bool = False):
    return convert(amount, from_id, to_id, rates, strict=strict).value


def build_rate_table(rates: Iterable | None = None) -> RateTable:
    """Latest effective rate per ordered currency pair."""
    if rates is None:
        from currencies.models import ExchangeRate

        rates = ExchangeRate.objects.order_by('-effective_date', '-id')
    table = RateTable()
    for row in rates:
        if (row.from_currency_id, row.to_currency_id) in table:
            continue
        table.add(row.from_currency_id, row.to_currency_id, row.rate)
    return table
