from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Optional, Protocol

from django.conf import settings

from currencies.services import (
    CurrencySnapshot,
    RateTable,
    build_rate_table,
    find_base_currency,
    find_currency,
    format_money,
    load_currencies,
    quantize,
)
from inventory.advisories import Advisory, IncompletePricingWarning, ZeroMarginConfirmationRequired
from inventory.exceptions import ComboDraftError

from .drafts import ComboDraft
from .margins import (
    PERCENTAGE,
    MarginFigures,
    MarginInput,
    derive,
    margin_advisories,
    recompute_for_new_base,
    rounding_advisories,
    stored_margin,
    validate_for_save,
)
from .pricing import aggregate_base_price, compute_final_price, individual_total
from .snapshots import PersistedCombo, ProductCatalog, as_catalog
from .stock import (
    LowStockAlert,
    StockIssue,
    check_stock_issues,
    combo_available_quantity,
    is_effectively_active,
    low_stock_alerts,
)

logger = logging.getLogger(__name__)


class ComboRepository(Protocol):
    def save(self, draft: ComboDraft, *, profit_margin: Decimal) -> PersistedCombo: ...

    def set_active(self, combo_id, is_active: bool) -> PersistedCombo: ...


@dataclass(frozen=True)
class ComboDisplay:
    combo_id: object
    currency: Optional[CurrencySnapshot]
    base_price: Decimal
    final_price: Decimal
    profit_margin: Optional[Decimal]
    individual_total: Decimal
    savings: Decimal
    savings_percent: Decimal
    is_effectively_active: bool
    available_quantity: int
    incomplete_items: int = 0
    stock_issues: list[StockIssue] = field(default_factory=list)
    low_stock: list[LowStockAlert] = field(default_factory=list)
    margin_warnings: list[Advisory] = field(default_factory=list)

    @property
    def base_price_formatted(self) -> str:
        return format_money(self.base_price, self.currency)

    @property
    def final_price_formatted(self) -> str:
        return format_money(self.final_price, self.currency)

    def as_dict(self):
        return {
            'combo_id': self.combo_id,
            'currency': self.currency.code if self.currency else None,
            'base_price': self.base_price,
            'final_price': self.final_price,
            'base_price_formatted': self.base_price_formatted,
            'final_price_formatted': self.final_price_formatted,
            'profit_margin': self.profit_margin,
            'individual_total': self.individual_total,
            'savings': self.savings,
            'savings_percent': self.savings_percent,
            'is_effectively_active': self.is_effectively_active,
            'available_quantity': self.available_quantity,
            'incomplete_items': self.incomplete_items,
            'stock_issues': [issue.as_dict() for issue in self.stock_issues],
            'low_stock': [alert.as_dict() for alert in self.low_stock],
            'margin_warnings': [warning.as_dict() for warning in self.margin_warnings],
        }


@dataclass(frozen=True)
class ComboSaveResult:
    saved: bool
    combo: Optional[PersistedCombo] = None
    advisories: list[Advisory] = field(default_factory=list)

    @property
    def confirmation_required(self) -> bool:
        return any(isinstance(a, ZeroMarginConfirmationRequired) for a in self.advisories)


class ComboPricingService:
    """Prices combos and keeps draft margin figures consistent.

    Works on one snapshot of products, rates and currencies; build a new
    service when the underlying data changes.
    """

    def __init__(
        self,
        catalog,
        rates=None,
        currencies: Iterable = (),
        *,
        base_currency_id=None,
        default_margin: Optional[Decimal] = None,
        minimum_margin: Decimal = Decimal('5'),
    ):
        self.catalog: ProductCatalog = as_catalog(catalog)
        self.rates = rates if isinstance(rates, RateTable) else RateTable(rates)
        self.currencies = load_currencies(list(currencies))
        if base_currency_id is None:
            base = find_base_currency(self.currencies)
            base_currency_id = base.id if base else None
        self.base_currency_id = base_currency_id
        self.default_margin = None if default_margin is None else Decimal(str(default_margin))
        self.minimum_margin = Decimal(str(minimum_margin))

    @classmethod
    def from_database(cls) -> 'ComboPricingService':
        currencies = load_currencies()
        base = find_base_currency(currencies) or next(
            (c for c in currencies if c.code == getattr(settings, 'BASE_CURRENCY_CODE', 'USD')), None
        )
        return cls(
            ProductCatalog.from_database(),
            build_rate_table(),
            currencies,
            base_currency_id=base.id if base else None,
            default_margin=getattr(settings, 'COMBO_DEFAULT_PROFIT_MARGIN', None),
            minimum_margin=getattr(settings, 'COMBO_MIN_PROFIT_MARGIN', Decimal('5')),
        )

    # Draft editing

    def new_draft(self) -> ComboDraft:
        return self.refresh(ComboDraft(margin=MarginInput(PERCENTAGE, self.default_margin)))

    def hydrate_draft(self, combo: PersistedCombo) -> ComboDraft:
        margin = combo.profit_margin if combo.profit_margin is not None else self.default_margin
        draft = ComboDraft(
            id=combo.id,
            name=combo.name,
            product_ids=[line.product_id for line in combo.items],
            quantities={line.product_id: line.quantity for line in combo.items},
            margin=MarginInput(PERCENTAGE, margin),
        )
        return self.refresh(draft)

    def build_draft(self, *, items, margin_mode=PERCENTAGE, margin_value=None, name='', description='', combo_id=None) -> ComboDraft:
        """Draft from plain ``[{'product': id, 'quantity': n}]`` rows."""
        draft = ComboDraft(id=combo_id, name=name, description=description,
                           margin=MarginInput(margin_mode, margin_value))
        for row in items:
            product_id = row.get('product', row.get('product_id'))
            if draft.has_product(product_id):
                raise ComboDraftError(f'Product {product_id} is listed twice.', code='duplicate_product')
            draft.toggle_product(product_id)
            draft.set_quantity(product_id, row.get('quantity', 1))
        return self.refresh(draft)

    def refresh(self, draft: ComboDraft) -> ComboDraft:
        """Recompute the base price, then the figures the driving margin does not own."""
        draft.base_price = aggregate_base_price(draft, self.catalog, self.rates, self.base_currency_id).amount
        if draft.margin.mode == PERCENTAGE:
            draft.figures = recompute_for_new_base(draft.base_price, draft.margin.value)
        else:
            draft.figures = derive(draft.base_price, draft.margin)
        return draft

    def toggle_product(self, draft: ComboDraft, product_id) -> ComboDraft:
        draft.toggle_product(product_id)
        return self.refresh(draft)

    def set_quantity(self, draft: ComboDraft, product_id, quantity) -> ComboDraft:
        draft.set_quantity(product_id, quantity)
        return self.refresh(draft)

    def set_margin(self, draft: ComboDraft, value, mode: Optional[str] = None) -> MarginFigures:
        """Cross-mode update entry point; a negative value leaves the draft untouched."""
        margin = MarginInput(mode or draft.margin.mode, value)
        figures = derive(draft.base_price, margin)
        draft.margin = margin
        draft.figures = figures
        return figures

    def switch_mode(self, draft: ComboDraft, mode: str) -> MarginFigures:
        margin = MarginInput(mode, None)
        return self.set_margin(draft, draft.figures.value_for(margin.mode), margin.mode)

    # Saved combos

    def display(self, combo: PersistedCombo, display_currency_id=None) -> ComboDisplay:
        currency_id = display_currency_id if display_currency_id is not None else self.base_currency_id
        base_total = aggregate_base_price(combo, self.catalog, self.rates, currency_id)
        margin = combo.profit_margin if combo.profit_margin is not None else self.default_margin
        base_price = quantize(base_total.amount)
        final_price = quantize(compute_final_price(base_total.amount, combo.profit_margin, self.default_margin))

        individual = quantize(individual_total(combo, self.catalog, self.rates, currency_id).amount)
        savings = individual - final_price
        savings_percent = quantize(savings / individual * 100) if individual else Decimal('0.00')

        issues = check_stock_issues(combo, self.catalog)
        warnings = margin_advisories(margin, self.minimum_margin)
        if not base_total.is_complete:
            warnings.append(IncompletePricingWarning(
                message='Some products are missing or could not be converted; the price may be understated.',
                missing_products=len(base_total.missing_product_ids),
                unconverted_products=len(base_total.unconverted_product_ids),
            ))

        return ComboDisplay(
            combo_id=combo.id,
            currency=find_currency(self.currencies, currency_id),
            base_price=base_price,
            final_price=final_price,
            profit_margin=margin,
            individual_total=individual,
            savings=savings,
            savings_percent=savings_percent,
            is_effectively_active=is_effectively_active(combo, issues),
            available_quantity=combo_available_quantity(combo, self.catalog),
            incomplete_items=base_total.incomplete_count,
            stock_issues=issues,
            low_stock=low_stock_alerts(combo, self.catalog),
            margin_warnings=warnings,
        )

    def save(self, draft: ComboDraft, repository: ComboRepository, *, confirm_zero_margin: bool = False) -> ComboSaveResult:
        """Persist a draft. A 0% margin needs a second call with ``confirm_zero_margin``."""
        if not (draft.name or '').strip():
            raise ComboDraftError('Combo name is required.', code='name_required')
        if not draft.product_ids:
            raise ComboDraftError('Combo must have at least one product.', code='products_required')

        self.refresh(draft)
        percentage = draft.figures.percentage
        requested_sell_price = None
        if percentage is None:
            percentage = self.default_margin if self.default_margin is not None else Decimal('0')
        elif draft.figures.amount is not None:
            requested_sell_price = draft.base_price + draft.figures.amount
        stored = stored_margin(percentage)

        advisories = validate_for_save(percentage, minimum=self.minimum_margin, confirm_zero_margin=confirm_zero_margin)
        result = ComboSaveResult(saved=False, advisories=advisories)
        if result.confirmation_required:
            logger.info('Combo %r not saved: zero margin awaits confirmation.', draft.name)
            return result

        advisories = advisories + rounding_advisories(draft.base_price, requested_sell_price, stored)
        combo = repository.save(draft, profit_margin=stored)
        logger.info('Combo %s saved with %s%% margin.', combo.id, stored)
        return ComboSaveResult(saved=True, combo=combo, advisories=draft.advisories + advisories)

    def set_active(self, repository: ComboRepository, combo_id, is_active: bool) -> PersistedCombo:
        combo = repository.set_active(combo_id, is_active)
        logger.info('Combo %s %s.', combo_id, 'activated' if is_active else 'deactivated')
        return combo
