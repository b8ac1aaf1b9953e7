from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping, Optional


def _pick(data: Mapping, *keys, default=None):
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _optional_decimal(value) -> Optional[Decimal]:
    return None if value is None or value == '' else Decimal(str(value))


@dataclass(frozen=True)
class ProductSnapshot:
    id: object
    name: str = ''
    base_price: Decimal = Decimal('0')
    base_currency_id: object = None
    stock: int = 0
    min_stock_alert: int = 10
    final_price: Optional[Decimal] = None

    @classmethod
    def from_model(cls, product) -> 'ProductSnapshot':
        return cls(
            id=product.pk,
            name=product.name,
            base_price=Decimal(str(product.base_price or 0)),
            base_currency_id=product.base_currency_id,
            stock=product.stock or 0,
            min_stock_alert=product.min_stock_alert or 10,
            final_price=product.final_price,
        )

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'ProductSnapshot':
        return cls(
            id=data['id'],
            name=_pick(data, 'name', 'name_es', default=''),
            base_price=Decimal(str(_pick(data, 'basePrice', 'base_price', default=0))),
            base_currency_id=_pick(data, 'baseCurrencyId', 'base_currency_id'),
            stock=int(_pick(data, 'stock', default=0)),
            min_stock_alert=int(_pick(data, 'minStockAlert', 'min_stock_alert', default=10)) or 10,
            final_price=_optional_decimal(_pick(data, 'finalPrice', 'final_price')),
        )


class ProductCatalog:
    """Read-only product lookup by id; int and str ids resolve to the same entry."""

    def __init__(self, products: Iterable = ()):
        self._products: dict[str, ProductSnapshot] = {}
        for product in products:
            snapshot = _as_product_snapshot(product)
            self._products[str(snapshot.id)] = snapshot

    @classmethod
    def from_database(cls, queryset=None) -> 'ProductCatalog':
        if queryset is None:
            from inventory.models import Product

            queryset = Product.objects.all()
        return cls(queryset)

    def get(self, product_id) -> Optional[ProductSnapshot]:
        if product_id is None:
            return None
        return self._products.get(str(product_id))

    def __contains__(self, product_id):
        return self.get(product_id) is not None

    def __iter__(self):
        return iter(self._products.values())

    def __len__(self):
        return len(self._products)


def _as_product_snapshot(product) -> ProductSnapshot:
    if isinstance(product, ProductSnapshot):
        return product
    if isinstance(product, Mapping):
        return ProductSnapshot.from_mapping(product)
    return ProductSnapshot.from_model(product)


def as_catalog(products) -> ProductCatalog:
    if isinstance(products, ProductCatalog):
        return products
    return ProductCatalog(products or ())


@dataclass(frozen=True)
class ComboLine:
    product_id: object
    quantity: int = 1


@dataclass(frozen=True)
class PersistedCombo:
    id: object
    name: str = ''
    items: tuple[ComboLine, ...] = field(default=())
    profit_margin: Optional[Decimal] = None
    is_active: bool = True

    @classmethod
    def from_model(cls, combo) -> 'PersistedCombo':
        items = tuple(
            ComboLine(product_id=item.product_id, quantity=item.quantity)
            for item in combo.items.all()
        )
        return cls(
            id=combo.pk,
            name=combo.name,
            items=items,
            profit_margin=_optional_decimal(combo.profit_margin),
            is_active=combo.is_active,
        )

    @classmethod
    def from_mapping(cls, data: Mapping) -> 'PersistedCombo':
        items = tuple(
            ComboLine(
                product_id=_pick(item, 'productId', 'product_id', 'product'),
                quantity=int(_pick(item, 'quantity', default=1)),
            )
            for item in data.get('items') or ()
        )
        return cls(
            id=data.get('id'),
            name=_pick(data, 'name', default=''),
            items=items,
            profit_margin=_optional_decimal(_pick(data, 'profitMargin', 'profit_margin')),
            is_active=bool(_pick(data, 'isActive', 'is_active', default=True)),
        )
