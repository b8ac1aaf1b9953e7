from __future__ import annotations

from dataclasses import asdict, dataclass

from .snapshots import ProductCatalog

OUT_OF_STOCK = 'out_of_stock'
INSUFFICIENT_STOCK = 'insufficient_stock'


@dataclass(frozen=True)
class StockIssue:
    product_id: object
    product_name: str
    issue_kind: str
    required: int
    available: int

    def as_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class LowStockAlert:
    product_id: object
    product_name: str
    available: int
    min_stock_alert: int

    def as_dict(self):
        return asdict(self)


def check_stock_issues(combo, catalog: ProductCatalog) -> list[StockIssue]:
    issues = []
    for line in combo.items:
        product = catalog.get(line.product_id)
        if product is None:
            continue
        required = line.quantity
        available = product.stock
        if available == 0:
            kind = OUT_OF_STOCK
        elif available < required:
            kind = INSUFFICIENT_STOCK
        else:
            continue
        issues.append(StockIssue(
            product_id=product.id,
            product_name=product.name,
            issue_kind=kind,
            required=required,
            available=available,
        ))
    return issues


def is_effectively_active(combo, issues) -> bool:
    return bool(combo.is_active) and not issues


def low_stock_alerts(combo, catalog: ProductCatalog) -> list[LowStockAlert]:
    """Products that still have stock but sit at or below their alert threshold."""
    alerts = []
    for line in combo.items:
        product = catalog.get(line.product_id)
        if product is None:
            continue
        if 0 < product.stock <= product.min_stock_alert:
            alerts.append(LowStockAlert(
                product_id=product.id,
                product_name=product.name,
                available=product.stock,
                min_stock_alert=product.min_stock_alert,
            ))
    return alerts


def combo_available_quantity(combo, catalog: ProductCatalog) -> int:
    limits = []
    for line in combo.items:
        product = catalog.get(line.product_id)
        if product is None:
            return 0
        required = line.quantity
        if required <= 0:
            continue
        limits.append(product.stock // required)
    return min(limits) if limits else 0
