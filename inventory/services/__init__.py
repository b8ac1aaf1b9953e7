from .combos import ComboDisplay, ComboPricingService, ComboRepository, ComboSaveResult
from .drafts import ComboDraft
from .margins import (
    AMOUNT,
    PERCENTAGE,
    SELL_PRICE,
    MarginFigures,
    MarginInput,
    derive,
    derive_from_amount,
    derive_from_percentage,
    derive_from_sell_price,
    recompute_for_new_base,
    validate_for_save,
)
from .pricing import ComboBaseTotal, aggregate_base_price, compute_base_price, compute_final_price, individual_total
from .snapshots import ComboLine, PersistedCombo, ProductCatalog, ProductSnapshot
from .stock import (
    INSUFFICIENT_STOCK,
    OUT_OF_STOCK,
    StockIssue,
    check_stock_issues,
    combo_available_quantity,
    is_effectively_active,
    low_stock_alerts,
)
