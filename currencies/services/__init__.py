from .catalog import (
    CurrencySnapshot,
    find_base_currency,
    find_currency,
    format_money,
    load_currencies,
    quantize,
)
from .conversion import (
    ConversionResult,
    MissingExchangeRateError,
    RateTable,
    build_rate_table,
    convert,
    convert_amount,
)
