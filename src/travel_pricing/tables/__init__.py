"""Reference tables consulted by the pricing engine."""
from .country_rules import CountryMarkupTable, CountryMarkupRule
from .tax_rates import TaxRateTable, TaxRate
from .currencies import CurrencyLookup, CurrencyInfo

__all__ = ['CountryMarkupTable', 'CountryMarkupRule', 'TaxRateTable', 'TaxRate', 'CurrencyLookup', 'CurrencyInfo']
