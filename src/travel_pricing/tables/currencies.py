"""
Currency Lookup - Maps a destination country (code or name) to its currency.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd


@dataclass
class CurrencyInfo:
    currency_code: str
    currency_symbol: str


DEFAULT_CURRENCY = CurrencyInfo(currency_code='USD', currency_symbol='$')


class CurrencyLookup:
    """Country → currency lookup backed by currencies.csv."""

    def __init__(self, currencies_path: Optional[Path] = None, default: CurrencyInfo = DEFAULT_CURRENCY):
        self.default = default
        self.currencies_df = pd.DataFrame()
        if currencies_path is not None and currencies_path.exists():
            self.currencies_df = pd.read_csv(currencies_path, dtype=str).fillna('')
            for col in self.currencies_df.columns:
                self.currencies_df[col] = self.currencies_df[col].astype(str).str.strip()

    def lookup(self, country: Optional[str], default_code: Optional[str] = None) -> CurrencyInfo:
        """
        Resolve a currency by country code or country name.

        Unknown countries get default_code (when it is a known currency),
        otherwise the lookup's default.
        """
        match = pd.DataFrame()
        if not self.currencies_df.empty and country:
            key = str(country).strip().upper()
            match = self.currencies_df[
                (self.currencies_df['country_code'].str.upper() == key) |
                (self.currencies_df['country_name'].str.upper() == key)
            ]

        if match.empty:
            return self.by_currency_code(default_code) or self.default

        row = match.iloc[0]
        return CurrencyInfo(currency_code=row['currency_code'], currency_symbol=row['currency_symbol'])

    def by_currency_code(self, currency_code: Optional[str]) -> Optional[CurrencyInfo]:
        if self.currencies_df.empty or not currency_code:
            return None
        match = self.currencies_df[self.currencies_df['currency_code'].str.upper() == currency_code.strip().upper()]
        if match.empty:
            return None
        row = match.iloc[0]
        return CurrencyInfo(currency_code=row['currency_code'], currency_symbol=row['currency_symbol'])
