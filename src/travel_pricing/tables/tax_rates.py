"""
Tax Rate Table - Country / service-type tax rates.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd


@dataclass
class TaxRate:
    """Effective tax rate for a country and service type."""
    country_code: str
    tax_type: str  # GST, VAT, ...
    service_type: str
    rate: float  # percent
    description: str = ''


class TaxRateTable:
    """
    Resolves tax rates from tax_rates.csv.

    Resolution order:
    1. Exact (country, service_type) row
    2. The country's default row (is_default=true or service_type "all")
    3. None
    """

    def __init__(self, rates_path: Optional[Path] = None, rates_df: Optional[pd.DataFrame] = None):
        self.rates_path = rates_path
        self.rates_df = pd.DataFrame()
        if rates_df is not None:
            self.rates_df = rates_df.fillna('').astype(str)
        elif rates_path is not None and rates_path.exists():
            self.rates_df = pd.read_csv(rates_path, dtype=str).fillna('')
        if not self.rates_df.empty:
            for col in self.rates_df.columns:
                self.rates_df[col] = self.rates_df[col].astype(str).str.strip()

    def rate_for(self, country_code: Optional[str], service_type: str = 'all') -> Optional[TaxRate]:
        """Find the tax rate for a country and service type."""
        if self.rates_df.empty or not country_code:
            return None

        country_rows = self.rates_df[
            self.rates_df['country_code'].str.upper() == str(country_code).strip().upper()
        ]
        if country_rows.empty:
            return None

        # 1. Exact service type
        match = country_rows[country_rows['service_type'] == str(service_type or 'all')]

        # 2. Country default
        if match.empty:
            match = country_rows[
                (country_rows['is_default'].str.lower() == 'true') |
                (country_rows['service_type'] == 'all')
            ]
        if match.empty:
            return None

        row = match.iloc[0]
        return TaxRate(
            country_code=row['country_code'],
            tax_type=row.get('tax_type', ''),
            service_type=row['service_type'],
            rate=float(row['rate']),
            description=row.get('description', ''),
        )

    def countries(self) -> list[str]:
        if self.rates_df.empty:
            return []
        return sorted(self.rates_df['country_code'].unique().tolist())
