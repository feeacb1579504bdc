"""
Country Markup Table - Country-specific markup rules keyed by destination.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pandas as pd

# Applied on top of the country's markup
TIER_MULTIPLIERS = {
    'budget': 0.8,
    'standard': 1.0,
    'premium': 1.2,
    'luxury': 1.5,
}


@dataclass
class CountryMarkupRule:
    """An active markup rule for one country."""
    country_code: str
    country_name: str
    currency: str
    currency_symbol: str
    default_markup: float
    markup_type: str  # "percentage" or "fixed" (per person)
    tier: str = 'standard'
    seasonal_adjustment: float = 0.0
    region: str = ''

    @property
    def tier_multiplier(self) -> float:
        return TIER_MULTIPLIERS.get(self.tier, 1.0)


class CountryMarkupTable:
    """
    Looks up country markup rules from country_markup_rules.csv.

    Only rows with is_active=true are considered.
    """

    def __init__(self, rules_path: Optional[Path] = None, rules_df: Optional[pd.DataFrame] = None):
        self.rules_path = rules_path
        self.rules_df = pd.DataFrame()
        if rules_df is not None:
            self.rules_df = rules_df.fillna('').astype(str)
        elif rules_path is not None and rules_path.exists():
            self.rules_df = pd.read_csv(rules_path, dtype=str).fillna('')
        if not self.rules_df.empty:
            for col in self.rules_df.columns:
                self.rules_df[col] = self.rules_df[col].astype(str).str.strip()

    def get_rule(self, country_code: Optional[str]) -> Optional[CountryMarkupRule]:
        """Get the active rule for a country code, or None."""
        if self.rules_df.empty or not country_code:
            return None

        match = self.rules_df[
            (self.rules_df['country_code'].str.upper() == str(country_code).strip().upper()) &
            (self.rules_df['is_active'].str.lower() == 'true')
        ]
        if match.empty:
            return None

        row = match.iloc[0]
        seasonal = pd.to_numeric(row.get('seasonal_adjustment', ''), errors='coerce')
        return CountryMarkupRule(
            country_code=row['country_code'],
            country_name=row.get('country_name', ''),
            currency=row.get('currency', ''),
            currency_symbol=row.get('currency_symbol', ''),
            default_markup=float(row['default_markup']),
            markup_type=row.get('markup_type', 'percentage') or 'percentage',
            tier=row.get('tier', 'standard') or 'standard',
            seasonal_adjustment=0.0 if pd.isna(seasonal) else float(seasonal),
            region=row.get('region', ''),
        )

    def markup_for(self, country_code: Optional[str], base_cost: float, total_pax: int) -> Optional[float]:
        """
        Markup amount for a country, or None when no active rule exists.

        Fixed rules are per person; the tier multiplier and seasonal
        adjustment apply to either kind. Rounded to 2 places.
        """
        rule = self.get_rule(country_code)
        if rule is None:
            return None
        if base_cost <= 0 or total_pax <= 0:
            return 0.0

        if rule.markup_type == 'fixed':
            markup = rule.default_markup * total_pax
        else:
            markup = base_cost * rule.default_markup / 100

        markup *= rule.tier_multiplier
        if rule.seasonal_adjustment:
            markup *= (1 + rule.seasonal_adjustment / 100)

        return round(markup, 2)

    def list_rules(self) -> list[CountryMarkupRule]:
        if self.rules_df.empty:
            return []
        codes = self.rules_df['country_code'].unique()
        return [rule for rule in (self.get_rule(code) for code in codes) if rule is not None]
