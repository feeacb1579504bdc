"""
Markup Calculator - Applies the agency margin to a base cost.

Supports four strategies:
- percentage: base × pct / 100
- fixed: value per person × total pax
- slab: the first active slab whose [min, max) range contains the base cost
- country-based: destination country rule, default percentage when unknown
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..config.pricing_settings import PricingSettings
from ..tables.country_rules import CountryMarkupTable
from .models import MarkupSettings, MarkupBreakdown, MarkupSlab, MARKUP_TYPES, to_amount

logger = logging.getLogger(__name__)


@dataclass
class MarkupOutcome:
    """Markup result with the messages produced while computing it."""
    breakdown: MarkupBreakdown
    traces: list[tuple[str, str, Optional[str]]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    lookup_failed: bool = False


def effective_percentage(amount: float, base_cost: float) -> float:
    """Markup expressed as a percentage of base cost (0 when base is 0)."""
    if base_cost <= 0:
        return 0.0
    return amount / base_cost * 100


class SlabMatcher:
    """Finds and applies cost-range markup slabs."""

    def find_slab(self, slabs: list[MarkupSlab], base_cost: float) -> Optional[MarkupSlab]:
        """
        Find the slab containing base_cost.

        Ranges are [min_amount, max_amount); when ranges overlap the first
        slab in list order wins.
        """
        for slab in slabs:
            if slab.is_active and slab.contains(base_cost):
                return slab
        return None

    def apply_slab(self, slab: MarkupSlab, base_cost: float, total_pax: int) -> tuple[float, str]:
        """Apply a slab. Returns (amount, trace message)."""
        value = to_amount(slab.markup_value)
        if slab.markup_type == 'fixed':
            amount = value * total_pax
            return amount, f"Slab {slab.id} applied {value:.2f} per person × {total_pax}"
        amount = base_cost * value / 100
        return amount, f"Slab {slab.id} applied {value}% to {base_cost:.2f}"


class MarkupCalculator:
    """Computes markup amount and effective percentage for a base cost."""

    def __init__(self, country_table: Optional[CountryMarkupTable] = None):
        self.country_table = country_table or CountryMarkupTable()
        self.slab_matcher = SlabMatcher()

    def calculate(
        self,
        base_cost: float,
        total_pax: int,
        markup: MarkupSettings,
        settings: PricingSettings,
        country_code: Optional[str] = None,
    ) -> MarkupOutcome:
        base_cost = to_amount(base_cost)
        total_pax = max(0, int(total_pax))
        markup_type = markup.type
        outcome = MarkupOutcome(breakdown=MarkupBreakdown(type=markup_type))

        if markup_type not in MARKUP_TYPES:
            outcome.warnings.append(f"Unknown markup type '{markup_type}', using percentage")
            markup_type = 'percentage'
            outcome.breakdown.type = markup_type

        # No explicit percentage: the agency default is slab pricing when enabled
        if markup_type == 'percentage' and markup.value is None and settings.use_slab_pricing:
            markup_type = 'slab'
            outcome.breakdown.type = markup_type

        if markup_type == 'percentage':
            pct = self._value_or_default(markup.value, settings)
            amount = base_cost * pct / 100
            outcome.traces.append(("Markup", f"{pct}% of {base_cost:.2f}", f"{amount:.2f}"))

        elif markup_type == 'fixed':
            per_person = to_amount(markup.value)
            amount = per_person * total_pax
            outcome.traces.append(("Markup", f"{per_person:.2f} per person × {total_pax} pax", f"{amount:.2f}"))

        elif markup_type == 'slab':
            slab = self.slab_matcher.find_slab(settings.markup_slabs, base_cost)
            if slab is None:
                amount = 0.0
                outcome.warnings.append(f"No markup slab covers base cost {base_cost:.2f}; markup set to 0")
                outcome.traces.append(("Markup", "No matching slab", "0.00"))
            else:
                amount, message = self.slab_matcher.apply_slab(slab, base_cost, total_pax)
                outcome.breakdown.slab_id = slab.id
                outcome.traces.append(("Markup", message, f"{amount:.2f}"))

        else:
            amount = self._country_markup(base_cost, total_pax, country_code, settings, outcome)

        outcome.breakdown.amount = amount
        outcome.breakdown.percentage = effective_percentage(amount, base_cost)
        return outcome

    def _value_or_default(self, value: Optional[float], settings: PricingSettings) -> float:
        if value is None:
            return to_amount(settings.default_markup_percentage)
        return to_amount(value)

    def _country_markup(
        self,
        base_cost: float,
        total_pax: int,
        country_code: Optional[str],
        settings: PricingSettings,
        outcome: MarkupOutcome,
    ) -> float:
        default_pct = to_amount(settings.default_markup_percentage)

        if settings.enable_country_based_pricing:
            try:
                amount = self.country_table.markup_for(country_code, base_cost, total_pax)
            except Exception as e:
                logger.warning(f"Country markup lookup failed for {country_code}: {e}")
                outcome.lookup_failed = True
                outcome.warnings.append(
                    f"Country markup lookup failed for {country_code}; using default {default_pct}%"
                )
                amount = None
            else:
                if amount is not None:
                    outcome.traces.append(("Markup", f"Country rule for {country_code}", f"{amount:.2f}"))
                    return amount

        amount = base_cost * default_pct / 100
        outcome.traces.append(
            ("Markup", f"No country rule for {country_code or 'unknown'}, default {default_pct}%", f"{amount:.2f}")
        )
        return amount
