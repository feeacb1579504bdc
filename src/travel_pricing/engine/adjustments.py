"""
Discount and tax adjustments applied after markup.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional

from ..tables.tax_rates import TaxRateTable
from .models import DiscountSettings, DiscountBreakdown, TaxSettings, TaxBreakdown, to_amount

logger = logging.getLogger(__name__)


@dataclass
class DiscountOutcome:
    breakdown: DiscountBreakdown
    net_package_cost: float
    warnings: list[str] = field(default_factory=list)


@dataclass
class TaxOutcome:
    breakdown: TaxBreakdown
    final_price: float
    warnings: list[str] = field(default_factory=list)
    lookup_failed: bool = False


def apply_discount(total_package_cost: float, discount: DiscountSettings) -> DiscountOutcome:
    """
    Subtract an optional discount from the total package cost.

    The net cost may go negative when the discount exceeds the cost; that is
    reported as a warning, not an error.
    """
    value = to_amount(discount.value)
    breakdown = DiscountBreakdown(enabled=bool(discount.enabled), type=discount.type, value=value)
    outcome = DiscountOutcome(breakdown=breakdown, net_package_cost=total_package_cost)

    if not discount.enabled:
        return outcome

    if discount.type == 'fixed':
        breakdown.amount = value
    else:
        if value > 100:
            outcome.warnings.append(f"Discount of {value}% exceeds 100%")
        breakdown.amount = total_package_cost * value / 100

    outcome.net_package_cost = total_package_cost - breakdown.amount
    if outcome.net_package_cost < 0:
        outcome.warnings.append(
            f"Discount {breakdown.amount:.2f} exceeds package cost {total_package_cost:.2f}"
        )
    return outcome


class TaxCalculator:
    """Applies country / service-type tax to the net package cost."""

    def __init__(self, rate_table: Optional[TaxRateTable] = None):
        self.rate_table = rate_table or TaxRateTable()

    def calculate(
        self,
        net_package_cost: float,
        tax: TaxSettings,
        country_code: Optional[str],
        default_service_type: str = 'all',
    ) -> TaxOutcome:
        """
        Exclusive: tax is added on top of the net cost.
        Inclusive: the net cost already contains tax; the tax share is
        extracted for display and the final price equals the net cost.
        """
        breakdown = TaxBreakdown(
            enabled=bool(tax.enabled),
            inclusive=bool(tax.inclusive),
            country_code=country_code,
            service_type=tax.service_type or default_service_type or 'all',
        )
        outcome = TaxOutcome(breakdown=breakdown, final_price=net_package_cost)

        if not tax.enabled:
            return outcome

        try:
            rate = self.rate_table.rate_for(country_code, breakdown.service_type)
        except Exception as e:
            logger.warning(f"Tax rate lookup failed for {country_code}/{breakdown.service_type}: {e}")
            outcome.lookup_failed = True
            outcome.warnings.append(f"Tax rate lookup failed for {country_code}; no tax applied")
            return outcome

        if rate is None:
            outcome.warnings.append(
                f"No tax rate configured for {country_code or 'unknown country'} ({breakdown.service_type})"
            )
            return outcome

        breakdown.rate = rate.rate
        if tax.inclusive:
            breakdown.amount = net_package_cost - net_package_cost / (1 + rate.rate / 100)
            outcome.final_price = net_package_cost
        else:
            breakdown.amount = net_package_cost * rate.rate / 100
            outcome.final_price = net_package_cost + breakdown.amount

        return outcome
