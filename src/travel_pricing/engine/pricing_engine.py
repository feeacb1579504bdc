"""
Pricing Engine - Runs the enquiry pricing pipeline with traceability.

Pipeline order (each step consumes the previous step's output):
1. Resolve base cost (manual / package option / itinerary / budget estimate)
2. Markup (percentage / fixed / slab / country-based)
3. Discount
4. Tax (inclusive or exclusive)
5. Per-person allocation
"""
import logging
from datetime import datetime
from typing import Optional

from ..config.settings import get_settings, Settings
from ..config.pricing_settings import SettingsProvider, FileSettingsProvider
from ..notifications import NotificationSink
from ..tables.country_rules import CountryMarkupTable
from ..tables.tax_rates import TaxRateTable
from ..tables.currencies import CurrencyLookup
from .models import PricingRequest, PricingSnapshot, Currency, SOURCE_NONE
from .resolver import resolve_base_cost
from .markup import MarkupCalculator
from .adjustments import apply_discount, TaxCalculator
from .allocator import allocate

logger = logging.getLogger(__name__)


class PricingEngine:
    """
    Core pricing engine for travel enquiries.

    Reference tables (country markup rules, tax rates, currencies) are loaded
    once; pricing defaults are fetched from the settings provider on every
    calculation so edits take effect immediately.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        settings_provider: Optional[SettingsProvider] = None,
        country_table: Optional[CountryMarkupTable] = None,
        tax_table: Optional[TaxRateTable] = None,
        currency_lookup: Optional[CurrencyLookup] = None,
        notifier: Optional[NotificationSink] = None,
    ):
        """Initialize engine with reference tables and a settings provider."""
        self.settings = settings or get_settings()
        self.settings_provider = settings_provider or FileSettingsProvider(self.settings.pricing_settings)
        self.notifier = notifier or NotificationSink()

        self.country_table = country_table or CountryMarkupTable(self.settings.country_markup_rules)
        self.tax_table = tax_table or TaxRateTable(self.settings.tax_rates)
        self.currency_lookup = currency_lookup or CurrencyLookup(self.settings.currencies)

        self.markup_calculator = MarkupCalculator(self.country_table)
        self.tax_calculator = TaxCalculator(self.tax_table)

    def reload_data(self):
        """Reload reference tables from disk."""
        self.country_table = CountryMarkupTable(self.settings.country_markup_rules)
        self.tax_table = TaxRateTable(self.settings.tax_rates)
        self.currency_lookup = CurrencyLookup(self.settings.currencies)
        self.markup_calculator = MarkupCalculator(self.country_table)
        self.tax_calculator = TaxCalculator(self.tax_table)

    def calculate(self, request: PricingRequest) -> PricingSnapshot:
        """
        Price an enquiry with full traceability.

        Args:
            request: PricingRequest with pax, cost inputs and adjustment settings

        Returns:
            PricingSnapshot with breakdowns, trace and warnings
        """
        pricing_settings = self.settings_provider.get_pricing_settings()
        pax = request.pax
        country = request.destination_country

        # STEP 1: Base cost
        base = resolve_base_cost(request)

        currency_info = self.currency_lookup.lookup(country, default_code=pricing_settings.default_currency)
        snapshot = PricingSnapshot(
            enquiry_id=request.enquiry_id,
            base_cost=base.amount,
            data_source=base.data_source,
            currency=Currency(code=currency_info.currency_code, symbol=currency_info.currency_symbol),
            pax=pax,
            last_calculated=datetime.now().isoformat(),
        )

        snapshot.add_trace("Base Cost", base.detail or base.data_source, f"{base.amount:.2f}")
        if base.is_estimate:
            snapshot.add_warning("Base cost is a budget estimate, not itinerary pricing")
        if base.data_source == SOURCE_NONE:
            snapshot.add_warning("No pricing data available for this enquiry")

        # STEP 2: Markup
        markup = self.markup_calculator.calculate(
            base_cost=base.amount,
            total_pax=pax.total_pax,
            markup=request.markup,
            settings=pricing_settings,
            country_code=country,
        )
        snapshot.markup = markup.breakdown
        for step, desc, val in markup.traces:
            snapshot.add_trace(step, desc, val)
        for warning in markup.warnings:
            snapshot.add_warning(warning)
        if markup.lookup_failed:
            self.notifier.error(f"Country markup lookup failed for enquiry {request.enquiry_id}; default markup used")

        snapshot.total_package_cost = base.amount + markup.breakdown.amount
        snapshot.add_trace("Total Package Cost", "Base cost + markup", f"{snapshot.total_package_cost:.2f}")

        # STEP 3: Discount
        discount = apply_discount(snapshot.total_package_cost, request.discount)
        snapshot.discount = discount.breakdown
        snapshot.net_package_cost = discount.net_package_cost
        for warning in discount.warnings:
            snapshot.add_warning(warning)
        if discount.breakdown.enabled:
            snapshot.add_trace(
                "Discount",
                f"{discount.breakdown.type} {discount.breakdown.value}",
                f"-{discount.breakdown.amount:.2f}",
            )
        snapshot.add_trace("Net Package Cost", "Total package cost - discount", f"{snapshot.net_package_cost:.2f}")

        # STEP 4: Tax
        tax_country = request.tax.country_code or country or pricing_settings.default_tax_country
        tax = self.tax_calculator.calculate(
            snapshot.net_package_cost,
            request.tax,
            tax_country,
            default_service_type=pricing_settings.default_service_type,
        )
        snapshot.tax = tax.breakdown
        snapshot.final_price = tax.final_price
        for warning in tax.warnings:
            snapshot.add_warning(warning)
        if tax.lookup_failed:
            self.notifier.error(f"Tax rate lookup failed for enquiry {request.enquiry_id}; no tax applied")
        if tax.breakdown.enabled:
            mode = "inclusive" if tax.breakdown.inclusive else "exclusive"
            snapshot.add_trace("Tax", f"{tax.breakdown.rate}% {mode} ({tax_country})", f"{tax.breakdown.amount:.2f}")
        snapshot.add_trace("Final Price", f"in {snapshot.currency.code}", f"{snapshot.final_price:.2f}")

        # STEP 5: Per-person allocation
        snapshot.per_person = allocate(snapshot.final_price, base.amount, pax, request.per_person)
        if pax.total_pax == 0:
            snapshot.add_warning("No passengers on enquiry; full price allocated to adult")
        snapshot.add_trace(
            "Per Person",
            f"{snapshot.per_person.mode} allocation across {pax.total_pax} pax",
            f"{snapshot.per_person.average:.2f}",
        )

        logger.debug(f"Priced enquiry {request.enquiry_id}: {snapshot.final_price:.2f} {snapshot.currency.code}")
        return snapshot
