import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from travel_pricing.config.logger import setup_logging
from travel_pricing.config.pricing_settings import FileSettingsProvider
from travel_pricing.config.settings import get_settings
from travel_pricing.engine import PricingEngine
from travel_pricing.engine.models import (
    DiscountSettings,
    MarkupSettings,
    PaxDetails,
    PerPersonMarkup,
    PricingRequest,
    TaxSettings,
)
from travel_pricing.services.slabs_service import SlabsService


def debug():
    parser = argparse.ArgumentParser(description="Price one enquiry and print the trace")
    parser.add_argument("base_cost", type=float)
    parser.add_argument("--adults", type=int, default=2)
    parser.add_argument("--children", type=int, default=0)
    parser.add_argument("--country")
    parser.add_argument("--markup-type", default="percentage")
    parser.add_argument("--markup-value", type=float)
    parser.add_argument("--discount", type=float, default=0)
    parser.add_argument("--tax", action="store_true")
    parser.add_argument("--tax-inclusive", action="store_true")
    parser.add_argument("--separate", action="store_true", help="Separate adult/child markup")
    args = parser.parse_args()

    settings = get_settings()
    setup_logging(settings.log_level)
    slabs = SlabsService(settings.markup_slabs)
    engine = PricingEngine(
        settings=settings,
        settings_provider=FileSettingsProvider(settings.pricing_settings, slabs_loader=slabs.active_slabs),
    )

    print("Loaded Tables:")
    print(f"  Country rules: {len(engine.country_table.list_rules())}")
    print(f"  Tax countries: {', '.join(engine.tax_table.countries())}")
    print(f"  Active slabs:  {len(slabs.active_slabs())}")

    request = PricingRequest(
        enquiry_id="DEBUG",
        pax=PaxDetails(adults=args.adults, children=args.children),
        destination_country=args.country,
        base_cost_override=args.base_cost,
        markup=MarkupSettings(type=args.markup_type, value=args.markup_value),
        discount=DiscountSettings(enabled=args.discount > 0, value=args.discount),
        tax=TaxSettings(enabled=args.tax or args.tax_inclusive, inclusive=args.tax_inclusive),
        per_person=PerPersonMarkup(enabled=args.separate),
    )
    snapshot = engine.calculate(request)

    print("\nTrace:")
    print(snapshot.get_trace_text())

    pp = snapshot.per_person
    print(f"\nFinal Price: {snapshot.currency.symbol}{snapshot.final_price:,.2f} ({snapshot.currency.code})")
    print(f"Per person ({pp.mode}): adult {pp.adult:,.2f}, child {pp.child:,.2f}")
    if pp.mode == 'separate':
        print(f"Indicative: adult {pp.indicative_adult:,.2f}, child {pp.indicative_child:,.2f}")

    if snapshot.warnings:
        print("\nWarnings:")
        for warning in snapshot.warnings:
            print(f"  - {warning}")

if __name__ == "__main__":
    debug()
