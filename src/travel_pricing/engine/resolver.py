"""
Base cost resolution.

Precedence:
1. Manual base cost entered by the agent
2. Selected accommodation package tier (standard / optional / alternative)
3. Sum of itinerary day totals
4. Budget estimate: 70% of the average declared budget
5. Nothing usable: 0, flagged as "none"
"""
from .models import (
    PricingRequest,
    BaseCostResult,
    PACKAGE_OPTIONS,
    SOURCE_MANUAL,
    SOURCE_ACCOMMODATION,
    SOURCE_ITINERARY,
    SOURCE_BUDGET,
    SOURCE_NONE,
    to_amount,
)

# Share of the budget assumed to be cost; the rest is headroom for markup
BUDGET_COST_RATIO = 0.7


def resolve_base_cost(request: PricingRequest) -> BaseCostResult:
    """Resolve the base cost for a request. Never raises."""
    if request.base_cost_override is not None:
        return BaseCostResult(
            amount=to_amount(request.base_cost_override),
            data_source=SOURCE_MANUAL,
            detail="Base cost entered manually",
        )

    if request.accommodation_options:
        option_type = PACKAGE_OPTIONS.get(request.selected_package_option)
        for option in request.accommodation_options:
            if option.type == option_type:
                return BaseCostResult(
                    amount=to_amount(option.base_total),
                    data_source=SOURCE_ACCOMMODATION,
                    detail=f"Package option {request.selected_package_option} ({option_type})",
                )

    if request.itinerary:
        total = sum(day.total_cost for day in request.itinerary)
        return BaseCostResult(
            amount=total,
            data_source=SOURCE_ITINERARY,
            detail=f"Sum of {len(request.itinerary)} itinerary day(s)",
        )

    budget = request.budget
    if budget is not None and budget.is_set:
        average = (to_amount(budget.min) + to_amount(budget.max)) / 2
        days = f" over {request.trip_days} day(s)" if request.trip_days else ""
        return BaseCostResult(
            amount=average * BUDGET_COST_RATIO,
            data_source=SOURCE_BUDGET,
            is_estimate=True,
            detail=f"Estimated at {int(BUDGET_COST_RATIO * 100)}% of average budget{days}",
        )

    return BaseCostResult(
        amount=0.0,
        data_source=SOURCE_NONE,
        detail="No itinerary, package option or budget data",
    )
