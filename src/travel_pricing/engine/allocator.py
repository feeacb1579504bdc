"""
Per-Person Allocator - Splits the final price across adults and children.

Equal mode divides the final price evenly. Separate-markup mode computes an
indicative adult and child price from independent markups and uses them only
as weights: the final price is redistributed in proportion, so the charged
per-person amounts are not the indicative figures.
"""
from .models import PaxDetails, PerPersonMarkup, PerPersonBreakdown, to_amount


def _markup_on(base_per_person: float, markup_type: str, value: float) -> float:
    if markup_type == 'fixed':
        return to_amount(value)
    return base_per_person * to_amount(value) / 100


def allocate(
    final_price: float,
    base_cost: float,
    pax: PaxDetails,
    per_person: PerPersonMarkup,
) -> PerPersonBreakdown:
    """Allocate final_price per person."""
    adults, children = pax.adults, pax.children
    total_pax = pax.total_pax

    if total_pax == 0:
        return PerPersonBreakdown(
            adult=final_price,
            child=0.0,
            average=final_price,
            adult_total=final_price,
            child_total=0.0,
        )

    average = final_price / total_pax

    if per_person.enabled:
        base_per_person = base_cost / total_pax
        adult_markup = _markup_on(base_per_person, per_person.adult_type, per_person.adult_value)
        child_markup = _markup_on(base_per_person, per_person.child_type, per_person.child_value)
        adult_indicative = base_per_person + adult_markup
        child_indicative = base_per_person + child_markup

        weight_total = base_cost + adults * adult_markup + children * child_markup
        if weight_total > 0:
            adult_total = final_price * (adults * adult_indicative) / weight_total
            child_total = final_price * (children * child_indicative) / weight_total
            return PerPersonBreakdown(
                adult=adult_total / adults if adults else 0.0,
                child=child_total / children if children else 0.0,
                average=average,
                adult_total=adult_total,
                child_total=child_total,
                mode='separate',
                indicative_adult=adult_indicative,
                indicative_child=child_indicative,
            )

    return PerPersonBreakdown(
        adult=average,
        child=average,
        average=average,
        adult_total=average * adults,
        child_total=average * children,
        mode='equal',
    )
