"""
Data models for the pricing engine.

Uses dataclasses for structured, type-safe data representation.
"""
import math
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Optional


MARKUP_TYPES = ('percentage', 'fixed', 'slab', 'country-based')
ADJUSTMENT_TYPES = ('percentage', 'fixed')

# Package option number → accommodation tier
PACKAGE_OPTIONS = {1: 'standard', 2: 'optional', 3: 'alternative'}

# Base cost provenance
SOURCE_MANUAL = 'manual'
SOURCE_ACCOMMODATION = 'accommodation_option'
SOURCE_ITINERARY = 'itinerary'
SOURCE_BUDGET = 'budget_estimate'
SOURCE_NONE = 'none'


def to_amount(value: Any) -> float:
    """
    Coerce a user-supplied number to a non-negative float.

    Non-numeric, NaN and negative values become 0.
    """
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(amount) or amount < 0:
        return 0.0
    return amount


def to_count(value: Any) -> int:
    """Coerce a passenger count to a non-negative int."""
    return int(to_amount(value))


@dataclass
class TraceStep:
    """A single step in the pricing trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass
class PaxDetails:
    """Passenger counts for an enquiry."""
    adults: int = 0
    children: int = 0

    def __post_init__(self):
        self.adults = to_count(self.adults)
        self.children = to_count(self.children)

    @property
    def total_pax(self) -> int:
        return self.adults + self.children


@dataclass
class ItineraryDay:
    """One day of an itinerary with its service costs."""
    day: int
    accommodation_cost: float = 0.0
    activity_cost: float = 0.0
    transport_cost: float = 0.0
    meal_cost: float = 0.0
    city: Optional[str] = None

    @property
    def total_cost(self) -> float:
        return (
            to_amount(self.accommodation_cost)
            + to_amount(self.activity_cost)
            + to_amount(self.transport_cost)
            + to_amount(self.meal_cost)
        )


@dataclass
class AccommodationOption:
    """A package tier (standard / optional / alternative) with its total cost."""
    type: str
    base_total: float
    hotel_names: list[str] = field(default_factory=list)


@dataclass
class Budget:
    """Declared budget range of an enquiry."""
    min: float = 0.0
    max: float = 0.0

    @property
    def is_set(self) -> bool:
        return to_amount(self.min) > 0 or to_amount(self.max) > 0


@dataclass
class MarkupSlab:
    """A cost-range-keyed markup rule covering [min_amount, max_amount)."""
    id: str
    name: str
    min_amount: float
    max_amount: Optional[float]  # None = open-ended
    markup_type: str = 'percentage'
    markup_value: float = 0.0
    is_active: bool = True

    def contains(self, amount: float) -> bool:
        if amount < self.min_amount:
            return False
        return self.max_amount is None or amount < self.max_amount

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'MarkupSlab':
        max_amount = data.get('max_amount')
        return cls(
            id=str(data.get('id', '')),
            name=str(data.get('name', '')),
            min_amount=to_amount(data.get('min_amount')),
            max_amount=None if max_amount in (None, '') else to_amount(max_amount),
            markup_type=data.get('markup_type', 'percentage'),
            markup_value=to_amount(data.get('markup_value')),
            is_active=bool(data.get('is_active', True)),
        )


@dataclass
class MarkupSettings:
    """Markup choice for one pricing run. value=None uses the agency default."""
    type: str = 'percentage'
    value: Optional[float] = None


@dataclass
class DiscountSettings:
    enabled: bool = False
    type: str = 'percentage'
    value: float = 0.0


@dataclass
class TaxSettings:
    enabled: bool = False
    country_code: Optional[str] = None  # None = destination country
    service_type: Optional[str] = None  # None = agency default service type
    inclusive: bool = False


@dataclass
class PerPersonMarkup:
    """Independent adult/child markups used as allocation weights."""
    enabled: bool = False
    adult_type: str = 'percentage'
    adult_value: float = 15.0
    child_type: str = 'percentage'
    child_value: float = 10.0


@dataclass
class PricingRequest:
    """Everything the pipeline needs to price one enquiry."""
    enquiry_id: str
    pax: PaxDetails = field(default_factory=PaxDetails)
    destination_country: Optional[str] = None

    # Base cost inputs, in order of precedence
    base_cost_override: Optional[float] = None
    accommodation_options: list[AccommodationOption] = field(default_factory=list)
    selected_package_option: int = 1
    itinerary: list[ItineraryDay] = field(default_factory=list)
    budget: Optional[Budget] = None
    trip_days: int = 0

    markup: MarkupSettings = field(default_factory=MarkupSettings)
    discount: DiscountSettings = field(default_factory=DiscountSettings)
    tax: TaxSettings = field(default_factory=TaxSettings)
    per_person: PerPersonMarkup = field(default_factory=PerPersonMarkup)


@dataclass
class BaseCostResult:
    """Resolved base cost and where it came from."""
    amount: float
    data_source: str
    is_estimate: bool = False
    detail: Optional[str] = None


@dataclass
class MarkupBreakdown:
    type: str = 'percentage'
    percentage: float = 0.0
    amount: float = 0.0
    slab_id: Optional[str] = None


@dataclass
class DiscountBreakdown:
    enabled: bool = False
    type: str = 'percentage'
    value: float = 0.0
    amount: float = 0.0


@dataclass
class TaxBreakdown:
    enabled: bool = False
    amount: float = 0.0
    inclusive: bool = False
    rate: float = 0.0
    country_code: Optional[str] = None
    service_type: str = 'all'


@dataclass
class PerPersonBreakdown:
    """Per-person prices; *_total are group totals."""
    adult: float = 0.0
    child: float = 0.0
    average: float = 0.0
    adult_total: float = 0.0
    child_total: float = 0.0
    mode: str = 'equal'
    # Separate-markup mode only: the pre-redistribution per-person figures
    indicative_adult: Optional[float] = None
    indicative_child: Optional[float] = None


@dataclass
class Currency:
    code: str = 'USD'
    symbol: str = '$'


@dataclass
class PricingSnapshot:
    """Complete result of one pricing run for an enquiry."""
    enquiry_id: str
    base_cost: float
    data_source: str
    markup: MarkupBreakdown = field(default_factory=MarkupBreakdown)
    discount: DiscountBreakdown = field(default_factory=DiscountBreakdown)
    tax: TaxBreakdown = field(default_factory=TaxBreakdown)
    total_package_cost: float = 0.0
    net_package_cost: float = 0.0
    final_price: float = 0.0
    per_person: PerPersonBreakdown = field(default_factory=PerPersonBreakdown)
    currency: Currency = field(default_factory=Currency)
    pax: PaxDetails = field(default_factory=PaxDetails)
    last_calculated: str = field(default_factory=lambda: datetime.now().isoformat())
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the snapshot trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        if warning not in self.warnings:
            self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'PricingSnapshot':
        """Rebuild a snapshot from its to_dict() form. Raises on malformed data."""
        return cls(
            enquiry_id=str(data['enquiry_id']),
            base_cost=float(data['base_cost']),
            data_source=data.get('data_source', SOURCE_NONE),
            markup=MarkupBreakdown(**data['markup']),
            discount=DiscountBreakdown(**data['discount']),
            tax=TaxBreakdown(**data['tax']),
            total_package_cost=float(data['total_package_cost']),
            net_package_cost=float(data['net_package_cost']),
            final_price=float(data['final_price']),
            per_person=PerPersonBreakdown(**data['per_person']),
            currency=Currency(**data['currency']),
            pax=PaxDetails(**data.get('pax', {})),
            last_calculated=data.get('last_calculated') or datetime.now().isoformat(),
            warnings=list(data.get('warnings', [])),
            trace=[TraceStep(**t) for t in data.get('trace', [])],
        )
