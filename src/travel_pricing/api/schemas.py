"""
Pydantic request models for the API and their conversion to engine types.
"""
from typing import Optional

from pydantic import BaseModel, Field

from ..engine.models import (
    AccommodationOption,
    Budget,
    DiscountSettings,
    ItineraryDay,
    MarkupSettings,
    PaxDetails,
    PerPersonMarkup,
    PricingRequest,
    TaxSettings,
)
from ..services.terms_service import TermsConditions


class PaxModel(BaseModel):
    adults: int = 0
    children: int = 0


class AccommodationOptionModel(BaseModel):
    type: str
    base_total: float = 0.0
    hotel_names: list[str] = Field(default_factory=list)


class ItineraryDayModel(BaseModel):
    day: int
    accommodation_cost: float = 0.0
    activity_cost: float = 0.0
    transport_cost: float = 0.0
    meal_cost: float = 0.0
    city: Optional[str] = None


class BudgetModel(BaseModel):
    min: float = 0.0
    max: float = 0.0


class MarkupModel(BaseModel):
    type: str = "percentage"
    value: Optional[float] = None


class DiscountModel(BaseModel):
    enabled: bool = False
    type: str = "percentage"
    value: float = 0.0


class TaxModel(BaseModel):
    enabled: bool = False
    country_code: Optional[str] = None
    service_type: Optional[str] = None
    inclusive: bool = False


class PerPersonModel(BaseModel):
    enabled: bool = False
    adult_type: str = "percentage"
    adult_value: float = 15.0
    child_type: str = "percentage"
    child_value: float = 10.0


class CalcRequest(BaseModel):
    """Pricing inputs for one enquiry."""
    pax: PaxModel = Field(default_factory=PaxModel)
    destination_country: Optional[str] = None
    base_cost_override: Optional[float] = None
    accommodation_options: list[AccommodationOptionModel] = Field(default_factory=list)
    selected_package_option: int = 1
    itinerary: list[ItineraryDayModel] = Field(default_factory=list)
    budget: Optional[BudgetModel] = None
    trip_days: int = 0
    markup: MarkupModel = Field(default_factory=MarkupModel)
    discount: DiscountModel = Field(default_factory=DiscountModel)
    tax: TaxModel = Field(default_factory=TaxModel)
    per_person: PerPersonModel = Field(default_factory=PerPersonModel)

    def to_pricing_request(self, enquiry_id: str) -> PricingRequest:
        return PricingRequest(
            enquiry_id=enquiry_id,
            pax=PaxDetails(**self.pax.model_dump()),
            destination_country=self.destination_country,
            base_cost_override=self.base_cost_override,
            accommodation_options=[AccommodationOption(**o.model_dump()) for o in self.accommodation_options],
            selected_package_option=self.selected_package_option,
            itinerary=[ItineraryDay(**d.model_dump()) for d in self.itinerary],
            budget=Budget(**self.budget.model_dump()) if self.budget else None,
            trip_days=self.trip_days,
            markup=MarkupSettings(**self.markup.model_dump()),
            discount=DiscountSettings(**self.discount.model_dump()),
            tax=TaxSettings(**self.tax.model_dump()),
            per_person=PerPersonMarkup(**self.per_person.model_dump()),
        )


class PreviewRequest(CalcRequest):
    enquiry_id: str = "preview"


class RecalculateRequest(CalcRequest):
    # Optimistic check against the stored snapshot version
    expected_version: Optional[int] = None


class TermsModel(BaseModel):
    payment_terms: str = ""
    cancellation_policy: str = ""
    inclusions: list[str] = Field(default_factory=list)
    exclusions: list[str] = Field(default_factory=list)
    additional_terms: str = ""
    validity: str = ""

    def to_terms(self) -> TermsConditions:
        return TermsConditions(**self.model_dump())


class ProposalUpdate(BaseModel):
    """Partial proposal edit; unset fields are left alone."""
    accommodations: Optional[list[dict]] = None
    apply_default_terms: bool = False
    country: Optional[str] = None
    reset_status: bool = False


class ContactModel(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    company: str = ""


class SendRequest(BaseModel):
    method: str = "email"
    contact: ContactModel = Field(default_factory=ContactModel)


class PricingSettingsModel(BaseModel):
    default_markup_percentage: float = 15.0
    use_slab_pricing: bool = False
    enable_country_based_pricing: bool = True
    default_tax_country: str = "IN"
    default_service_type: str = "all"
    default_currency: str = "USD"
