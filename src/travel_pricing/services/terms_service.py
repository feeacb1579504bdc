"""
Terms Service - Terms & conditions templates.

Templates are global (not per enquiry) and stored in the "terms_templates"
slot. A country's template provides the default terms for enquiries to that
destination; otherwise the built-in defaults apply.
"""
import logging
import uuid
from dataclasses import dataclass, field, asdict
from typing import Optional

from ..exceptions import TemplateNotFoundError
from ..sync.storage import StorageBackend, load_json_slot, save_json_slot

logger = logging.getLogger(__name__)

TEMPLATES_KEY = 'terms_templates'


@dataclass
class TermsConditions:
    """Editable proposal terms."""
    payment_terms: str = ''
    cancellation_policy: str = ''
    inclusions: list[str] = field(default_factory=list)
    exclusions: list[str] = field(default_factory=list)
    additional_terms: str = ''
    validity: str = ''

    def is_empty(self) -> bool:
        return not any([
            self.payment_terms.strip(),
            self.cancellation_policy.strip(),
            self.inclusions,
            self.exclusions,
            self.additional_terms.strip(),
            self.validity.strip(),
        ])

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> 'TermsConditions':
        return cls(
            payment_terms=data.get('payment_terms', '') or '',
            cancellation_policy=data.get('cancellation_policy', '') or '',
            inclusions=list(data.get('inclusions') or []),
            exclusions=list(data.get('exclusions') or []),
            additional_terms=data.get('additional_terms', '') or '',
            validity=data.get('validity', '') or '',
        )


@dataclass
class TermsTemplate:
    id: str
    name: str
    country: Optional[str]
    data: TermsConditions

    def to_dict(self) -> dict:
        return {'id': self.id, 'name': self.name, 'country': self.country, 'data': self.data.to_dict()}

    @classmethod
    def from_dict(cls, data: dict) -> 'TermsTemplate':
        return cls(
            id=str(data['id']),
            name=str(data.get('name', '')),
            country=data.get('country'),
            data=TermsConditions.from_dict(data.get('data') or {}),
        )


def default_terms() -> TermsConditions:
    """Built-in terms used when no template matches."""
    return TermsConditions(
        payment_terms=(
            "30% advance payment required at the time of booking\n"
            "70% balance payment required 15 days before travel"
        ),
        cancellation_policy=(
            "Free cancellation up to 30 days before travel\n"
            "25% cancellation charge 15-30 days before travel\n"
            "50% cancellation charge 7-15 days before travel\n"
            "100% cancellation charge within 7 days of travel"
        ),
        inclusions=[
            "Accommodation on twin sharing basis",
            "Daily breakfast at the hotel",
            "Airport transfers as per itinerary",
            "Sightseeing tours with English speaking guide",
        ],
        exclusions=[
            "Air fare / Train fare",
            "Personal expenses like laundry, telephone, tips, etc.",
            "Meals not mentioned in the itinerary",
            "Travel insurance",
        ],
        additional_terms=(
            "All rates are subject to availability at the time of booking\n"
            "Valid passport required for international travel\n"
            "Travel insurance is highly recommended"
        ),
        validity=(
            "This quotation is valid for 30 days from the date of issue\n"
            "Prices are subject to change without prior notice after validity period"
        ),
    )


class TermsService:
    """CRUD for terms templates plus default-terms resolution."""

    def __init__(self, storage: StorageBackend):
        self.storage = storage

    def list_templates(self, country: Optional[str] = None) -> list[TermsTemplate]:
        data = load_json_slot(self.storage, TEMPLATES_KEY)
        if not isinstance(data, list):
            return []

        templates = []
        for item in data:
            try:
                templates.append(TermsTemplate.from_dict(item))
            except (KeyError, TypeError, AttributeError) as e:
                logger.warning(f"Skipping malformed terms template: {e}")

        if country:
            key = country.strip().upper()
            templates = [t for t in templates if (t.country or '').upper() == key]
        return templates

    def get_template(self, template_id: str) -> Optional[TermsTemplate]:
        for template in self.list_templates():
            if template.id == template_id:
                return template
        return None

    def save_template(self, name: str, terms: TermsConditions, country: Optional[str] = None) -> TermsTemplate:
        """Add a template (a template with the same name and country is replaced)."""
        country = country.strip().upper() if country else None
        templates = [
            t for t in self.list_templates()
            if not (t.name == name and t.country == country)
        ]
        template = TermsTemplate(
            id=f"tpl_{uuid.uuid4().hex[:12]}",
            name=name,
            country=country,
            data=terms,
        )
        templates.append(template)
        self._write(templates)
        return template

    def delete_template(self, template_id: str) -> bool:
        templates = self.list_templates()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) == len(templates):
            raise TemplateNotFoundError(f"Terms template '{template_id}' not found")
        self._write(remaining)
        return True

    def default_terms(self, country: Optional[str] = None) -> TermsConditions:
        """Terms from the first template for the country, else the built-in defaults."""
        if country:
            matches = self.list_templates(country=country)
            if matches:
                return matches[0].data
        return default_terms()

    def _write(self, templates: list[TermsTemplate]):
        save_json_slot(self.storage, TEMPLATES_KEY, [t.to_dict() for t in templates])
