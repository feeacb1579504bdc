"""
Proposal Service - Proposal drafts, status, sending and send history.

Status lifecycle: draft → ready → sent
- draft → ready once the draft has both pricing and terms
- ready → sent after a successful send
Edits after sending do not move the status back; reset_status() does.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Callable, Optional

from ..engine.models import PricingSnapshot
from ..exceptions import ProposalValidationError
from ..notifications import NotificationSink
from ..sync.pricing_sync import PricingSync
from ..sync.storage import StorageBackend, load_json_slot, save_json_slot
from .terms_service import TermsConditions, TermsService

logger = logging.getLogger(__name__)

PROPOSAL_STATUSES = ('draft', 'ready', 'sent')
SEND_METHODS = ('email', 'whatsapp')


@dataclass
class ProposalDraft:
    enquiry_id: str
    accommodations: list[dict] = field(default_factory=list)
    pricing: Optional[PricingSnapshot] = None
    terms: Optional[TermsConditions] = None
    status: str = 'draft'
    updated_at: str = field(default_factory=lambda: datetime.now().isoformat())

    def to_dict(self) -> dict:
        return {
            'enquiry_id': self.enquiry_id,
            'accommodations': self.accommodations,
            'pricing': self.pricing.to_dict() if self.pricing else None,
            'terms': self.terms.to_dict() if self.terms else None,
            'status': self.status,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'ProposalDraft':
        status = data.get('status', 'draft')
        return cls(
            enquiry_id=str(data['enquiry_id']),
            accommodations=list(data.get('accommodations') or []),
            pricing=PricingSnapshot.from_dict(data['pricing']) if data.get('pricing') else None,
            terms=TermsConditions.from_dict(data['terms']) if data.get('terms') else None,
            status=status if status in PROPOSAL_STATUSES else 'draft',
            updated_at=data.get('updated_at') or datetime.now().isoformat(),
        )


@dataclass
class ContactDetails:
    """Agent contact the proposal is sent to."""
    name: str = ''
    email: str = ''
    phone: str = ''
    company: str = ''


@dataclass
class SendRecord:
    sent_at: str
    method: str
    sent_to: str
    contact: dict
    snapshot: Optional[dict]
    terms: Optional[dict] = None

    def to_dict(self) -> dict:
        return asdict(self)


class ProposalService:
    """Manages proposal drafts keyed by enquiry id."""

    def __init__(
        self,
        storage: StorageBackend,
        terms_service: TermsService,
        notifier: Optional[NotificationSink] = None,
        send_delay_seconds: float = 2.0,
    ):
        self.storage = storage
        self.terms_service = terms_service
        self.notifier = notifier or NotificationSink()
        self.send_delay_seconds = send_delay_seconds
        self._tracked: dict[str, Callable[[], None]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def draft_key(enquiry_id: str) -> str:
        return f"proposal_draft_{enquiry_id}"

    @staticmethod
    def history_key(enquiry_id: str) -> str:
        return f"proposal_send_{enquiry_id}"

    # ------------------------------------------------------------------
    # Drafts
    # ------------------------------------------------------------------
    def get_draft(self, enquiry_id: str) -> ProposalDraft:
        """Load the draft, starting a fresh one if none exists or it is unreadable."""
        data = load_json_slot(self.storage, self.draft_key(enquiry_id))
        if data is None:
            return ProposalDraft(enquiry_id=enquiry_id)
        try:
            return ProposalDraft.from_dict(data)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable proposal draft for enquiry {enquiry_id}: {e}")
            self.storage.remove_item(self.draft_key(enquiry_id))
            return ProposalDraft(enquiry_id=enquiry_id)

    def save_draft(self, draft: ProposalDraft) -> ProposalDraft:
        if draft.status == 'draft' and draft.pricing is not None and draft.terms is not None:
            draft.status = 'ready'
        draft.updated_at = datetime.now().isoformat()
        save_json_slot(self.storage, self.draft_key(draft.enquiry_id), draft.to_dict())
        return draft

    def attach_pricing(self, enquiry_id: str, snapshot: PricingSnapshot) -> ProposalDraft:
        draft = self.get_draft(enquiry_id)
        draft.pricing = snapshot
        return self.save_draft(draft)

    def update_terms(self, enquiry_id: str, terms: TermsConditions) -> ProposalDraft:
        draft = self.get_draft(enquiry_id)
        draft.terms = terms
        return self.save_draft(draft)

    def apply_default_terms(self, enquiry_id: str, country: Optional[str] = None) -> ProposalDraft:
        """Fill in default terms when the draft has none."""
        draft = self.get_draft(enquiry_id)
        if draft.terms is None or draft.terms.is_empty():
            draft.terms = self.terms_service.default_terms(country)
        return self.save_draft(draft)

    def set_accommodations(self, enquiry_id: str, accommodations: list[dict]) -> ProposalDraft:
        draft = self.get_draft(enquiry_id)
        draft.accommodations = list(accommodations)
        return self.save_draft(draft)

    def reset_status(self, enquiry_id: str) -> ProposalDraft:
        """Manually move a proposal back to draft (re-promoted to ready if complete)."""
        draft = self.get_draft(enquiry_id)
        draft.status = 'draft'
        return self.save_draft(draft)

    def track_pricing(self, sync: PricingSync, enquiry_id: str):
        """Keep the draft's pricing in step with committed snapshots."""
        with self._lock:
            if enquiry_id in self._tracked:
                return
            self._tracked[enquiry_id] = sync.subscribe(
                enquiry_id, lambda snapshot: self.attach_pricing(enquiry_id, snapshot)
            )

    def untrack_pricing(self, enquiry_id: str):
        with self._lock:
            unsubscribe = self._tracked.pop(enquiry_id, None)
        if unsubscribe is not None:
            unsubscribe()

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------
    def validate_for_send(self, draft: ProposalDraft, contact: ContactDetails, method: str) -> list[str]:
        """Reasons the proposal cannot be sent (empty when it can)."""
        errors = []

        if method not in SEND_METHODS:
            errors.append(f"Unsupported communication method '{method}'")

        if draft.pricing is None:
            errors.append("Pricing not configured")

        if draft.terms is None:
            errors.append("Terms & conditions not set")

        if method == 'email' and not contact.email:
            errors.append("Agent email not provided for email communication")

        if method == 'whatsapp' and not contact.phone:
            errors.append("Agent phone not provided for WhatsApp communication")

        return errors

    async def send_proposal(self, enquiry_id: str, contact: ContactDetails, method: str = 'email') -> SendRecord:
        """
        Validate and send a proposal.

        Raises ProposalValidationError listing every blocking reason.
        """
        draft = self.get_draft(enquiry_id)
        errors = self.validate_for_send(draft, contact, method)
        if errors:
            self.notifier.error(f"Please fix: {', '.join(errors)}")
            raise ProposalValidationError(errors)

        # Stand-in for the outbound email / WhatsApp call
        await asyncio.sleep(self.send_delay_seconds)

        # Pricing or terms may have been committed while sending
        draft = self.get_draft(enquiry_id)

        record = SendRecord(
            sent_at=datetime.now().isoformat(),
            method=method,
            sent_to=contact.email if method == 'email' else contact.phone,
            contact=asdict(contact),
            snapshot=draft.pricing.to_dict() if draft.pricing else None,
            terms=draft.terms.to_dict() if draft.terms else None,
        )

        history = self._load_history(enquiry_id)
        history.append(record.to_dict())
        save_json_slot(self.storage, self.history_key(enquiry_id), history)

        draft.status = 'sent'
        self.save_draft(draft)

        self.notifier.success(f"Proposal sent via {method}")
        return record

    def send_history(self, enquiry_id: str) -> list[SendRecord]:
        records = []
        for item in self._load_history(enquiry_id):
            try:
                records.append(SendRecord(**item))
            except TypeError as e:
                logger.warning(f"Skipping malformed send record for enquiry {enquiry_id}: {e}")
        return records

    def _load_history(self, enquiry_id: str) -> list[dict]:
        data = load_json_slot(self.storage, self.history_key(enquiry_id))
        if data is None:
            return []
        if isinstance(data, dict):
            # Single record written by older clients
            return [data]
        if not isinstance(data, list):
            logger.warning(f"Discarding unreadable send history for enquiry {enquiry_id}")
            self.storage.remove_item(self.history_key(enquiry_id))
            return []
        return data

    # ------------------------------------------------------------------
    # Text summary
    # ------------------------------------------------------------------
    def render_summary(
        self,
        enquiry_id: str,
        show_breakup: bool = True,
        separate_adult_child: bool = True,
        include_terms: bool = True,
    ) -> str:
        """Plain-text proposal summary for copy/paste."""
        draft = self.get_draft(enquiry_id)
        pricing = draft.pricing
        lines = [f"TRAVEL PROPOSAL - {enquiry_id}", ""]

        if pricing is None:
            lines.append("Pricing not configured")
        else:
            code = pricing.currency.code
            lines.append(f"Travelers: {pricing.pax.adults} adults, {pricing.pax.children} children")
            lines.append("")
            if show_breakup and separate_adult_child:
                lines.append("PRICING BREAKDOWN:")
                lines.append(f"Adult Cost: {code} {pricing.per_person.adult_total:,.2f}")
                lines.append(f"Child Cost: {code} {pricing.per_person.child_total:,.2f}")
            elif show_breakup:
                lines.append("PRICING BREAKDOWN:")
                lines.append(f"Package Cost: {code} {pricing.total_package_cost:,.2f}")
                if pricing.discount.amount:
                    lines.append(f"Discount: -{code} {pricing.discount.amount:,.2f}")
                if pricing.tax.amount:
                    lines.append(f"Tax: {code} {pricing.tax.amount:,.2f}")
            lines.append(f"TOTAL COST: {code} {pricing.final_price:,.2f}")

        if include_terms and draft.terms is not None:
            terms = draft.terms
            lines.extend(["", "TERMS & CONDITIONS:", terms.payment_terms, terms.cancellation_policy])
            if terms.inclusions:
                lines.append("Inclusions:")
                lines.extend(f"- {item}" for item in terms.inclusions)
            if terms.exclusions:
                lines.append("Exclusions:")
                lines.extend(f"- {item}" for item in terms.exclusions)

        return "\n".join(lines).strip() + "\n"
