"""Application services built on the pricing engine."""
from .pricing_service import PricingService
from .slabs_service import SlabsService, ValidationResult
from .terms_service import TermsService, TermsConditions, TermsTemplate
from .proposal_service import ProposalService, ProposalDraft, ContactDetails, SendRecord

__all__ = [
    'PricingService',
    'SlabsService',
    'ValidationResult',
    'TermsService',
    'TermsConditions',
    'TermsTemplate',
    'ProposalService',
    'ProposalDraft',
    'ContactDetails',
    'SendRecord',
]
