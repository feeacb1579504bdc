"""Engine subpackage - core pricing pipeline."""
from .pricing_engine import PricingEngine
from .models import PricingRequest, PricingSnapshot, PaxDetails, MarkupSlab

__all__ = ['PricingEngine', 'PricingRequest', 'PricingSnapshot', 'PaxDetails', 'MarkupSlab']
