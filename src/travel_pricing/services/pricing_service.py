"""
Pricing Service - runs the engine for an enquiry and persists the result.
"""
import logging
from typing import Callable, Optional

from ..engine.pricing_engine import PricingEngine
from ..engine.models import PricingRequest, PricingSnapshot
from ..sync.pricing_sync import PricingSync, SnapshotCallback

logger = logging.getLogger(__name__)


class PricingService:
    """Glue between PricingEngine and PricingSync."""

    def __init__(self, engine: PricingEngine, sync: PricingSync):
        self.engine = engine
        self.sync = sync

    def preview(self, request: PricingRequest) -> PricingSnapshot:
        """Calculate without persisting."""
        return self.engine.calculate(request)

    def recalculate(self, request: PricingRequest, expected_version: Optional[int] = None) -> PricingSnapshot:
        """
        Calculate and queue the snapshot for persistence.

        The sequence number is taken before calculating so a slower, older
        run cannot overwrite a newer one.
        """
        sequence = self.sync.next_sequence(request.enquiry_id)
        snapshot = self.engine.calculate(request)
        accepted = self.sync.save(
            request.enquiry_id,
            snapshot,
            sequence=sequence,
            expected_version=expected_version,
        )
        if not accepted:
            logger.info(f"Pricing run {sequence} for enquiry {request.enquiry_id} superseded")
        return snapshot

    def get(self, enquiry_id: str) -> Optional[PricingSnapshot]:
        return self.sync.latest(enquiry_id)

    def version(self, enquiry_id: str) -> int:
        return self.sync.current_version(enquiry_id)

    def subscribe(self, enquiry_id: str, callback: SnapshotCallback) -> Callable[[], None]:
        return self.sync.subscribe(enquiry_id, callback)
