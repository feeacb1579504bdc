"""
Shared service instances for the API.

Built lazily on first use; routes take them through the get_services
dependency so tests can swap in their own container.
"""
from dataclasses import dataclass
from typing import Optional

from ..config.settings import get_settings, Settings
from ..config.pricing_settings import FileSettingsProvider
from ..engine.pricing_engine import PricingEngine
from ..notifications import NotificationSink
from ..services.pricing_service import PricingService
from ..services.proposal_service import ProposalService
from ..services.slabs_service import SlabsService
from ..services.terms_service import TermsService
from ..sync.pricing_sync import PricingSync
from ..sync.storage import FileStorage, StorageBackend


@dataclass
class Services:
    engine: PricingEngine
    sync: PricingSync
    pricing: PricingService
    slabs: SlabsService
    terms: TermsService
    proposals: ProposalService
    notifier: NotificationSink


def build_services(settings: Optional[Settings] = None, storage: Optional[StorageBackend] = None) -> Services:
    """Wire engine, sync and services together."""
    settings = settings or get_settings()
    storage = storage if storage is not None else FileStorage(settings.storage_dir)
    notifier = NotificationSink()

    slabs = SlabsService(settings.markup_slabs)
    provider = FileSettingsProvider(settings.pricing_settings, slabs_loader=slabs.active_slabs)
    engine = PricingEngine(settings=settings, settings_provider=provider, notifier=notifier)
    sync = PricingSync(storage, debounce_seconds=settings.debounce_seconds)
    terms = TermsService(storage)

    return Services(
        engine=engine,
        sync=sync,
        pricing=PricingService(engine, sync),
        slabs=slabs,
        terms=terms,
        proposals=ProposalService(storage, terms, notifier, settings.send_delay_seconds),
        notifier=notifier,
    )


_services: Optional[Services] = None


def get_services() -> Services:
    """FastAPI dependency returning the process-wide services."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


def shutdown_services():
    """Flush pending pricing writes."""
    global _services
    if _services is not None:
        _services.sync.close()
        _services = None
