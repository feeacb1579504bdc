"""Persistence and change propagation for pricing snapshots."""
from .storage import StorageBackend, MemoryStorage, FileStorage
from .debounce import Debouncer
from .pricing_sync import PricingSync

__all__ = ['StorageBackend', 'MemoryStorage', 'FileStorage', 'Debouncer', 'PricingSync']
