"""Shared fixtures for the travel pricing tests."""
import dataclasses
import os
import shutil
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from travel_pricing.config.settings import Settings
from travel_pricing.config.pricing_settings import PricingSettings, StaticSettingsProvider
from travel_pricing.engine import PricingEngine, MarkupSlab
from travel_pricing.notifications import NotificationSink
from travel_pricing.sync.storage import MemoryStorage


@pytest.fixture
def settings(tmp_path):
    """Settings pointing writable tables and storage at a temp dir."""
    base = Settings.load()
    slabs_csv = tmp_path / 'markup_slabs.csv'
    settings_json = tmp_path / 'pricing_settings.json'
    shutil.copy(base.markup_slabs, slabs_csv)
    shutil.copy(base.pricing_settings, settings_json)
    return dataclasses.replace(
        base,
        storage_dir=tmp_path / 'state',
        markup_slabs=slabs_csv,
        pricing_settings=settings_json,
        debounce_seconds=0.0,
        send_delay_seconds=0.0,
    )


@pytest.fixture
def slabs():
    return [
        MarkupSlab(id='SLAB-1', name='Entry packages', min_amount=0, max_amount=5000, markup_value=10),
        MarkupSlab(id='SLAB-2', name='Mid-range packages', min_amount=5000, max_amount=10000, markup_value=8),
        MarkupSlab(id='SLAB-3', name='Premium packages', min_amount=10000, max_amount=None, markup_value=7),
    ]


@pytest.fixture
def pricing_settings(slabs):
    return PricingSettings(default_markup_percentage=15.0, markup_slabs=slabs)


@pytest.fixture
def notifier():
    return NotificationSink()


@pytest.fixture
def engine(settings, pricing_settings, notifier):
    return PricingEngine(
        settings=settings,
        settings_provider=StaticSettingsProvider(pricing_settings),
        notifier=notifier,
    )


@pytest.fixture
def storage():
    return MemoryStorage()
