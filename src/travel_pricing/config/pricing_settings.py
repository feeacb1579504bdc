"""
Pricing defaults and the providers that supply them to the engine.

The engine never reads module-level defaults; it asks its settings provider
for a PricingSettings object on every run.
"""
import json
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Protocol

if TYPE_CHECKING:
    from ..engine.models import MarkupSlab

logger = logging.getLogger(__name__)


@dataclass
class PricingSettings:
    """Agency-wide pricing defaults."""
    default_markup_percentage: float = 15.0
    use_slab_pricing: bool = False
    enable_country_based_pricing: bool = True
    default_tax_country: str = 'IN'
    default_service_type: str = 'all'
    default_currency: str = 'USD'
    markup_slabs: list['MarkupSlab'] = field(default_factory=list)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop('markup_slabs')
        return data


def _to_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', '1', 'yes', 'on')
    return bool(value)


def _coerce(key: str, value, default):
    """Coerce a JSON value to the type of the matching default, keeping the default if it cannot be read."""
    if value is None:
        return default
    try:
        if isinstance(default, bool):
            return _to_bool(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, str):
            return str(value).strip() or default
    except (TypeError, ValueError):
        logger.warning(f"Ignoring invalid pricing setting {key}={value!r}")
        return default
    return value


class SettingsProvider(Protocol):
    """Anything that can hand the engine its current pricing settings."""

    def get_pricing_settings(self) -> PricingSettings:
        ...


class StaticSettingsProvider:
    """Provider returning a fixed settings object (tests, scripts)."""

    def __init__(self, settings: Optional[PricingSettings] = None):
        self.settings = settings or PricingSettings()

    def get_pricing_settings(self) -> PricingSettings:
        return self.settings


class FileSettingsProvider:
    """
    Provider reading pricing_settings.json on each call.

    Slabs are supplied by a loader callable (normally SlabsService.active_slabs)
    so that slab edits are visible without reloading the provider.
    """

    def __init__(
        self,
        settings_path: Path,
        slabs_loader: Optional[Callable[[], list['MarkupSlab']]] = None,
    ):
        self.settings_path = settings_path
        self.slabs_loader = slabs_loader

    def get_pricing_settings(self) -> PricingSettings:
        settings = PricingSettings()

        if self.settings_path.exists():
            try:
                with open(self.settings_path, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                for key, value in data.items():
                    if key != 'markup_slabs' and hasattr(settings, key):
                        setattr(settings, key, _coerce(key, value, getattr(settings, key)))
            except (OSError, ValueError) as e:
                logger.warning(f"Could not read pricing settings from {self.settings_path}: {e}")

        if self.slabs_loader is not None:
            settings.markup_slabs = self.slabs_loader()

        return settings

    def save(self, settings: PricingSettings):
        """Persist the scalar settings (slabs are owned by SlabsService)."""
        with open(self.settings_path, 'w', encoding='utf-8') as f:
            json.dump(settings.to_dict(), f, indent=2)
