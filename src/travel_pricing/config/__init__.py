"""Configuration subpackage - paths, pricing defaults and logging."""
from .settings import Settings, get_settings
from .pricing_settings import (
    PricingSettings,
    SettingsProvider,
    StaticSettingsProvider,
    FileSettingsProvider,
)

__all__ = [
    'Settings',
    'get_settings',
    'PricingSettings',
    'SettingsProvider',
    'StaticSettingsProvider',
    'FileSettingsProvider',
]
