"""
Centralized settings and path configuration for the travel pricing engine.
"""
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional


def get_project_root() -> Path:
    """Get the project root directory (where pyproject.toml lives)."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / 'pyproject.toml').exists():
            return parent
    # Fallback to 3 levels up from this file
    return Path(__file__).resolve().parent.parent.parent.parent


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Project paths
    project_root: Path
    data_dir: Path

    # Persisted enquiry state (one JSON file per storage slot)
    storage_dir: Path

    # Reference tables
    country_markup_rules: Path
    tax_rates: Path
    currencies: Path
    markup_slabs: Path
    pricing_settings: Path

    # Quiet period before a pricing snapshot is written
    debounce_seconds: float = 0.5

    # Pause standing in for the outbound email/WhatsApp call
    send_delay_seconds: float = 2.0

    log_level: str = 'INFO'

    @classmethod
    def load(cls, project_root: Optional[Path] = None) -> 'Settings':
        """Load settings from the project structure and environment."""
        root = project_root or get_project_root()
        data_dir = Path(os.environ.get(
            'TRAVEL_PRICING_DATA_DIR',
            Path(__file__).resolve().parent.parent / 'data',
        ))
        storage_dir = Path(os.environ.get(
            'TRAVEL_PRICING_STORAGE_DIR',
            root / '.pricing_state',
        ))

        return cls(
            project_root=root,
            data_dir=data_dir,
            storage_dir=storage_dir,
            country_markup_rules=data_dir / 'country_markup_rules.csv',
            tax_rates=data_dir / 'tax_rates.csv',
            currencies=data_dir / 'currencies.csv',
            markup_slabs=data_dir / 'markup_slabs.csv',
            pricing_settings=data_dir / 'pricing_settings.json',
            debounce_seconds=_env_float('TRAVEL_PRICING_DEBOUNCE_SECONDS', 0.5),
            send_delay_seconds=_env_float('TRAVEL_PRICING_SEND_DELAY_SECONDS', 2.0),
            log_level=os.environ.get('TRAVEL_PRICING_LOG_LEVEL', 'INFO').upper(),
        )


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
