"""
Slabs Service - CRUD operations for markup slabs.
Handles reading/writing markup_slabs.csv, validation and export.
"""
import csv
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import pandas as pd

from ..engine.models import MarkupSlab, ADJUSTMENT_TYPES
from ..exceptions import SlabNotFoundError

logger = logging.getLogger(__name__)

def slab_to_csv_row(slab: MarkupSlab) -> dict:
    """Convert to CSV row format."""
    return {
        'id': slab.id,
        'name': slab.name,
        'min_amount': f"{slab.min_amount:g}",
        'max_amount': '' if slab.max_amount is None else f"{slab.max_amount:g}",
        'markup_type': slab.markup_type,
        'markup_value': f"{slab.markup_value:g}",
        'is_active': 'true' if slab.is_active else 'false',
    }


def slab_from_csv_row(row: dict) -> MarkupSlab:
    """Create MarkupSlab from CSV row."""
    max_amount = (row.get('max_amount') or '').strip()
    return MarkupSlab(
        id=row.get('id', ''),
        name=row.get('name', ''),
        min_amount=float(row.get('min_amount') or 0),
        max_amount=float(max_amount) if max_amount else None,
        markup_type=row.get('markup_type') or 'percentage',
        markup_value=float(row.get('markup_value') or 0),
        is_active=(row.get('is_active') or 'true').lower() == 'true',
    )


@dataclass
class ValidationResult:
    """Result of slab validation."""
    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class SlabsService:
    """Service for managing markup slabs."""

    CSV_COLUMNS = ['id', 'name', 'min_amount', 'max_amount', 'markup_type', 'markup_value', 'is_active']

    def __init__(self, slabs_csv_path: Path):
        self.slabs_csv_path = slabs_csv_path

    def list_slabs(self, include_inactive: bool = True) -> list[MarkupSlab]:
        """List all slabs from CSV, in file order."""
        slabs = []
        if not self.slabs_csv_path.exists():
            return slabs

        with open(self.slabs_csv_path, 'r', encoding='utf-8') as f:
            reader = csv.DictReader(f)
            for line_num, row in enumerate(reader, start=2):
                if not row.get('id'):
                    continue
                try:
                    slab = slab_from_csv_row(row)
                except (AttributeError, ValueError) as e:
                    logger.warning(f"Skipping malformed slab on line {line_num} of {self.slabs_csv_path}: {e}")
                    continue
                if include_inactive or slab.is_active:
                    slabs.append(slab)

        return slabs

    def active_slabs(self) -> list[MarkupSlab]:
        return self.list_slabs(include_inactive=False)

    def get_slab(self, slab_id: str) -> Optional[MarkupSlab]:
        """Get a single slab by ID."""
        for slab in self.list_slabs():
            if slab.id == slab_id:
                return slab
        return None

    def create_slab(self, slab: MarkupSlab) -> MarkupSlab:
        """Create a new slab."""
        if not slab.id:
            slab.id = self._generate_slab_id(slab)

        if self.get_slab(slab.id):
            raise ValueError(f"Slab with ID '{slab.id}' already exists")

        slabs = self.list_slabs()
        slabs.append(slab)
        self._write_slabs(slabs)
        return slab

    def update_slab(self, slab_id: str, updates: dict) -> MarkupSlab:
        """Update an existing slab."""
        slabs = self.list_slabs()

        for i, slab in enumerate(slabs):
            if slab.id == slab_id:
                for key, value in updates.items():
                    if key != 'id' and hasattr(slab, key):
                        setattr(slab, key, value)
                self._write_slabs(slabs)
                return slabs[i]

        raise SlabNotFoundError(f"Slab with ID '{slab_id}' not found")

    def delete_slab(self, slab_id: str) -> bool:
        """Delete a slab."""
        slabs = self.list_slabs()
        remaining = [s for s in slabs if s.id != slab_id]

        if len(remaining) == len(slabs):
            raise SlabNotFoundError(f"Slab with ID '{slab_id}' not found")

        self._write_slabs(remaining)
        return True

    def validate_slab(self, slab: MarkupSlab) -> ValidationResult:
        """Validate a slab before saving."""
        result = ValidationResult(valid=True)

        if not slab.name:
            result.errors.append("Name is required")
            result.valid = False

        if slab.markup_type not in ADJUSTMENT_TYPES:
            result.errors.append(f"Markup type must be one of {', '.join(ADJUSTMENT_TYPES)}")
            result.valid = False

        if slab.min_amount < 0:
            result.errors.append("Minimum amount cannot be negative")
            result.valid = False

        if slab.max_amount is not None and slab.max_amount <= slab.min_amount:
            result.errors.append("Maximum amount must be greater than minimum amount")
            result.valid = False

        if slab.markup_value < 0:
            result.errors.append("Markup value cannot be negative")
            result.valid = False

        if slab.markup_type == 'percentage' and slab.markup_value > 100:
            result.warnings.append(f"Markup of {slab.markup_value}% is above 100%")

        if result.valid:
            result.warnings.extend(self._check_overlaps(slab))

        return result

    def _check_overlaps(self, slab: MarkupSlab) -> list[str]:
        """Warn about active slabs whose ranges overlap this one."""
        warnings = []
        if not slab.is_active:
            return warnings

        slab_max = float('inf') if slab.max_amount is None else slab.max_amount
        for existing in self.list_slabs(include_inactive=False):
            if existing.id == slab.id:
                continue
            existing_max = float('inf') if existing.max_amount is None else existing.max_amount
            if slab.min_amount < existing_max and existing.min_amount < slab_max:
                warnings.append(
                    f"Range overlaps slab '{existing.id}' "
                    f"({existing.min_amount:g}-{'' if existing.max_amount is None else f'{existing.max_amount:g}'}); "
                    "the first slab in list order wins"
                )

        return warnings

    def _generate_slab_id(self, slab: MarkupSlab) -> str:
        """Generate a unique slab ID."""
        base = re.sub(r'[^A-Z0-9]+', '-', slab.name.upper()).strip('-')[:12] or "SLAB"

        existing_ids = {s.id for s in self.list_slabs()}
        candidate = base
        counter = 1
        while candidate in existing_ids:
            candidate = f"{base}-{counter}"
            counter += 1

        return candidate

    def _write_slabs(self, slabs: list[MarkupSlab]):
        """Write slabs back to CSV."""
        with open(self.slabs_csv_path, 'w', encoding='utf-8', newline='') as f:
            writer = csv.DictWriter(f, fieldnames=self.CSV_COLUMNS)
            writer.writeheader()
            for slab in slabs:
                writer.writerow(slab_to_csv_row(slab))

    def to_dataframe(self) -> pd.DataFrame:
        slabs = self.list_slabs()
        return pd.DataFrame(
            [slab_to_csv_row(s) for s in slabs],
            columns=self.CSV_COLUMNS,
        )

    def export_slabs(self, output_path: Path) -> Path:
        """Export slabs to .xlsx or .csv, chosen by file suffix."""
        df = self.to_dataframe()
        if output_path.suffix.lower() in ('.xlsx', '.xls'):
            df.to_excel(output_path, index=False, sheet_name='Markup Slabs')
        else:
            df.to_csv(output_path, index=False)
        return output_path

    def get_stats(self) -> dict:
        """Get statistics about slabs."""
        slabs = self.list_slabs()
        active = [s for s in slabs if s.is_active]
        by_type = {}
        for s in slabs:
            by_type[s.markup_type] = by_type.get(s.markup_type, 0) + 1

        return {
            'total': len(slabs),
            'active': len(active),
            'inactive': len(slabs) - len(active),
            'open_ended': sum(1 for s in slabs if s.max_amount is None),
            'by_type': by_type,
        }
