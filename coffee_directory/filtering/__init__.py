"""Static label tables for categorical filters."""

from .labels import (
    PROCESS_LABELS,
    ROAST_LEVEL_LABELS,
    SPECIES_LABELS,
    STATUS_LABELS,
    humanize,
    label_for,
)

__all__ = [
    'PROCESS_LABELS',
    'ROAST_LEVEL_LABELS',
    'SPECIES_LABELS',
    'STATUS_LABELS',
    'humanize',
    'label_for',
]
