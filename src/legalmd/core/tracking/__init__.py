"""Per-run field tracking."""
from __future__ import annotations

from .field_tracker import (
    LOGIC_MIXINS,
    STATUS_CSS_CLASSES,
    FieldStatus,
    FieldTracker,
    TrackedField,
)

__all__ = [
    "FieldTracker",
    "FieldStatus",
    "TrackedField",
    "STATUS_CSS_CLASSES",
    "LOGIC_MIXINS",
]
