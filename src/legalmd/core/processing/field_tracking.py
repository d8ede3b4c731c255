"""Final field-tracking pass: ``legal-field`` highlight spans."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .base import BaseProcessor, ProcessingOptions
from .markers import finish_step, render_field_markers

logger = logging.getLogger(__name__)


class FieldTrackingProcessor(BaseProcessor):
    """Apply the run's tracked fields to the finished content.

    Field markers left by the mixins step become spans first, then any
    remaining ``{{field}}`` and logic values are highlighted. Only runs when
    field tracking is on and processors did not already emit their own spans
    (``enable_field_tracking_in_markdown``).
    """

    name = "field-tracking"
    description = "Highlight tracked fields"

    def is_enabled(self, options: ProcessingOptions) -> bool:
        return options.enable_field_tracking and not options.enable_field_tracking_in_markdown

    def process(
        self,
        content: str,
        metadata: Dict[str, Any],
        options: Optional[ProcessingOptions] = None,
    ) -> str:
        options = options or ProcessingOptions()
        tracker = options.get_tracker()
        logger.debug("Applying field tracking for %d field(s)", len(tracker))
        content = tracker.apply_field_tracking(render_field_markers(content))
        return finish_step(content, options)


__all__ = ["FieldTrackingProcessor"]
