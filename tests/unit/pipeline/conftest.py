from __future__ import annotations

import pytest

from pipeline_helpers import EventRecorder


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
