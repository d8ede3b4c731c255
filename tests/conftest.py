import os
import sys
from datetime import date
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'legalmd' without an editable install
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


from legalmd.core.config import clear_all_caches
from legalmd.core.helpers import create_default_registry
from legalmd.core.processing import ProcessingOptions
from legalmd.core.processing.mixins import get_parse_cache
from legalmd.core.stdlib_logging import reset_stdlib_logging_for_tests
from legalmd.core.tracking import FieldTracker

FIXED_TODAY = date(2024, 3, 15)


@pytest.fixture(autouse=True)
def _isolate_legalmd_state(monkeypatch):  # type: ignore[no-untyped-def]
    """Fresh config/parse caches and no LEGALMD_* env leaking from the developer shell."""
    for key in list(os.environ):
        if key.startswith("LEGALMD_"):
            monkeypatch.delenv(key, raising=False)
    clear_all_caches()
    get_parse_cache().clear()
    yield
    clear_all_caches()
    get_parse_cache().clear()
    reset_stdlib_logging_for_tests()


@pytest.fixture
def today() -> date:
    return FIXED_TODAY


@pytest.fixture
def helpers():
    return create_default_registry()


@pytest.fixture
def tracker() -> FieldTracker:
    return FieldTracker()


@pytest.fixture
def options(helpers, tracker, today) -> ProcessingOptions:
    """Plain-mode options with a fixed date and a visible tracker."""
    return ProcessingOptions(helpers=helpers, field_tracker=tracker, today=today)


@pytest.fixture
def tracking_options(helpers, tracker, today) -> ProcessingOptions:
    """Options for markdown-embedded field tracking (highlight spans)."""
    return ProcessingOptions(
        helpers=helpers,
        field_tracker=tracker,
        today=today,
        enable_field_tracking=True,
        enable_field_tracking_in_markdown=True,
    )
