import os
import pathlib
import sys

import pytest

p = str(pathlib.Path(__file__).resolve().parents[1])
sys.path.insert(0, p) if p not in sys.path else None

# Keep test runs from writing log files into the working tree.
os.environ.setdefault("TAXPLAN_FILE_LOGGING", "false")

from taxplan.config import get_settings  # noqa: E402
from taxplan.core.engine import clear_cache  # noqa: E402
from taxplan.core.rates import clear_rate_cache  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_caches():
    get_settings.cache_clear()
    clear_rate_cache()
    clear_cache()
    yield
    get_settings.cache_clear()
    clear_rate_cache()
    clear_cache()
