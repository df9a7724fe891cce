# tests/integration/conftest.py
from pathlib import Path

import pytest


INTEGRATION_DIR = Path(__file__).parent


def pytest_collection_modifyitems(config, items):
    # Hook runs for the whole session; only tag items collected from here.
    for item in items:
        if INTEGRATION_DIR in Path(item.path).parents and item.get_closest_marker("integration") is None:
            item.add_marker(pytest.mark.integration)
