"""Pytest configuration for sclerotium tests"""

import pytest

from sclerotium.config import reset_config
from sclerotium.registry import get_registry


@pytest.fixture(autouse=True)
def reset_global_state():
    """Clear the declaration registry and configuration after each test.

    Record types defined at module level keep their saving hooks; the hooks
    read the registry and configuration at call time, so they pick up the
    fresh state.
    """
    yield
    get_registry().clear()
    reset_config()
