"""
Pytest configuration for flex-filter tests.
"""

import os
import sys

import pytest

# Add the package root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


def pytest_configure():
    """Configure Django settings before tests run."""
    from django.conf import settings

    if not settings.configured:
        settings.configure(
            SECRET_KEY="test-secret-key",
            DEBUG=True,
            INSTALLED_APPS=[],
            USE_TZ=True,
            FLEX_FILTER={
                "DEFAULT_PAGE_SIZE": 10,
                "DEFAULT_ORDER_RULE": "asc",
            },
        )

    import django

    django.setup()


@pytest.fixture(autouse=True)
def reload_filter_settings():
    """Drop cached settings so overrides in one test do not leak."""
    from flex_filter.conf import filter_settings

    filter_settings.reload()
    yield
    filter_settings.reload()
