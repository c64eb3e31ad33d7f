"""Conftest for unit tests - every test collected under tests/unit gets the unit marker."""

import pytest


def pytest_collection_modifyitems(config, items):
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
