"""Conftest for all pytest configuration - fixtures, hooks, and doctest setup."""

import doctest

import pytest

from mrdi.references import ReferenceStore
from mrdi.references import get_global_reference_store
from mrdi.references import set_global_reference_store
from mrdi.settings import get_global_settings
from mrdi.settings import set_global_settings

# Doctest Configuration


def pytest_configure(config):
    """Configure pytest with custom doctest options."""
    doctest.ELLIPSIS_MARKER = "..."


def pytest_collection_modifyitems(items):
    """Automatically mark doctest items with the 'doctest' marker."""
    for item in items:
        if isinstance(item, pytest.DoctestItem):
            item.add_marker(pytest.mark.doctest)


# Fixtures


@pytest.fixture(autouse=True)
def isolated_global_store():
    """Give every test its own process-wide reference store."""
    previous = get_global_reference_store()
    store = ReferenceStore()
    set_global_reference_store(store)
    yield store
    set_global_reference_store(previous)


@pytest.fixture(autouse=True)
def restore_global_settings():
    """Undo any change a test makes to the global settings."""
    previous = get_global_settings()
    yield
    set_global_settings(previous)


@pytest.fixture
def reference_store():
    """A fresh session reference store, as a separate process would start with."""
    return ReferenceStore()
