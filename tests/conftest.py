"""pytest configuration."""

import pytest

from mock_network import MockNetwork


@pytest.fixture
def net():
    """Return a fresh two-switch mock network."""
    return MockNetwork()
