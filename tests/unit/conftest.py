"""Fixtures for engine-level unit tests (in-memory stores, fixed clock)."""

import pytest
from fakes import World


@pytest.fixture
def world() -> World:
    return World()
