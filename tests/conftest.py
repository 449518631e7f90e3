"""Shared pytest fixtures."""

import pytest

from catalog_export.core.logging import setup_logging

from tests.fakes import JobHarness


@pytest.fixture(scope="session", autouse=True)
def _configure_logging():
    setup_logging("WARNING")


@pytest.fixture
def harness_factory():
    """Build a JobHarness from records and policies."""
    return JobHarness
