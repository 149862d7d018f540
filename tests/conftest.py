"""
Pytest configuration and shared fixtures for bangerbot tests.

Provides:
- Event and key factories (``tests.fixtures.events``)
- Fake relay clients standing in for the network (``tests.fixtures.relays``)
- A ``drain`` helper that lets scheduled pool tasks run to completion
"""

import logging

import pytest


pytest_plugins = [
    "tests.fixtures.events",
    "tests.fixtures.relays",
]


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)
