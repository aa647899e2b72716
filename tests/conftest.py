"""
Shared fixtures: the Users/Orders schema and registries over fresh stores.
"""

import logging

import pytest

from sheetdb.registry import Registry
from sheetdb.store.memory import InMemoryTableStore

from tests.schemas import make_orders, make_users


@pytest.fixture
def store():
    """Empty in-memory store."""
    return InMemoryTableStore()


@pytest.fixture
def db(store):
    """Registry with Users cascading to Orders."""
    return Registry(store, [make_users(), make_orders()])


@pytest.fixture
def restrict_db(store):
    """Registry with Users restricting removal while Orders exist."""
    return Registry(store, [make_users(deletion="restrict"), make_orders()])


@pytest.fixture
def root_logger():
    """Root logger, restored after tests that reconfigure logging."""
    logger = logging.getLogger()
    handlers, level = logger.handlers[:], logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)
