"""
Shared fixtures for prevhs tests
"""

import pytest
from loguru import logger

from prevhs.lib.engine import engine_create


@pytest.fixture
def engine():
    """Fresh engine with default options and no packs"""
    return engine_create()


@pytest.fixture
def warnings_captured():
    """Collect messages logged at WARNING level or above"""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="WARNING")
    yield messages
    logger.remove(handler_id)
