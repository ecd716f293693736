"""Fixtures and configuration for pytest."""

import pytest
from loguru import logger


@pytest.fixture
def warnings():
    """Collect the messages of every warning logged during the test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]),
        level="WARNING",
        format="{message}",
    )
    yield messages
    logger.remove(handler_id)
