"""Common test fixtures."""

from __future__ import annotations

import sys
from collections.abc import Iterator

import pytest
from loguru import logger


@pytest.fixture(autouse=True)
def reset_logger() -> Iterator[None]:
    """The CLI reconfigures loguru sinks; restore a sink that follows pytest's stderr capture."""
    yield
    logger.remove()
    logger.add(lambda message: sys.stderr.write(message), level="DEBUG")
