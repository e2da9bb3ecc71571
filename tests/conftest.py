"""Global pytest configuration and fixtures."""

import logging
from collections.abc import Generator

import pytest

from tests.fixtures.sample_objects import (
    bob,
    greeter,
    person,
)


@pytest.fixture(autouse=True)
def debug_logging(caplog: pytest.LogCaptureFixture) -> Generator[None, None, None]:
    """Capture the library's debug output so failures show the dispatch trail."""
    with caplog.at_level(logging.DEBUG, logger="understudy"):
        yield
