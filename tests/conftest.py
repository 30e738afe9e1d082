"""Shared pytest fixtures."""

import logging

import pytest


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Undo configure_logging() calls made by CLI and logging tests.

    The handlers it installs point at the stream captured for one test, which
    is closed once that test ends.
    """
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
