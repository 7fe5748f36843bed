"""Global pytest configuration and fixtures.

This module provides shared fixtures and configuration for all tests.
"""

import logging
from typing import List

import pytest

from dupguard.logging_config import ROOT_LOGGER_NAME, clear_context


# Environment variables that change configuration; cleared for every test
CONFIG_ENV_VARS = (
    "DUPGUARD_MIN_LINES",
    "DUPGUARD_MIN_SIMILARITY",
    "DUPGUARD_EXCLUDED_PATHS",
    "DUPGUARD_EXTENSIONS",
    "DUPGUARD_PROJECT_ROOT",
    "DUPGUARD_LOG_LEVEL",
    "DUPGUARD_LOG_FORMAT",
    "DUPGUARD_LOG_FILE",
    "MIN_DUPLICATION_LINES",
    "MIN_SIMILARITY",
    "EXCLUDED_PATHS",
    "PROJECT_ROOT",
)


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "unit: Unit tests (fast, no external dependencies)"
    )
    config.addinivalue_line(
        "markers", "slow: Slow tests"
    )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Remove configuration env vars so tests never see the developer's settings."""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo configure_logging() so caplog sees dupguard records in every test."""
    yield
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    root.setLevel(logging.NOTSET)
    root.propagate = True
    clear_context()


def code_lines(count: int, name: str = "value", offset: int = 0) -> List[str]:
    """Distinct, substantive lines of code.

    Each line carries its own numeric literal, so two windows over the same
    lines only normalize identically when they start at the same line.
    """
    return [
        f"const {name}{i} = {name}{i + 1} * {i + offset};"
        for i in range(count)
    ]


@pytest.fixture
def make_lines():
    """Factory for distinct code lines: ``make_lines(count, name="value", offset=0)``."""
    return code_lines


@pytest.fixture
def block_text():
    """Ten distinct substantive lines joined into one buffer."""
    return "\n".join(code_lines(10))
