"""
Shared pytest fixtures and configuration for tinyrt tests.

Keeps every test hermetic: the process-wide custom defaults store, the
``tinyrt`` logger and ``os.environ`` are restored after each test.
"""

from __future__ import annotations

import copy
import logging
import os
from typing import Any

import pytest

from tinyrt.observability import LOGGER_NAME
from tinyrt.runtime import reset_custom_defaults

# ============================================================
# Pytest Hooks and Configuration
# ============================================================


def pytest_configure(config: Any) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests")
    config.addinivalue_line("markers", "property: marks property-based tests")


# ============================================================
# Isolation Fixtures
# ============================================================


@pytest.fixture(autouse=True)
def _reset_custom_defaults() -> Any:
    """Start and finish every test with an empty process-wide store."""
    reset_custom_defaults()
    yield
    reset_custom_defaults()


@pytest.fixture(autouse=True)
def _reset_package_logger() -> Any:
    """Undo handlers installed by configure_logging (e.g. from CLI tests)."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def isolate_environment() -> Any:
    """Snapshot os.environ before the test and restore it afterwards."""
    original_env = copy.deepcopy(dict(os.environ))

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================
# Ambient Input Fixtures
# ============================================================


@pytest.fixture
def web_server_vars() -> dict[str, str]:
    """Server variables of an ordinary HTTP GET request."""
    return {
        "GATEWAY_INTERFACE": "CGI/1.1",
        "REQUEST_METHOD": "GET",
        "SERVER_NAME": "localhost",
        "PATH_INFO": "/index",
    }


@pytest.fixture
def ambient_environ() -> dict[str, str]:
    """A small, deterministic process environment."""
    return {
        "HOME": "/home/tester",
        "LANG": "C.UTF-8",
        "_": "/usr/local/bin/python3",
    }
