"""Pytest configuration and fixtures for redactlog tests."""

import copy

import pytest

from redactlog import BufferingSink, LoggerManager, reset_manager

BASE_CONFIG = {
    "defaults": {"level": "info", "transport": "plain"},
    "transports": [
        {"name": "plain", "type": "stream", "format": "text"},
        {"name": "clear", "type": "stream", "format": "text", "show_sensitive": True},
        {"name": "both", "type": "group", "members": ["plain", "clear"]},
        {"name": "errors", "type": "stream", "format": "text", "level_limit": "error"},
    ],
    "modules": [
        {
            "name": "billing",
            "level": "warn",
            "methods": [
                {"name": "charge", "level": "debug", "transport": "both"},
            ],
        },
        {
            "name": "audit",
            "level": "trace",
            "transport": ["plain", "errors"],
        },
        {
            "name": "api",
            "methods": [
                {
                    "name": "GET",
                    "paths": [{"name": "/health", "level": "error"}],
                },
            ],
        },
    ],
}


def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")


@pytest.fixture(autouse=True)
def reset_default_manager():
    """Reset the module-level manager before and after each test."""
    reset_manager()
    yield
    reset_manager()


@pytest.fixture
def base_config() -> dict:
    """A fresh copy of the shared test configuration."""
    return copy.deepcopy(BASE_CONFIG)


@pytest.fixture
def sinks() -> dict[str, BufferingSink]:
    """One buffering sink per stream transport in the test configuration."""
    return {name: BufferingSink() for name in ("plain", "clear", "errors")}


@pytest.fixture
def manager(base_config, sinks) -> LoggerManager:
    """A manager using the test configuration with streams bound to buffers."""
    mgr = LoggerManager(base_config)
    for name, sink in sinks.items():
        mgr.register_stream(name, sink)
    return mgr
