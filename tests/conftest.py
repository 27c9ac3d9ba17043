"""Pytest configuration and fixtures."""

# pylint: disable=redefined-outer-name

import os

import pytest

from dns_readiness.core.config import Settings
from dns_readiness.core.probe import reset_probe
from dns_readiness.core.store import reset_store

# Set test environment variables before importing application code
os.environ.setdefault("DNS_SERVER", "192.0.2.53")
os.environ.setdefault("POLL_INTERVAL", "1.0")
os.environ.setdefault("PROBE_TIMEOUT", "120")


@pytest.fixture
def test_settings():
    """Provide test settings with predictable values."""
    return Settings(
        dns_server="192.0.2.53",
        dns_port=53,
        dial_timeout=10.0,
        poll_interval=1.0,
        probe_timeout=120.0,
        http_port=None,
        redis_ip=None,
        sentry_dsn=None,
        _env_file=None,
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Reset module-level probe and store before and after each test."""
    reset_probe()
    reset_store()
    yield
    reset_probe()
    reset_store()
