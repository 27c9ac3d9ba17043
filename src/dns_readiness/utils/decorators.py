"""Sentry wiring for the probe service."""

import asyncio
import functools
from typing import Callable, Optional, TypeVar

import sentry_sdk

from dns_readiness.core.config import Settings, get_settings

F = TypeVar("F", bound=Callable)


def _report(exc: Exception) -> None:
    if get_settings().sentry_dsn:
        sentry_sdk.capture_exception(exc)


def sentry_exception_catcher(func: F) -> F:
    """
    Report exceptions escaping func to Sentry, then re-raise.

    Works with both sync and async functions. Does nothing unless SENTRY_DSN is set.
    """

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            _report(e)
            raise

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            _report(e)
            raise

    if asyncio.iscoroutinefunction(func):
        return async_wrapper  # type: ignore
    return sync_wrapper  # type: ignore


def init_sentry(settings: Optional[Settings] = None) -> bool:
    """Initialize Sentry SDK if configured. Returns True when enabled."""
    settings = settings or get_settings()

    if not settings.sentry_dsn:
        return False

    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.sentry_environment,
        traces_sample_rate=settings.sentry_traces_sample_rate,
        send_default_pii=False,
    )
    sentry_sdk.set_tag("dns_server", settings.dns_endpoint)

    return True
