"""Custom exceptions and error handling utilities."""

import logging
from typing import Optional

import dns.exception
import dns.resolver
import sentry_sdk

from dns_readiness.core.config import get_settings

logger = logging.getLogger(__name__)


class ReadinessError(Exception):
    """Base exception for readiness probe errors."""


class InvalidProbeRequestError(ReadinessError, ValueError):
    """Probe request fields failed validation."""


class ResolutionError(ReadinessError):
    """DNS lookup against the upstream server failed."""

    def __init__(
        self,
        message: str,
        hostname: str = "",
        dns_server: str = "",
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        self.hostname = hostname
        self.dns_server = dns_server
        self.cause = cause


class HTTPConnectionError(ReadinessError):
    """HTTP request could not be sent or no response was received."""

    def __init__(self, message: str, url: str = "", cause: Optional[BaseException] = None):
        super().__init__(message)
        self.url = url
        self.cause = cause


class UnexpectedStatusError(ReadinessError):
    """HTTP response received with a status other than 200."""

    def __init__(self, status: int, reason: str = "", url: str = ""):
        super().__init__(f"unexpected status code: {status} {reason}".rstrip())
        self.status = status
        self.reason = reason
        self.url = url


class DeadlineExceededError(ReadinessError):
    """Probe deadline passed without a successful attempt."""

    default_message = "deadline exceeded, no successful attempt"

    def __init__(
        self,
        message: Optional[str] = None,
        last_error: Optional[ReadinessError] = None,
        attempts: int = 0,
    ):
        if message is None:
            if last_error is not None:
                message = f"deadline exceeded after {attempts} attempts: {last_error}"
            else:
                message = self.default_message
        super().__init__(message)
        self.last_error = last_error
        self.attempts = attempts


class ProbeCancelledError(ReadinessError):
    """Probe stopped because its cancel signal was set."""

    def __init__(self, last_error: Optional[ReadinessError] = None):
        message = "probe cancelled"
        if last_error is not None:
            message += f" (last error: {last_error})"
        super().__init__(message)
        self.last_error = last_error


def capture_exception(
    exception: BaseException,
    context: Optional[dict] = None,
    level: str = "error",
) -> None:
    """
    Capture exception to Sentry if configured, otherwise log it.

    Args:
        exception: The exception to capture
        context: Additional context to include
        level: Log level ('error', 'warning', 'info')
    """
    settings = get_settings()

    log_func = getattr(logger, level, logger.error)
    log_func("%s: %s", type(exception).__name__, exception, exc_info=exception)

    if settings.sentry_dsn:
        if context:
            with sentry_sdk.push_scope() as scope:
                for key, value in context.items():
                    scope.set_extra(key, value)
                sentry_sdk.capture_exception(exception)
        else:
            sentry_sdk.capture_exception(exception)


def is_expected_dns_error(exception: BaseException) -> bool:
    """Check if exception is an expected DNS error (NXDOMAIN, NoAnswer, Timeout)."""
    return isinstance(
        exception,
        (
            dns.resolver.NoAnswer,
            dns.resolver.NXDOMAIN,
            dns.resolver.NoNameservers,
            dns.exception.Timeout,
        ),
    )
