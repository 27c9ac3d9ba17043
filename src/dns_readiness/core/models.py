"""Probe request and outcome value types."""

import math
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import FrozenSet, Optional, Union

import dns.exception
import dns.name

from dns_readiness.core.config import Settings, get_settings
from dns_readiness.dns.resolver import parse_dns_server
from dns_readiness.utils.exceptions import (
    DeadlineExceededError,
    InvalidProbeRequestError,
    ProbeCancelledError,
    ReadinessError,
)

_LABEL_RE = re.compile(r"^[A-Za-z0-9_](?:[A-Za-z0-9_-]*[A-Za-z0-9_])?$")


def normalize_hostname(hostname: str) -> str:
    """
    Validate a domain name and return it lower-cased without a trailing dot.

    Raises InvalidProbeRequestError for empty or malformed names.
    """
    name = (hostname or "").strip().rstrip(".").lower()

    if not name:
        raise InvalidProbeRequestError("hostname must not be empty")

    try:
        # internationalized names come back IDNA-encoded
        name = dns.name.from_text(name).to_text(omit_final_dot=True).lower()
    except dns.exception.DNSException as e:
        raise InvalidProbeRequestError(f"invalid hostname {hostname!r}: {e}") from e

    for label in name.split("."):
        if not _LABEL_RE.match(label):
            raise InvalidProbeRequestError(
                f"invalid hostname {hostname!r}: bad label {label!r}"
            )

    return name


@dataclass(frozen=True)
class ProbeRequest:
    """A hostname to verify, the DNS server to ask, and the time allowed."""

    hostname: str
    dns_server: str
    timeout: float

    def __post_init__(self):
        object.__setattr__(self, "hostname", normalize_hostname(self.hostname))

        try:
            parse_dns_server(self.dns_server)
        except ValueError as e:
            raise InvalidProbeRequestError(str(e)) from e

        timeout: Union[float, timedelta] = self.timeout
        if isinstance(timeout, timedelta):
            timeout = timeout.total_seconds()

        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise InvalidProbeRequestError(f"timeout must be a number, got {self.timeout!r}")

        if not math.isfinite(timeout) or timeout <= 0:
            raise InvalidProbeRequestError(f"timeout must be positive, got {self.timeout!r}")

        object.__setattr__(self, "timeout", float(timeout))

    @classmethod
    def with_defaults(
        cls,
        hostname: str,
        dns_server: Optional[str] = None,
        timeout: Optional[Union[float, timedelta]] = None,
        settings: Optional[Settings] = None,
    ) -> "ProbeRequest":
        """Build a request, filling unset fields from settings."""
        settings = settings or get_settings()

        return cls(
            hostname=hostname,
            dns_server=dns_server or settings.dns_endpoint,
            timeout=settings.probe_timeout if timeout is None else timeout,
        )

    @property
    def url(self) -> str:
        return f"http://{self.hostname}"


@dataclass(frozen=True)
class Ready:
    """The hostname resolved and served HTTP 200 in the same attempt."""

    attempts: int = 1
    addresses: FrozenSet[str] = field(default_factory=frozenset)

    ready = True

    def raise_for_outcome(self) -> None:
        return None


@dataclass(frozen=True)
class Failed:
    """The deadline passed (or the probe was cancelled) without a Ready attempt."""

    last_error: ReadinessError
    attempts: int = 0

    ready = False

    def raise_for_outcome(self) -> None:
        """Raise the terminal error: cancellation or deadline, with the last recorded error."""
        if isinstance(self.last_error, (DeadlineExceededError, ProbeCancelledError)):
            raise self.last_error

        raise DeadlineExceededError(
            last_error=self.last_error, attempts=self.attempts
        ) from self.last_error


ProbeOutcome = Union[Ready, Failed]


def outcome_to_dict(hostname: str, outcome: ProbeOutcome) -> dict:
    """Render an outcome as a JSON-serializable dict."""
    if isinstance(outcome, Ready):
        return {
            "hostname": hostname,
            "ready": True,
            "attempts": outcome.attempts,
            "addresses": sorted(outcome.addresses),
            "error_type": None,
            "last_error": None,
        }

    return {
        "hostname": hostname,
        "ready": False,
        "attempts": outcome.attempts,
        "addresses": [],
        "error_type": type(outcome.last_error).__name__,
        "last_error": str(outcome.last_error),
    }
