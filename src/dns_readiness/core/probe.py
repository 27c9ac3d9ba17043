"""Bounded polling loop that waits for a new DNS name to become live."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional

from dns_readiness.core.config import Settings, get_settings
from dns_readiness.core.http import AiohttpChecker, HTTPChecker, endpoint_url
from dns_readiness.core.models import Failed, ProbeOutcome, ProbeRequest, Ready
from dns_readiness.dns.resolver import DNSResolver, UpstreamResolver
from dns_readiness.utils.exceptions import (
    DeadlineExceededError,
    ProbeCancelledError,
    ReadinessError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Deadline:
    """Absolute point in time, on the given clock, at which a probe gives up."""

    expires_at: float
    clock: Callable[[], float] = time.monotonic

    @classmethod
    def after(cls, timeout: float, clock: Callable[[], float] = time.monotonic) -> "Deadline":
        return cls(expires_at=clock() + timeout, clock=clock)

    def expired(self) -> bool:
        return self.clock() >= self.expires_at

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self.clock())


@dataclass
class ReadinessProbe:
    """
    Poll a hostname until it resolves and serves HTTP 200, or the deadline passes.

    Every attempt sleeps poll_interval first, asks the resolver for fresh
    addresses, and only on success issues the HTTP GET. Failures of either
    step are recorded and retried; the probe holds no state between calls.
    """

    settings: Settings = field(default_factory=get_settings)
    resolver: Optional[DNSResolver] = None
    http_checker: HTTPChecker = field(default_factory=AiohttpChecker)
    clock: Callable[[], float] = time.monotonic
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    def __post_init__(self):
        if self.resolver is None:
            self.resolver = UpstreamResolver(
                dial_timeout=self.settings.dial_timeout,
                default_port=self.settings.dns_port,
                tcp=self.settings.dns_tcp,
            )

    async def await_ready(
        self,
        request: ProbeRequest,
        cancel: Optional[asyncio.Event] = None,
    ) -> ProbeOutcome:
        """
        Run the probe loop for one request.

        Returns Ready on the first attempt where both resolution and the HTTP
        check succeed. Otherwise returns Failed with the most recent error once
        the deadline passes, or as soon as cancel is observed set.
        """
        poll_interval = self.settings.poll_interval
        deadline = Deadline.after(request.timeout, self.clock)
        url = endpoint_url(request.hostname, self.settings.http_port)

        attempts = 0
        last_error: Optional[ReadinessError] = None

        logger.info(
            "Waiting up to %ss for %s (dns server %s)",
            request.timeout,
            request.hostname,
            request.dns_server,
        )

        while not deadline.expired():
            if cancel is not None and cancel.is_set():
                logger.warning(
                    "Probe for %s cancelled after %d attempts", request.hostname, attempts
                )
                return Failed(last_error=ProbeCancelledError(last_error), attempts=attempts)

            await self.sleep(poll_interval)
            attempts += 1

            try:
                addresses = await self.resolver.resolve(
                    request.hostname, request.dns_server, self.settings.dial_timeout
                )
            except ReadinessError as e:
                last_error = e
                logger.info("Attempt %d for %s: %s", attempts, request.hostname, e)
                continue

            try:
                await self.http_checker.check(url, max(deadline.remaining(), poll_interval))
            except ReadinessError as e:
                last_error = e
                logger.info("Attempt %d for %s: %s", attempts, request.hostname, e)
                continue

            logger.info("%s is ready after %d attempts", request.hostname, attempts)
            return Ready(attempts=attempts, addresses=frozenset(addresses))

        if last_error is None:
            last_error = DeadlineExceededError()

        logger.warning(
            "%s not ready after %d attempts: %s", request.hostname, attempts, last_error
        )
        return Failed(last_error=last_error, attempts=attempts)

    async def await_all_ready(
        self,
        requests: Iterable[ProbeRequest],
        cancel: Optional[asyncio.Event] = None,
    ) -> List[ProbeOutcome]:
        """Probe several requests concurrently; outcomes keep request order."""
        return list(
            await asyncio.gather(*(self.await_ready(req, cancel) for req in requests))
        )


# Default probe instance
_probe: Optional[ReadinessProbe] = None


def get_probe() -> ReadinessProbe:
    """Get or create the default readiness probe."""
    global _probe

    if _probe is None:
        _probe = ReadinessProbe()

    return _probe


def set_probe(probe: ReadinessProbe) -> None:
    """Set a custom probe (useful for testing)."""
    global _probe

    _probe = probe


def reset_probe() -> None:
    """Reset the probe (useful for testing)."""
    global _probe

    _probe = None


async def await_ready(
    request: ProbeRequest, cancel: Optional[asyncio.Event] = None
) -> ProbeOutcome:
    """Run the default probe for one request."""
    return await get_probe().await_ready(request, cancel)
