"""Plain HTTP GET check against the probed hostname."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import aiohttp

from dns_readiness.utils.exceptions import HTTPConnectionError, UnexpectedStatusError

logger = logging.getLogger(__name__)

READY_STATUS = 200


def endpoint_url(hostname: str, port: Optional[int] = None) -> str:
    """Return the plain HTTP URL probed for hostname."""
    if port is None or port == 80:
        return f"http://{hostname}/"

    return f"http://{hostname}:{port}/"


class HTTPChecker(Protocol):
    """Protocol for the HTTP step of a probe attempt."""

    async def check(self, url: str, timeout: Optional[float] = None) -> int: ...


@dataclass
class AiohttpChecker:
    """
    GET the URL with a short-lived aiohttp session.

    The session and the response are closed on every path, so a long probe
    holds no connection between attempts.
    """

    async def check(self, url: str, timeout: Optional[float] = None) -> int:
        """
        Return 200 or raise.

        Raises HTTPConnectionError when no response was received and
        UnexpectedStatusError for any other status code.
        """
        client_timeout = aiohttp.ClientTimeout(total=timeout)

        try:
            async with aiohttp.ClientSession(timeout=client_timeout) as session:
                async with session.get(url) as resp:
                    status = resp.status
                    reason = resp.reason or ""
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            raise HTTPConnectionError(
                f"GET {url} failed: {type(e).__name__}: {e}", url=url, cause=e
            ) from e

        if status != READY_STATUS:
            raise UnexpectedStatusError(status, reason, url=url)

        logger.debug("GET %s returned %s", url, status)
        return status
