"""DNS resolution against an explicitly chosen upstream server."""

import asyncio
import ipaddress
import logging
from dataclasses import dataclass
from typing import FrozenSet, Optional, Protocol, Tuple

import dns.asyncresolver
import dns.resolver

from dns_readiness.utils.exceptions import (
    ResolutionError,
    capture_exception,
    is_expected_dns_error,
)

logger = logging.getLogger(__name__)

DEFAULT_DNS_PORT = 53
DEFAULT_DIAL_TIMEOUT = 10.0

ADDRESS_RECORD_TYPES = ("A", "AAAA")


def parse_dns_server(value: str, default_port: int = DEFAULT_DNS_PORT) -> Tuple[str, int]:
    """
    Split a DNS server string into (ip, port).

    Accepts "8.8.8.8", "8.8.8.8:5353", "2001:4860::8888" and "[2001:4860::8888]:53".
    Raises ValueError for anything that is not an IP address with an optional port.
    """
    value = value.strip()

    if not value:
        raise ValueError("DNS server must not be empty")

    host, port = value, default_port

    if value.startswith("["):
        host, sep, rest = value[1:].partition("]")
        if not sep:
            raise ValueError(f"unterminated IPv6 literal in DNS server {value!r}")
        if rest:
            if not rest.startswith(":"):
                raise ValueError(f"invalid DNS server {value!r}")
            port = _parse_port(rest[1:], value)
    elif value.count(":") == 1:
        host, port_text = value.split(":", 1)
        port = _parse_port(port_text, value)

    try:
        ip = ipaddress.ip_address(host)
    except ValueError as e:
        raise ValueError(f"DNS server must be an IP address, got {value!r}") from e

    return str(ip), port


def _parse_port(text: str, original: str) -> int:
    if not text.isdigit() or not 0 < int(text) < 65536:
        raise ValueError(f"invalid port in DNS server {original!r}")

    return int(text)


class DNSResolver(Protocol):
    """Protocol for host address lookups against a named DNS server."""

    async def resolve(
        self, hostname: str, dns_server: str, dial_timeout: Optional[float] = None
    ) -> FrozenSet[str]: ...


@dataclass
class UpstreamResolver:
    """
    Resolve A/AAAA records by querying one DNS server directly.

    A new dnspython resolver is built for every lookup: no system configuration,
    no cache, no search list. This keeps negative answers cached by a local
    resolver from hiding a record that already exists upstream.
    """

    dial_timeout: float = DEFAULT_DIAL_TIMEOUT
    default_port: int = DEFAULT_DNS_PORT
    tcp: bool = False

    def build_resolver(
        self, dns_server: str, dial_timeout: Optional[float] = None
    ) -> dns.asyncresolver.Resolver:
        ip, port = parse_dns_server(dns_server, self.default_port)
        timeout = self.dial_timeout if dial_timeout is None else dial_timeout

        resolver = dns.asyncresolver.Resolver(configure=False)
        # port must be set before nameservers, it is applied on assignment
        resolver.port = port
        resolver.nameservers = [ip]
        resolver.timeout = timeout
        resolver.lifetime = timeout
        resolver.cache = None

        return resolver

    async def resolve(
        self, hostname: str, dns_server: str, dial_timeout: Optional[float] = None
    ) -> FrozenSet[str]:
        """
        Look up all addresses for hostname on dns_server.

        Returns a non-empty set of address strings, or raises ResolutionError
        wrapping the DNS or transport failure.
        """
        try:
            resolver = self.build_resolver(dns_server, dial_timeout)
        except ValueError as e:
            raise ResolutionError(
                f"lookup host {hostname} failed: {e}",
                hostname=hostname,
                dns_server=dns_server,
                cause=e,
            ) from e

        results = await asyncio.gather(
            *(
                resolver.resolve(hostname, rdtype, tcp=self.tcp, search=False)
                for rdtype in ADDRESS_RECORD_TYPES
            ),
            return_exceptions=True,
        )

        addresses: set[str] = set()
        errors: list[Exception] = []

        for res in results:
            if isinstance(res, BaseException):
                if not isinstance(res, Exception):
                    raise res
                errors.append(res)
                continue
            addresses.update(rdata.address for rdata in res)

        if addresses:
            logger.debug("%s resolved via %s: %s", hostname, dns_server, sorted(addresses))
            return frozenset(addresses)

        cause = _primary_error(errors)

        if cause is None:
            cause = dns.resolver.NoAnswer()

        if not is_expected_dns_error(cause):
            capture_exception(
                cause,
                {"hostname": hostname, "dns_server": dns_server},
                level="warning",
            )

        raise ResolutionError(
            f"lookup host {hostname} failed: {cause}",
            hostname=hostname,
            dns_server=dns_server,
            cause=cause,
        ) from cause


def _primary_error(errors: list[Exception]) -> Optional[Exception]:
    """Pick the most informative error; NoAnswer only if nothing else failed."""
    for err in errors:
        if not isinstance(err, dns.resolver.NoAnswer):
            return err

    return errors[0] if errors else None

