"""Entry point for running the service or a one-off wait from the shell."""

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from dns_readiness.core.config import get_settings
from dns_readiness.core.models import ProbeRequest, Ready
from dns_readiness.core.probe import get_probe
from dns_readiness.utils.exceptions import InvalidProbeRequestError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dns_readiness")
    sub = parser.add_subparsers(dest="command")

    serve = sub.add_parser("serve", help="run the HTTP API (default)")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    wait = sub.add_parser("wait", help="wait until every hostname is ready")
    wait.add_argument("hostnames", nargs="+")
    wait.add_argument("--dns-server", default=None)
    wait.add_argument("--timeout", type=float, default=None)

    return parser


async def wait_for_hosts(
    hostnames: List[str],
    dns_server: Optional[str] = None,
    timeout: Optional[float] = None,
) -> int:
    """Probe all hostnames concurrently. Returns the process exit code."""
    settings = get_settings()
    requests = [
        ProbeRequest.with_defaults(name, dns_server, timeout, settings=settings)
        for name in hostnames
    ]

    outcomes = await get_probe().await_all_ready(requests)

    for request, outcome in zip(requests, outcomes):
        if isinstance(outcome, Ready):
            print(f"{request.hostname}: ready after {outcome.attempts} attempts")
        else:
            print(
                f"{request.hostname}: not ready after {outcome.attempts} attempts: "
                f"{outcome.last_error}"
            )

    return 0 if all(o.ready for o in outcomes) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Run the application."""
    args = build_parser().parse_args(argv)

    if args.command == "wait":
        from dns_readiness.app import configure_logging  # pylint: disable=import-outside-toplevel

        configure_logging()

        try:
            return asyncio.run(wait_for_hosts(args.hostnames, args.dns_server, args.timeout))
        except InvalidProbeRequestError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2

    uvicorn.run(
        "dns_readiness.app:app",
        host=getattr(args, "host", "0.0.0.0"),
        port=getattr(args, "port", 8000),
        log_level="warning",
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
