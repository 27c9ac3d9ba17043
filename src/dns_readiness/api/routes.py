"""API routes for running readiness probes."""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from fastapi import APIRouter, Depends, HTTPException

from dns_readiness.api.models import ProbeBody, ProbeResponse
from dns_readiness.core.config import Settings, get_settings
from dns_readiness.core.models import ProbeRequest, normalize_hostname, outcome_to_dict
from dns_readiness.core.probe import ReadinessProbe, get_probe
from dns_readiness.core.store import OutcomeStore, get_store
from dns_readiness.utils.decorators import sentry_exception_catcher
from dns_readiness.utils.exceptions import InvalidProbeRequestError, capture_exception

router = APIRouter(tags=["probe"])


@dataclass
class RouteDependencies:
    """Dependencies for route handlers."""

    settings: Settings = field(default_factory=get_settings)
    probe: ReadinessProbe = field(default_factory=get_probe)
    store: OutcomeStore = field(default_factory=get_store)
    clock: Callable[[], float] = time.monotonic
    _semaphore: Optional[asyncio.Semaphore] = None

    @property
    def semaphore(self) -> asyncio.Semaphore:
        """Bound on probes running at once through the API."""
        if self._semaphore is None:
            self._semaphore = asyncio.Semaphore(self.settings.max_concurrent_probes)
        return self._semaphore


# Global dependencies instance (can be overridden for testing)
_dependencies: Optional[RouteDependencies] = None


def get_dependencies() -> RouteDependencies:
    """Get the current route dependencies."""
    global _dependencies  # pylint: disable=global-statement
    if _dependencies is None:
        _dependencies = RouteDependencies()
    return _dependencies


def set_dependencies(deps: RouteDependencies) -> None:
    """Set custom dependencies (useful for testing)."""
    global _dependencies  # pylint: disable=global-statement
    _dependencies = deps


def reset_dependencies() -> None:
    """Reset dependencies to default (useful for testing)."""
    global _dependencies  # pylint: disable=global-statement
    _dependencies = None


def _hostname_or_422(hostname: str) -> str:
    try:
        return normalize_hostname(hostname)
    except InvalidProbeRequestError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.post("/probe", response_model=ProbeResponse)
@sentry_exception_catcher
async def run_probe(
    body: ProbeBody,
    deps: RouteDependencies = Depends(get_dependencies),
):
    """Wait for a hostname to resolve and serve HTTP 200, bounded by its timeout."""
    try:
        request = ProbeRequest.with_defaults(
            body.hostname,
            dns_server=body.dns_server,
            timeout=body.timeout,
            settings=deps.settings,
        )
    except InvalidProbeRequestError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    started = deps.clock()

    async with deps.semaphore:
        outcome = await deps.probe.await_ready(request)

    elapsed = deps.clock() - started

    try:
        return await deps.store.record(request.hostname, outcome, elapsed)
    except Exception as e:  # pylint: disable=broad-exception-caught
        # Storing is non-critical, the caller still gets the outcome
        capture_exception(e, {"hostname": request.hostname}, level="warning")

    doc = outcome_to_dict(request.hostname, outcome)
    doc["elapsed"] = round(elapsed, 3)
    return doc


@router.get("/probe/{hostname}", response_model=ProbeResponse)
async def latest_outcome(
    hostname: str,
    deps: RouteDependencies = Depends(get_dependencies),
):
    """Return the last recorded outcome for a hostname."""
    name = _hostname_or_422(hostname)

    doc = await deps.store.latest(name)

    if doc is None:
        raise HTTPException(status_code=404, detail=f"no outcome recorded for {name}")

    return doc


@router.delete("/probe/{hostname}")
async def forget_outcome(
    hostname: str,
    deps: RouteDependencies = Depends(get_dependencies),
):
    """Drop the recorded outcome for a hostname."""
    name = _hostname_or_422(hostname)

    return {"hostname": name, "deleted": await deps.store.forget(name)}
