"""Health check API endpoint."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from dns_readiness.api.routes import RouteDependencies, get_dependencies

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str
    redis_connected: bool
    sentry_enabled: bool
    dns_server: str


@router.get("/healthcheck", response_model=HealthResponse)
async def health_check(
    deps: RouteDependencies = Depends(get_dependencies),
) -> HealthResponse:
    """Health check endpoint (no auth required)."""
    return HealthResponse(
        status="ok",
        redis_connected=deps.store.uses_redis,
        sentry_enabled=bool(deps.settings.sentry_dsn),
        dns_server=deps.settings.dns_endpoint,
    )
