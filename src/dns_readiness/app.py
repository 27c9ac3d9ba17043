"""FastAPI application entry point."""

import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from dns_readiness.api.healthcheck import router as healthcheck_router
from dns_readiness.api.routes import router
from dns_readiness.core.config import get_settings
from dns_readiness.core.store import init_store
from dns_readiness.utils.decorators import init_sentry


def configure_logging(level: int = logging.INFO) -> None:
    """Log to stdout, with the dns_readiness loggers at the given level."""
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    logging.getLogger("dns_readiness").setLevel(level)


configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    sentry_enabled = init_sentry(settings)
    init_store(settings.use_redis, settings.redis_url, settings.outcome_ttl)

    logger.info("DNS readiness service starting...")
    logger.info(f"DNS server: {settings.dns_endpoint} (tcp={settings.dns_tcp})")
    logger.info(f"Poll interval: {settings.poll_interval}s, timeout: {settings.probe_timeout}s")
    logger.info(f"Redis: {'enabled' if settings.use_redis else 'disabled'}")
    logger.info(f"Sentry: {'enabled' if sentry_enabled else 'disabled'}")

    yield

    logger.info("DNS readiness service shutting down...")


app = FastAPI(
    title="DNS Readiness",
    description="Waits for freshly created DNS names to propagate and serve HTTP",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)
app.include_router(healthcheck_router)
