"""Centralized configuration using Pydantic BaseSettings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Upstream DNS server queried directly, bypassing local resolvers
    dns_server: str = "8.8.8.8"
    dns_port: int = 53
    dns_tcp: bool = False
    dial_timeout: float = 10.0

    # Probe loop timing (seconds)
    poll_interval: float = 1.0
    probe_timeout: float = 120.0

    # HTTP check
    http_port: Optional[int] = None

    # API
    max_concurrent_probes: int = 16

    # Redis configuration (outcome store)
    redis_ip: Optional[str] = None
    redis_port: int = 6379
    redis_db: int = 0
    outcome_ttl: int = 3600

    # Sentry configuration (optional)
    sentry_dsn: Optional[str] = None
    sentry_environment: str = "production"
    sentry_traces_sample_rate: float = 1.0

    @property
    def dns_endpoint(self) -> str:
        """Return the default DNS server as host:port."""
        if ":" in self.dns_server:
            return f"[{self.dns_server}]:{self.dns_port}"

        return f"{self.dns_server}:{self.dns_port}"

    @property
    def use_redis(self) -> bool:
        """Check if Redis is configured."""
        return self.redis_ip is not None

    @property
    def redis_url(self) -> str:
        """Return Redis connection URL."""
        return f"redis://{self.redis_ip}:{self.redis_port}/{self.redis_db}"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
