"""Pydantic models for API request/response schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class ProbeBody(BaseModel):
    """Request body for starting a probe."""

    hostname: str = Field(min_length=1)
    dns_server: Optional[str] = None
    timeout: Optional[float] = Field(default=None, gt=0)


class ProbeResponse(BaseModel):
    """Outcome of a probe run."""

    hostname: str
    ready: bool
    attempts: int
    addresses: List[str] = Field(default_factory=list)
    error_type: Optional[str] = None
    last_error: Optional[str] = None
    elapsed: Optional[float] = None
