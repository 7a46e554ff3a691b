"""Pydantic schema for the health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Body of GET /health."""

    status: Literal["ok"] = Field(default="ok", description="Service status")
    service: str = Field(default="turnstile", description="Service name")
    environment: str = Field(description="APP_ENV (dev or prod)")
    database: Literal["connected", "disconnected"] = Field(
        description="Whether the identity store answered SELECT 1"
    )
