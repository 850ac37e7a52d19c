"""Liveness payload for load balancers."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """The API answers; `database` reports whether the chat store is reachable."""

    status: Literal["ok", "degraded"] = Field(description="degraded when the database is unreachable")
    environment: Literal["dev", "prod"]
    database: Literal["connected", "disconnected"]
    version: str = Field(description="Chat API release")
