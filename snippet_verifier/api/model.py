"""Pydantic models for the public API surface."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from ..snippet import RawSnippet


class VerifyRequest(BaseModel):
    snippets: List[RawSnippet] = Field(..., description="Snippets in document order")
    runtime: str | None = Field(None, description="Runtime name (defaults to the server setting)")
    timeout_ms: int | None = Field(
        None,
        description="Per-snippet time ceiling in milliseconds",
        ge=1,
    )
    max_concurrency: int | None = Field(
        None,
        description="Number of isolation groups verified in parallel",
        ge=1,
        le=32,
    )


class HealthResponse(BaseModel):
    status: str
    runtime: str
    timeout_ms: int


__all__ = ["VerifyRequest", "HealthResponse"]
