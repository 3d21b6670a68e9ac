"""FastAPI routes for snippet verification."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from ..config import VerifierSettings
from ..orchestration import VerificationReport
from .model import HealthResponse, VerifyRequest
from .service import health_service, verify_service


def get_settings(request: Request) -> VerifierSettings:
    settings = getattr(request.app.state, "settings", None)
    if not isinstance(settings, VerifierSettings):
        raise RuntimeError("Verifier settings have not been initialised")
    return settings


router = APIRouter()


@router.post("/verify", response_model=VerificationReport)
async def verify(
    payload: VerifyRequest,
    settings: VerifierSettings = Depends(get_settings),
) -> VerificationReport:
    # The orchestrator may start its own event loop, so keep it off this one.
    return await run_in_threadpool(verify_service, payload, settings)


@router.get("/health", response_model=HealthResponse)
async def health(settings: VerifierSettings = Depends(get_settings)) -> HealthResponse:
    return health_service(settings)


__all__ = ["router", "get_settings"]
