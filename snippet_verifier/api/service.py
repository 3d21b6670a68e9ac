"""Service-layer helpers for verification requests."""

from __future__ import annotations

import logging

from fastapi import HTTPException

from ..config import VerifierSettings
from ..orchestration import VerificationOrchestrator, VerificationReport
from ..runtime import RUNTIMES, runtime_factory
from ..snippet import build_records
from .model import HealthResponse, VerifyRequest

logger = logging.getLogger("snippet_verifier")


def verify_service(payload: VerifyRequest, settings: VerifierSettings) -> VerificationReport:
    runtime_name = payload.runtime or settings.runtime
    if runtime_name not in RUNTIMES:
        raise HTTPException(status_code=400, detail=f"Unknown runtime: {runtime_name}")

    options = settings.runtime_options() if runtime_name == settings.runtime else {}
    try:
        records = build_records(payload.snippets)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    orchestrator = VerificationOrchestrator(
        runtime_factory(runtime_name, **options),
        timeout_ms=payload.timeout_ms or settings.timeout_ms,
        max_concurrency=payload.max_concurrency or settings.max_concurrency,
    )
    report = orchestrator.run(records)
    if report.aborted:
        logger.error(
            "Verification request aborted: %s", orchestrator.error_handler.get_error_summary()
        )
    return report


def health_service(settings: VerifierSettings) -> HealthResponse:
    return HealthResponse(status="ok", runtime=settings.runtime, timeout_ms=settings.timeout_ms)


__all__ = ["verify_service", "health_service"]
