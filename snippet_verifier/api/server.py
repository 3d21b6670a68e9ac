"""FastAPI application factory for the verifier service."""

from __future__ import annotations

from fastapi import FastAPI

from ..config import VerifierSettings
from .route import router


def create_app(settings: VerifierSettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Snippet Verifier API",
        version="0.1.0",
    )
    app.state.settings = settings or VerifierSettings.from_env()
    app.include_router(router)

    return app


app = create_app()


__all__ = ["app", "create_app"]
