"""Runtime configuration for the verifier."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("snippet_verifier")

DEFAULT_TIMEOUT_MS = 2000


@dataclass(slots=True)
class VerifierSettings:
    """Settings shared by the CLI, the API and the orchestrator."""

    runtime: str = "node"
    node_binary: str = "node"
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_concurrency: int = 1
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "VerifierSettings":
        def _int_env(name: str, default: int) -> int:
            raw = os.getenv(name)
            if not raw:
                return default
            try:
                value = int(raw)
            except ValueError:
                logger.warning("Invalid integer for %s: %s", name, raw)
                return default
            if value < 1:
                logger.warning("Expected a positive integer for %s: %s", name, raw)
                return default
            return value

        return cls(
            runtime=os.getenv("VERIFIER_RUNTIME", "node"),
            node_binary=os.getenv("NODE_BINARY", "node"),
            timeout_ms=_int_env("SNIPPET_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
            max_concurrency=_int_env("VERIFIER_MAX_CONCURRENCY", 1),
            log_level=os.getenv("VERIFIER_LOG_LEVEL", "INFO"),
        )

    def runtime_options(self) -> dict[str, str]:
        options: dict[str, str] = {}
        if self.runtime == "node" and self.node_binary:
            options["node_binary"] = self.node_binary
        return options


__all__ = ["VerifierSettings", "DEFAULT_TIMEOUT_MS"]
