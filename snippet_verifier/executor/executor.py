from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Tuple

from ..config import DEFAULT_TIMEOUT_MS
from ..errors import InternalError
from ..runtime.base import ContextHandle, EvaluationRuntime
from ..snippet import SnippetRecord

logger = logging.getLogger("snippet_verifier")


@dataclass(slots=True, frozen=True)
class ExecutionResult:
    """Everything observed while running one snippet."""

    snippet_id: int
    captured_lines: Tuple[str, ...] = ()
    thrown: str | None = None
    timed_out: bool = False
    duration_ticks: int = 0


class IsolationExecutor:
    """Run snippets against runtime contexts, turning their behaviour into data.

    Whatever a snippet does (print, throw, loop forever) comes back as an
    ``ExecutionResult``. Only failures of the runtime itself escape, as
    ``InternalError``.
    """

    def __init__(self, runtime: EvaluationRuntime, *, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self.runtime = runtime
        self.timeout_ms = timeout_ms

    def new_context(self, group: str) -> ContextHandle:
        """Create a fresh, empty context for an isolation group."""
        try:
            return self.runtime.create_context(group)
        except InternalError:
            raise
        except Exception as exc:
            raise InternalError(f"Unable to create an evaluation context for {group}: {exc}") from exc

    def execute(self, snippet: SnippetRecord, handle: ContextHandle) -> ExecutionResult:
        if not handle.alive:
            raise InternalError(
                f"Snippet {snippet.id} was given discarded context {handle.context_id}"
            )

        started = time.perf_counter_ns()
        try:
            outcome = self.runtime.evaluate(handle, snippet.source_text, self.timeout_ms)
        except InternalError:
            raise
        except Exception as exc:
            raise InternalError(f"Runtime failed while evaluating snippet {snippet.id}: {exc}") from exc
        elapsed = time.perf_counter_ns() - started

        if outcome.timed_out:
            logger.info(
                "Snippet %d exceeded %d ms; discarding context %s",
                snippet.id,
                self.timeout_ms,
                handle.context_id,
            )
            self.runtime.discard(handle)
            handle.alive = False

        return ExecutionResult(
            snippet_id=snippet.id,
            captured_lines=tuple(outcome.lines),
            thrown=None if outcome.timed_out else outcome.error,
            timed_out=outcome.timed_out,
            duration_ticks=elapsed,
        )

    def release(self, handle: ContextHandle | None) -> None:
        """Discard a context at the end of its group."""
        if handle is None or not handle.alive:
            return
        self.runtime.discard(handle)


__all__ = ["ExecutionResult", "IsolationExecutor"]
