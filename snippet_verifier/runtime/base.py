"""Contract between the executor and a language runtime."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar, FrozenSet, Tuple


@dataclass(slots=True)
class ContextHandle:
    """Reference to one live evaluation context owned by a runtime."""

    context_id: str
    namespace: str
    generation: int = 0
    alive: bool = True


@dataclass(slots=True, frozen=True)
class RawOutcome:
    """What a runtime observed while evaluating one piece of source."""

    lines: Tuple[str, ...] = ()
    error: str | None = None
    timed_out: bool = False


class EvaluationRuntime(ABC):
    """A language runtime able to host many isolated evaluation contexts.

    Contexts never share bindings: every context gets its own global table
    even when all of them live in the same interpreter process.
    """

    name: ClassVar[str] = "runtime"
    languages: ClassVar[FrozenSet[str]] = frozenset()

    @abstractmethod
    def create_context(self, namespace: str) -> ContextHandle:
        """Create an empty context; raise ``InternalError`` if impossible."""

    @abstractmethod
    def evaluate(self, handle: ContextHandle, source: str, timeout_ms: int) -> RawOutcome:
        """Run ``source`` inside ``handle`` and report output, throw or timeout.

        Errors raised by the evaluated code are returned as data. Only faults
        of the runtime itself are raised (as ``InternalError``).
        """

    @abstractmethod
    def discard(self, handle: ContextHandle) -> None:
        """Release a context. Safe to call more than once."""

    def close(self) -> None:
        """Release every resource held by the runtime."""

    def supports(self, language: str) -> bool:
        return language.lower() in self.languages

    def __enter__(self) -> "EvaluationRuntime":
        return self

    def __exit__(self, exc_type, exc, traceback) -> None:
        self.close()


__all__ = ["ContextHandle", "RawOutcome", "EvaluationRuntime"]
