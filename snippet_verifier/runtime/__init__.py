"""Language runtimes able to host isolated evaluation contexts."""

from __future__ import annotations

from typing import Any, Callable, Dict, Type

from .base import ContextHandle, EvaluationRuntime, RawOutcome
from .node import NodeRuntime
from .python import PythonRuntime

RUNTIMES: Dict[str, Type[EvaluationRuntime]] = {
    NodeRuntime.name: NodeRuntime,
    PythonRuntime.name: PythonRuntime,
}


def _resolve(name: str) -> Type[EvaluationRuntime]:
    try:
        return RUNTIMES[name]
    except KeyError:
        known = ", ".join(sorted(RUNTIMES))
        raise ValueError(f"Unknown runtime {name!r} (expected one of: {known})") from None


def create_runtime(name: str, **options: Any) -> EvaluationRuntime:
    """Instantiate a registered runtime by name."""
    return _resolve(name)(**options)


def runtime_factory(name: str, **options: Any) -> Callable[[], EvaluationRuntime]:
    """Return a zero-argument callable producing fresh runtimes of one kind."""
    runtime_cls = _resolve(name)

    def _factory() -> EvaluationRuntime:
        return runtime_cls(**options)

    return _factory


__all__ = [
    "ContextHandle",
    "EvaluationRuntime",
    "RawOutcome",
    "NodeRuntime",
    "PythonRuntime",
    "RUNTIMES",
    "create_runtime",
    "runtime_factory",
]
