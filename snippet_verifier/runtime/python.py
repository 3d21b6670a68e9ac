"""In-process runtime for Python snippets.

Each context is a plain namespace dict with a private copy of the builtins,
snapshotted at import. Evaluation happens on a daemon thread
with a trace hook that aborts the snippet once its deadline has passed; a
thread that still does not return in time is abandoned together with its
namespace.
"""

from __future__ import annotations

import builtins
import itertools
import logging
import sys
import threading
import time
from typing import Any, Dict, List

from ..errors import InternalError
from .base import ContextHandle, EvaluationRuntime, RawOutcome

logger = logging.getLogger("snippet_verifier")

_BUILTINS = dict(vars(builtins))


class _DeadlineExceeded(BaseException):
    """Raised inside a snippet frame when it runs past its deadline."""


def describe_exception(exc: BaseException) -> str:
    message = str(exc)
    name = type(exc).__name__
    return f"{name}: {message}" if message else name


class PythonRuntime(EvaluationRuntime):
    """Evaluate Python snippets in isolated namespaces of the current interpreter."""

    name = "python"
    languages = frozenset({"python", "py"})

    def __init__(self, *, grace_ms: int = 500) -> None:
        self.grace_ms = grace_ms
        self._namespaces: Dict[str, Dict[str, Any]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def create_context(self, namespace: str) -> ContextHandle:
        handle = ContextHandle(context_id=f"py-{next(self._ids)}", namespace=namespace)
        with self._lock:
            self._namespaces[handle.context_id] = {
                "__name__": "__snippet__",
                "__builtins__": dict(_BUILTINS),
            }
        return handle

    def evaluate(self, handle: ContextHandle, source: str, timeout_ms: int) -> RawOutcome:
        with self._lock:
            namespace = self._namespaces.get(handle.context_id)
        if namespace is None or not handle.alive:
            raise InternalError(f"Context {handle.context_id} no longer exists")

        written: List[str] = []
        state: Dict[str, Any] = {"error": None, "timed_out": False}
        deadline = time.monotonic() + timeout_ms / 1000

        def _print(*args: Any, sep: str | None = " ", end: str | None = "\n", file: Any = None, flush: bool = False) -> None:
            if state["error"] is not None:
                return
            written.append((" " if sep is None else sep).join(str(arg) for arg in args))
            written.append("\n" if end is None else end)

        def _trace(frame, event, arg):
            if time.monotonic() > deadline:
                raise _DeadlineExceeded
            return _trace

        def _target() -> None:
            sys.settrace(_trace)
            try:
                code = compile(source, f"<{handle.context_id}>", "exec")
                exec(code, namespace)
            except _DeadlineExceeded:
                state["timed_out"] = True
            except Exception as exc:
                state["error"] = describe_exception(exc)
            finally:
                sys.settrace(None)

        namespace["print"] = _print
        worker = threading.Thread(target=_target, daemon=True, name=f"snippet-{handle.context_id}")
        worker.start()
        worker.join((timeout_ms + self.grace_ms) / 1000)

        if worker.is_alive():
            logger.warning("Abandoning snippet thread for %s after %d ms", handle.context_id, timeout_ms)
            state["timed_out"] = True

        if state["timed_out"]:
            self.discard(handle)

        lines = tuple("".join(written).splitlines())
        return RawOutcome(lines=lines, error=state["error"], timed_out=state["timed_out"])

    def discard(self, handle: ContextHandle) -> None:
        handle.alive = False
        with self._lock:
            self._namespaces.pop(handle.context_id, None)

    def close(self) -> None:
        with self._lock:
            self._namespaces.clear()


__all__ = ["PythonRuntime", "describe_exception"]
