import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from itertools import groupby
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..config import DEFAULT_TIMEOUT_MS
from ..errors import InternalError
from ..exception_handler import ErrorHandler
from ..executor import IsolationExecutor
from ..matcher import VerificationStatus, match
from ..runtime import EvaluationRuntime, runtime_factory
from ..snippet import RawSnippet, SnippetRecord, build_records
from .report import NOT_REACHED, ReportEntry, VerificationReport


logger = logging.getLogger("snippet_verifier")

SnippetCallback = Callable[[int, VerificationStatus, int, int], None]


class VerificationOrchestrator:
    """Drive a full verification pass and assemble the report.

    Snippets of one isolation group always run in document order on a single
    worker, sharing one context. Different groups share nothing, so with
    ``max_concurrency > 1`` they are spread over a thread pool and their
    entries are merged back into document order at the end.
    """

    def __init__(
        self,
        runtime_factory: Callable[[], EvaluationRuntime],
        *,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        max_concurrency: int = 1,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.runtime_factory = runtime_factory
        self.timeout_ms = timeout_ms
        self.max_concurrency = max_concurrency
        self.error_handler = error_handler or ErrorHandler()
        self.executor: Optional[ThreadPoolExecutor] = None
        self._local = threading.local()
        self._runtimes: List[EvaluationRuntime] = []
        self._runtime_lock = threading.Lock()
        self._progress_lock = threading.Lock()
        self._abort = threading.Event()
        self._completed = 0
        self._last_run_stats: Optional[Dict[str, Union[int, float]]] = None

    def run(
        self,
        records: Sequence[SnippetRecord],
        *,
        on_snippet_complete: Optional[SnippetCallback] = None,
    ) -> VerificationReport:
        """Verify ``records`` and return the finalized report."""
        groups = self._group(records)
        total = sum(len(group) for group in groups)

        self._abort.clear()
        self._completed = 0
        self.error_handler.clear_errors()
        start_time = time.time()
        report = VerificationReport()

        if groups:
            logger.info("Verifying %d snippets in %d isolation groups", total, len(groups))
            try:
                if self.max_concurrency == 1 or len(groups) == 1:
                    results = [
                        self._run_group(group, total, on_snippet_complete) for group in groups
                    ]
                else:
                    self.executor = ThreadPoolExecutor(
                        max_workers=self.max_concurrency, thread_name_prefix="verifier"
                    )
                    results = asyncio.run(
                        self._process_groups(groups, total, on_snippet_complete)
                    )
            finally:
                self.cleanup()

            for entries in results:
                for entry in entries:
                    report.append(entry)

        report.finalize()
        duration = time.time() - start_time
        summary = report.summary

        logger.info(
            "Verification complete: %d passed, %d failed, %d skipped, %d timed out, %.1fs elapsed",
            summary.passed,
            summary.failed,
            summary.skipped,
            summary.timeout,
            duration,
        )
        if report.aborted:
            logger.error("Run aborted after an internal error; remaining snippets were not reached")

        self._last_run_stats = {
            "total_snippets": total,
            "groups": len(groups),
            "passed": summary.passed,
            "failed": summary.failed,
            "skipped": summary.skipped,
            "timeout": summary.timeout,
            "internal_error": summary.internal_error,
            "duration": duration,
        }
        return report

    def cleanup(self) -> None:
        """Shutdown the worker pool and close every runtime opened during the run."""
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            self.executor = None

        with self._runtime_lock:
            runtimes, self._runtimes = self._runtimes, []
        for runtime in runtimes:
            try:
                runtime.close()
            except Exception:  # pragma: no cover - best effort teardown
                logger.warning("Failed to close %s runtime", runtime.name, exc_info=True)
        self._local = threading.local()

    async def _process_groups(
        self,
        groups: List[List[SnippetRecord]],
        total: int,
        on_snippet_complete: Optional[SnippetCallback],
    ) -> List[List[ReportEntry]]:
        assert self.executor is not None, "Executor must be initialized before processing"

        semaphore = asyncio.Semaphore(self.max_concurrency)
        loop = asyncio.get_running_loop()

        async def process(group: List[SnippetRecord]) -> List[ReportEntry]:
            async with semaphore:
                return await loop.run_in_executor(
                    self.executor, self._run_group, group, total, on_snippet_complete
                )

        return list(await asyncio.gather(*(process(group) for group in groups)))

    def _run_group(
        self,
        group: List[SnippetRecord],
        total: int,
        on_snippet_complete: Optional[SnippetCallback],
    ) -> List[ReportEntry]:
        entries: List[ReportEntry] = []
        executor: Optional[IsolationExecutor] = None
        handle = None

        try:
            for record in group:
                if self._abort.is_set():
                    entry = _entry(record, VerificationStatus.SKIPPED, NOT_REACHED)
                    entries.append(entry)
                    self._notify(on_snippet_complete, entry, total)
                    continue

                try:
                    if executor is None:
                        executor = IsolationExecutor(self._runtime(), timeout_ms=self.timeout_ms)

                    if not executor.runtime.supports(record.language):
                        entry = _entry(
                            record,
                            VerificationStatus.SKIPPED,
                            f"no {executor.runtime.name} support for language {record.language!r}",
                        )
                    else:
                        if handle is None or not handle.alive:
                            if handle is not None:
                                logger.info(
                                    "Group %s continues from a fresh context at snippet %d",
                                    record.isolation_group,
                                    record.id,
                                )
                            handle = executor.new_context(record.isolation_group)
                        result = executor.execute(record, handle)
                        outcome = match(
                            record.expected_outputs,
                            record.expected_to_throw,
                            result,
                            nondeterministic=record.nondeterministic,
                        )
                        entry = _entry(record, outcome.status, outcome.diff)
                except Exception as exc:
                    self._abort.set()
                    self.error_handler.collect_snippet_error(exc, record.id, "execute")
                    entry = _entry(
                        record,
                        VerificationStatus.INTERNAL_ERROR,
                        f"{type(exc).__name__}: {exc}",
                    )

                entries.append(entry)
                self._notify(on_snippet_complete, entry, total)
        finally:
            if executor is not None and handle is not None:
                try:
                    executor.release(handle)
                except Exception:
                    logger.warning("Failed to release context %s", handle.context_id, exc_info=True)

        return entries

    def _runtime(self) -> EvaluationRuntime:
        runtime = getattr(self._local, "runtime", None)
        if runtime is None:
            try:
                runtime = self.runtime_factory()
            except InternalError:
                raise
            except Exception as exc:
                raise InternalError(f"Unable to construct a runtime: {exc}") from exc
            self._local.runtime = runtime
            with self._runtime_lock:
                self._runtimes.append(runtime)
        return runtime

    def _notify(
        self,
        callback: Optional[SnippetCallback],
        entry: ReportEntry,
        total: int,
    ) -> None:
        with self._progress_lock:
            self._completed += 1
            current_index = self._completed
        if callback is None:
            return
        try:
            callback(entry.snippet_id, entry.status, current_index, total)
        except Exception:  # pragma: no cover - defensive callback handling
            logger.exception("on_snippet_complete callback failed")

    @property
    def last_run_stats(self) -> Optional[Dict[str, Union[int, float]]]:
        """Return summary statistics for the last verification run."""
        return self._last_run_stats

    @staticmethod
    def _group(records: Sequence[SnippetRecord]) -> List[List[SnippetRecord]]:
        groups: List[List[SnippetRecord]] = []
        seen: set[str] = set()
        previous_id = -1
        for group_name, members in groupby(records, key=lambda record: record.isolation_group):
            if group_name in seen:
                raise ValueError(f"Isolation group {group_name} is not contiguous")
            seen.add(group_name)
            members = list(members)
            for record in members:
                if record.id <= previous_id:
                    raise ValueError(f"Snippet ids must increase in document order (got {record.id})")
                previous_id = record.id
            groups.append(members)
        return groups


def _entry(record: SnippetRecord, status: VerificationStatus, diff: str | None) -> ReportEntry:
    return ReportEntry(snippet_id=record.id, status=status, diff=diff, label=record.label)


def verify_snippets(
    raw_snippets: Iterable[RawSnippet],
    *,
    runtime: str = "node",
    runtime_options: Optional[Mapping[str, Any]] = None,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
    max_concurrency: int = 1,
    on_snippet_complete: Optional[SnippetCallback] = None,
) -> VerificationReport:
    """Convenience helper to build records and run a verification pass."""
    records = build_records(raw_snippets)
    orchestrator = VerificationOrchestrator(
        runtime_factory(runtime, **dict(runtime_options or {})),
        timeout_ms=timeout_ms,
        max_concurrency=max_concurrency,
    )
    return orchestrator.run(records, on_snippet_complete=on_snippet_complete)
