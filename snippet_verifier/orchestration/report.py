"""Report models handed to the presentation layer."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field

from ..matcher import VerificationStatus

NOT_REACHED = "not reached"


class ReportEntry(BaseModel):
    snippet_id: int
    status: VerificationStatus
    diff: str | None = None
    label: str | None = None


class ReportSummary(BaseModel):
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    timeout: int = 0
    internal_error: int = 0

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.skipped + self.timeout + self.internal_error


class VerificationReport(BaseModel):
    """Ordered per-snippet results plus a tally of every status."""

    entries: List[ReportEntry] = Field(default_factory=list)
    summary: ReportSummary = Field(default_factory=ReportSummary)
    ok: bool = True
    aborted: bool = False

    def append(self, entry: ReportEntry) -> None:
        self.entries.append(entry)

    def finalize(self) -> "VerificationReport":
        """Sort entries into document order and recompute the summary."""
        self.entries.sort(key=lambda entry: entry.snippet_id)
        counts = {status: 0 for status in VerificationStatus}
        for entry in self.entries:
            counts[entry.status] += 1

        self.summary = ReportSummary(
            passed=counts[VerificationStatus.PASS],
            failed=counts[VerificationStatus.FAIL],
            skipped=counts[VerificationStatus.SKIPPED],
            timeout=counts[VerificationStatus.TIMEOUT],
            internal_error=counts[VerificationStatus.INTERNAL_ERROR],
        )
        self.aborted = self.summary.internal_error > 0
        self.ok = (
            self.summary.failed == 0
            and self.summary.timeout == 0
            and not self.aborted
        )
        return self


__all__ = ["NOT_REACHED", "ReportEntry", "ReportSummary", "VerificationReport"]
