"""Orchestration components for coordinating snippet verification."""

from .report import NOT_REACHED, ReportEntry, ReportSummary, VerificationReport
from .verification import VerificationOrchestrator, verify_snippets

__all__ = [
    "NOT_REACHED",
    "ReportEntry",
    "ReportSummary",
    "VerificationOrchestrator",
    "VerificationReport",
    "verify_snippets",
]
