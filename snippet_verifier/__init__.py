"""Core package for documentation snippet verification."""

from .executor import ExecutionResult, IsolationExecutor
from .matcher import VerificationStatus, match
from .orchestration import VerificationOrchestrator, VerificationReport, verify_snippets
from .snippet import RawSnippet, SnippetRecord, build_records, parse_expectations

__all__ = [
    "ExecutionResult",
    "IsolationExecutor",
    "RawSnippet",
    "SnippetRecord",
    "VerificationOrchestrator",
    "VerificationReport",
    "VerificationStatus",
    "build_records",
    "match",
    "parse_expectations",
    "verify_snippets",
]
