"""Compare what a snippet did against what its comments promised."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

from ..executor import ExecutionResult
from .normalize import canonicalize

_ERROR_NAME = re.compile(r"^\s*(?:Uncaught\s+)?([A-Za-z_$][\w$]*)")


class VerificationStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    SKIPPED = "skipped"
    TIMEOUT = "timeout"
    INTERNAL_ERROR = "internal_error"


@dataclass(slots=True, frozen=True)
class MatchOutcome:
    status: VerificationStatus
    diff: str | None = None


def match(
    expected_outputs: Sequence[str],
    expected_to_throw: bool,
    result: ExecutionResult,
    *,
    nondeterministic: bool = False,
) -> MatchOutcome:
    """Decide the status of one snippet from its expectations and its result.

    Pure and deterministic: the same inputs always give the same outcome.
    """
    if result.timed_out:
        return MatchOutcome(
            VerificationStatus.TIMEOUT,
            "execution exceeded the time ceiling; context discarded",
        )

    if not expected_outputs and not expected_to_throw:
        diff = f"nothing asserted; snippet threw: {result.thrown}" if result.thrown else None
        return MatchOutcome(VerificationStatus.SKIPPED, diff)

    if expected_to_throw:
        expected_error = expected_outputs[-1] if expected_outputs else ""
        if result.thrown is None:
            return MatchOutcome(
                VerificationStatus.FAIL,
                f"expected throw: {expected_error}; snippet completed normally",
            )
        if not nondeterministic:
            before_throw = _compare_lines(expected_outputs[:-1], result.captured_lines)
            if before_throw.status is VerificationStatus.FAIL:
                return before_throw
        if not error_matches(expected_error, result.thrown):
            return MatchOutcome(
                VerificationStatus.FAIL,
                f"expected throw: {expected_error}; got: {result.thrown}",
            )
        return MatchOutcome(VerificationStatus.PASS)

    if result.thrown is not None:
        return MatchOutcome(VerificationStatus.FAIL, f"unexpected throw: {result.thrown}")

    if nondeterministic:
        return MatchOutcome(VerificationStatus.PASS)

    return _compare_lines(expected_outputs, result.captured_lines)


def error_matches(expected: str, actual: str) -> bool:
    """Loose comparison of error descriptions; wording beyond the name is optional."""
    expected = expected.strip()
    actual = actual.strip()
    if not expected or expected in actual:
        return True
    expected_name = _ERROR_NAME.match(expected)
    actual_name = _ERROR_NAME.match(actual)
    return bool(expected_name and actual_name and expected_name.group(1) == actual_name.group(1))


def _compare_lines(expected: Sequence[str], actual: Sequence[str]) -> MatchOutcome:
    for index, (want, got) in enumerate(zip(expected, actual)):
        if canonicalize(want) != canonicalize(got):
            return MatchOutcome(
                VerificationStatus.FAIL,
                f"line {index}: expected {want.strip()!r}, got {got.strip()!r}",
            )

    if len(expected) != len(actual):
        index = min(len(expected), len(actual))
        want = repr(expected[index].strip()) if index < len(expected) else "<no line>"
        got = repr(actual[index].strip()) if index < len(actual) else "<no line>"
        return MatchOutcome(
            VerificationStatus.FAIL,
            f"line {index}: expected {want}, got {got} "
            f"({len(expected)} lines expected, {len(actual)} captured)",
        )

    return MatchOutcome(VerificationStatus.PASS)


__all__ = ["MatchOutcome", "VerificationStatus", "error_matches", "match"]
