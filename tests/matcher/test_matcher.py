from snippet_verifier.executor import ExecutionResult
from snippet_verifier.matcher import MatchOutcome, VerificationStatus, error_matches, match


def _result(lines=(), thrown=None, timed_out=False):
    return ExecutionResult(
        snippet_id=0,
        captured_lines=tuple(lines),
        thrown=thrown,
        timed_out=timed_out,
    )


def test_matching_output_passes():
    outcome = match(("1", "two"), False, _result(["1", "two"]))

    assert outcome == MatchOutcome(VerificationStatus.PASS)


def test_structured_values_compare_canonically():
    outcome = match(("[1, 2, 3]",), False, _result(["[ 1, 2, 3 ]"]))

    assert outcome.status is VerificationStatus.PASS


def test_surrounding_whitespace_is_ignored():
    outcome = match(("  hello ",), False, _result(["hello"]))

    assert outcome.status is VerificationStatus.PASS


def test_first_positional_mismatch_is_reported():
    outcome = match(("1", "2", "3"), False, _result(["1", "3", "4"]))

    assert outcome.status is VerificationStatus.FAIL
    assert outcome.diff == "line 1: expected '2', got '3'"


def test_missing_line_is_reported():
    outcome = match(("1", "2"), False, _result(["1"]))

    assert outcome.status is VerificationStatus.FAIL
    assert outcome.diff.startswith("line 1: expected '2', got <no line>")


def test_extra_line_is_reported():
    outcome = match(("1",), False, _result(["1", "2"]))

    assert outcome.status is VerificationStatus.FAIL
    assert outcome.diff.startswith("line 1: expected <no line>, got '2'")


def test_nothing_asserted_is_skipped():
    assert match((), False, _result(["anything"])).status is VerificationStatus.SKIPPED


def test_nothing_asserted_is_skipped_even_when_it_throws():
    outcome = match((), False, _result(thrown="Error: boom"))

    assert outcome.status is VerificationStatus.SKIPPED
    assert "Error: boom" in outcome.diff


def test_expected_throw_matches_by_substring():
    outcome = match(
        ("ReferenceError",),
        True,
        _result(thrown="ReferenceError: x is not defined"),
    )

    assert outcome.status is VerificationStatus.PASS


def test_expected_throw_tolerates_different_wording():
    outcome = match(
        ("TypeError: Assignment to constant variable.",),
        True,
        _result(thrown="TypeError: invalid assignment to const 'a'"),
    )

    assert outcome.status is VerificationStatus.PASS


def test_expected_throw_with_other_error_fails():
    outcome = match(("TypeError",), True, _result(thrown="RangeError: bad length"))

    assert outcome.status is VerificationStatus.FAIL
    assert "RangeError: bad length" in outcome.diff


def test_expected_throw_that_never_happens_fails():
    outcome = match(("ReferenceError",), True, _result(["done"]))

    assert outcome.status is VerificationStatus.FAIL
    assert "completed normally" in outcome.diff


def test_lines_before_expected_throw_are_compared():
    outcome = match(
        ("start", "ReferenceError"),
        True,
        _result(["wrong"], thrown="ReferenceError: undefinedFn is not defined"),
    )

    assert outcome == MatchOutcome(VerificationStatus.FAIL, "line 0: expected 'start', got 'wrong'")


def test_missing_line_before_expected_throw_fails():
    outcome = match(
        ("start", "ReferenceError"),
        True,
        _result([], thrown="ReferenceError: undefinedFn is not defined"),
    )

    assert outcome.status is VerificationStatus.FAIL
    assert outcome.diff.startswith("line 0: expected 'start', got <no line>")


def test_matching_lines_then_expected_throw_passes():
    outcome = match(
        ("start", "[1, 2]", "ReferenceError"),
        True,
        _result(["start", "[ 1, 2 ]"], thrown="ReferenceError: undefinedFn is not defined"),
    )

    assert outcome.status is VerificationStatus.PASS


def test_unexpected_throw_fails():
    outcome = match(("1",), False, _result(["1"], thrown="RangeError: boom"))

    assert outcome == MatchOutcome(VerificationStatus.FAIL, "unexpected throw: RangeError: boom")


def test_timeout_has_its_own_status():
    outcome = match(("1",), False, _result(timed_out=True))

    assert outcome.status is VerificationStatus.TIMEOUT


def test_timeout_wins_over_missing_assertions():
    assert match((), False, _result(timed_out=True)).status is VerificationStatus.TIMEOUT


def test_nondeterministic_snippets_only_check_for_throws():
    assert match(("0.123",), False, _result(["0.987"]), nondeterministic=True).status is VerificationStatus.PASS

    failed = match(("0.123",), False, _result(thrown="Error: x"), nondeterministic=True)
    assert failed.status is VerificationStatus.FAIL


def test_matching_is_idempotent():
    result = _result(["{ a: 1 }", "2"])
    expected = ('{"a": 1}', "3")

    assert match(expected, False, result) == match(expected, False, result)


def test_error_matches():
    assert error_matches("ReferenceError", "ReferenceError: x is not defined")
    assert error_matches("Uncaught TypeError: nope", "TypeError: other words")
    assert not error_matches("TypeError", "SyntaxError: Unexpected token")
