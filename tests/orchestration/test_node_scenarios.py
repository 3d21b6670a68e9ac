import shutil

import pytest

from snippet_verifier.matcher import VerificationStatus
from snippet_verifier.orchestration import verify_snippets
from snippet_verifier.snippet import RawSnippet

pytestmark = pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")


def _verify(*snippets, **kwargs):
    kwargs.setdefault("timeout_ms", 1000)
    return verify_snippets(list(snippets), runtime="node", **kwargs)


def test_chained_counter():
    report = _verify(
        RawSnippet(code="let count = 0;"),
        RawSnippet(code="count++;\nconsole.log(count); // 1", chained=True),
    )

    assert [entry.status for entry in report.entries] == [
        VerificationStatus.SKIPPED,
        VerificationStatus.PASS,
    ]


def test_reference_error_is_an_expected_throw():
    report = _verify(RawSnippet(code="console.log(x); // ReferenceError"))

    assert report.entries[0].status is VerificationStatus.PASS


def test_array_output_is_compared_structurally():
    report = _verify(RawSnippet(code="console.log([1, 2, 3]); // [1, 2, 3]"))

    assert report.entries[0].status is VerificationStatus.PASS


def test_object_aliasing_is_visible_within_a_group():
    report = _verify(
        RawSnippet(code="const user = { name: 'Ada' };\nconst alias = user;"),
        RawSnippet(
            code="alias.name = 'Grace';\nconsole.log(user.name); // Grace\nconsole.log(user); // { name: 'Grace' }",
            chained=True,
        ),
        RawSnippet(code="const user = { name: 'Linus' };\nconsole.log(user.name); // Linus"),
    )

    assert [entry.status for entry in report.entries] == [
        VerificationStatus.SKIPPED,
        VerificationStatus.PASS,
        VerificationStatus.PASS,
    ]


def test_singleton_class_example():
    source = (
        "class Config {\n"
        "  static instance;\n"
        "  static get() { return Config.instance ??= new Config(); }\n"
        "}\n"
        "console.log(Config.get() === Config.get()); // true\n"
    )

    report = _verify(RawSnippet(code=source))

    assert report.entries[0].status is VerificationStatus.PASS


def test_infinite_loop_times_out_and_next_snippet_starts_fresh():
    report = _verify(
        RawSnippet(code="let ready = true;"),
        RawSnippet(code="while (true) {}\nconsole.log('never'); // never", chained=True),
        RawSnippet(code="console.log(typeof ready); // 'undefined'", chained=True),
        timeout_ms=300,
    )

    assert [entry.status for entry in report.entries] == [
        VerificationStatus.SKIPPED,
        VerificationStatus.TIMEOUT,
        VerificationStatus.PASS,
    ]


def test_parallel_groups_keep_document_order():
    snippets = [RawSnippet(code=f"const n = {i};\nconsole.log(n * 2); // {i * 2}") for i in range(6)]

    report = _verify(*snippets, max_concurrency=3)

    assert [entry.snippet_id for entry in report.entries] == list(range(6))
    assert report.summary.passed == 6


def test_wrong_line_before_expected_throw_fails():
    report = _verify(
        RawSnippet(code="console.log('wrong'); // start\nundefinedFn(); // ReferenceError"),
        RawSnippet(code="console.log('start'); // start\nundefinedFn(); // ReferenceError"),
    )

    assert [entry.status for entry in report.entries] == [
        VerificationStatus.FAIL,
        VerificationStatus.PASS,
    ]
    assert report.entries[0].diff == "line 0: expected 'start', got 'wrong'"
