import pytest
from pydantic import ValidationError

from snippet_verifier.snippet import RawSnippet, SnippetRecord, build_records


def test_build_records_numbers_snippets_and_resolves_groups():
    raw = [
        RawSnippet(code="let count = 0;"),
        RawSnippet(code="count++;\nconsole.log(count); // 1", chained=True),
        RawSnippet(code="console.log(2); // 2"),
    ]

    records = build_records(raw)

    assert [record.id for record in records] == [0, 1, 2]
    assert records[0].isolation_group == records[1].isolation_group == "group-0"
    assert records[2].isolation_group == "group-2"
    assert records[0].expected_outputs == ()
    assert records[1].expected_outputs == ("1",)


def test_leading_chained_snippet_starts_its_own_group():
    records = build_records([RawSnippet(code="let a = 1;", chained=True)])

    assert records[0].isolation_group == "group-0"


def test_records_carry_metadata():
    raw = RawSnippet.model_validate(
        {
            "source": "print(random())  # 0.5",
            "language": "Python",
            "nondeterministic": True,
            "label": "README.md:12",
            "unknown": "ignored",
        }
    )

    (record,) = build_records([raw])

    assert record.language == "python"
    assert record.nondeterministic is True
    assert record.label == "README.md:12"
    assert record.expected_outputs == ("0.5",)


def test_records_are_read_only():
    (record,) = build_records([RawSnippet(code="let a = 1;")])

    with pytest.raises(ValidationError):
        record.source_text = "let b = 2;"


def test_throw_expectation_requires_a_description():
    with pytest.raises(ValidationError):
        SnippetRecord(id=0, source_text="x;", isolation_group="g", expected_to_throw=True)


def test_expected_error_is_the_last_entry():
    record = SnippetRecord(
        id=3,
        source_text="console.log(1);\nx;",
        isolation_group="group-3",
        expected_outputs=("1", "ReferenceError"),
        expected_to_throw=True,
    )

    assert record.expected_error == "ReferenceError"
    assert record.expected_lines == ("1",)


def test_expected_error_absent_when_no_throw_expected():
    record = SnippetRecord(id=0, source_text="", isolation_group="g", expected_outputs=("1",))

    assert record.expected_error is None
    assert record.expected_lines == ("1",)
