import logging

import pytest

from snippet_verifier.snippet import parse_expectations
from snippet_verifier.snippet.annotations import split_comment


def test_literal_echo_on_console_line():
    source = "let count = 0;\ncount++;\nconsole.log(count); // 1\n"

    assert parse_expectations(source) == (("1",), False)


def test_quoted_string_echo_is_stored_unquoted():
    assert parse_expectations('console.log("hi"); // "hi"') == (("hi",), False)


def test_explicit_marker_accepts_free_text():
    source = "console.log(greet('Ada')); // Output: Hello, Ada!"

    assert parse_expectations(source) == (("Hello, Ada!",), False)


def test_full_line_marker_comment_counts():
    source = "console.log(1 + 1);\n// Output: 2"

    assert parse_expectations(source) == (("2",), False)


def test_structured_echo_is_kept_verbatim():
    source = "console.log([1, 2, 3]); // [1, 2, 3]"

    assert parse_expectations(source) == (("[1, 2, 3]",), False)


def test_error_echo_sets_throw_expectation():
    source = "console.log(x); // ReferenceError: x is not defined"

    assert parse_expectations(source) == (("ReferenceError: x is not defined",), True)


def test_throws_prefix_on_plain_statement():
    source = "const a = 1;\na = 2; // Throws TypeError"

    assert parse_expectations(source) == (("TypeError",), True)


def test_output_before_throw_keeps_document_order():
    source = "console.log('start'); // start\nundefinedFn(); // ReferenceError"

    assert parse_expectations(source) == (("start", "ReferenceError"), True)


def test_output_after_throw_is_ambiguous(caplog):
    source = "boom(); // ReferenceError\nconsole.log(1); // 1"

    with caplog.at_level(logging.WARNING, logger="snippet_verifier"):
        assert parse_expectations(source) == ((), False)

    assert "ambiguous" in caplog.text


def test_prose_on_output_line_is_ambiguous():
    assert parse_expectations("console.log(user); // prints the user object") == ((), False)


def test_marker_on_line_without_output_is_ambiguous():
    assert parse_expectations("x + 1; // => 2") == ((), False)


def test_prose_on_plain_statement_is_ignored():
    source = "let total = 0; // running sum\nconsole.log(total); // 0"

    assert parse_expectations(source) == (("0",), False)


def test_unmarked_full_line_comment_is_prose():
    source = "// Closures capture variables\nconsole.log(counter()); // 1"

    assert parse_expectations(source) == (("1",), False)


def test_caught_error_names_are_literal_output():
    source = "try {\n  null.f();\n} catch (e) {\n  console.log(e.name); // TypeError\n}"

    assert parse_expectations(source) == (("TypeError",), False)


def test_error_on_statement_inside_try_is_ambiguous(caplog):
    source = "try {\n  null.f(); // TypeError\n} catch (e) {\n  console.log('handled');\n}"

    with caplog.at_level(logging.WARNING, logger="snippet_verifier"):
        assert parse_expectations(source) == ((), False)

    assert "catches errors" in caplog.text


def test_python_error_on_statement_inside_try_is_ambiguous():
    source = "try:\n    int('x')  # ValueError\nexcept ValueError:\n    print('bad')  # bad"

    assert parse_expectations(source, language="python") == ((), False)


def test_full_line_marker_in_catching_snippet_is_literal():
    source = "try {\n  null.f();\n} catch (e) {\n  console.log(e.name);\n  // Output: TypeError\n}"

    assert parse_expectations(source) == (("TypeError",), False)


def test_prose_starting_with_error_is_not_a_throw():
    source = "const e = new Error('x'); // Error objects carry a stack\nconsole.log(e.message); // x"

    assert parse_expectations(source) == (("x",), False)


@pytest.mark.parametrize(
    "comment, description",
    [
        ("TypeError", "TypeError"),
        ("Error: boom", "Error: boom"),
        ("Throws RangeError: Invalid array length", "RangeError: Invalid array length"),
        ("raises ValueError('bad')", "ValueError('bad')"),
        ("Uncaught Error Boom", "Error Boom"),
    ],
)
def test_error_echo_forms(comment, description):
    assert parse_expectations(f"run(); // {comment}") == ((description,), True)


def test_comment_markers_inside_strings_are_ignored():
    source = 'console.log("http://example.com"); // http://example.com'

    assert parse_expectations(source) == (("http://example.com",), False)


def test_python_snippets_use_hash_comments():
    source = "items = [1, 2]\nprint(items)  # [1, 2]\nprint(missing)  # NameError"

    assert parse_expectations(source, language="python") == (("[1, 2]", "NameError"), True)


def test_unknown_language_is_unasserted():
    assert parse_expectations("puts 1 # 1", language="ruby") == ((), False)


def test_snippet_without_comments_asserts_nothing():
    assert parse_expectations("let count = 0;") == ((), False)


@pytest.mark.parametrize(
    "line, prefix, expected",
    [
        ("a = 1; // note", "//", ("a = 1; ", " note")),
        ("s = '//'; // real", "//", ("s = '//'; ", " real")),
        ('s = "a\\"//b";', "//", ('s = "a\\"//b";', None)),
        ("x = `//`", "//", ("x = `//`", None)),
        ("print('#')  # hash", "#", ("print('#')  ", " hash")),
    ],
)
def test_split_comment(line, prefix, expected):
    assert split_comment(line, prefix) == expected
