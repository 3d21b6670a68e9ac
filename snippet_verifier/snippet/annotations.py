"""Parser for the inline expected-output comment convention.

Documentation snippets state their observable results as trailing comments::

    console.log(count); // 1
    console.log(user);  // Output: { name: 'Ada' }
    console.log(x);     // ReferenceError: x is not defined

``parse_expectations`` turns those comments into an ordered tuple of expected
lines plus a flag saying whether the snippet is meant to throw. Anything it
cannot read with confidence makes the whole snippet unasserted.
"""

from __future__ import annotations

import logging
import re
from typing import List, Tuple

from ..errors import AnnotationParseAmbiguous

logger = logging.getLogger("snippet_verifier")

COMMENT_PREFIXES = {
    "javascript": "//",
    "js": "//",
    "node": "//",
    "python": "#",
    "py": "#",
}

_QUOTES = {
    "//": ("'", '"', "`"),
    "#": ("'", '"'),
}

_OUTPUT_CALLS = {
    "//": re.compile(r"\bconsole\.(?:log|info|warn|error|debug)\s*\("),
    "#": re.compile(r"(?<![\w.])print\s*\("),
}

_CATCH_CLAUSE = {
    "//": re.compile(r"\bcatch\s*[({]"),
    "#": re.compile(r"^\s*except\b", re.MULTILINE),
}

_MARKER = re.compile(
    r"^(?:(?:output|outputs|prints|logs)\s*:\s*|(?:=>|->|→)\s*)",
    re.IGNORECASE,
)
_ERROR_ECHO = re.compile(
    r"^(?:(?i:throws?|raises?)\s*:?\s*|(?i:uncaught)\s+)?(?P<desc>(?:[A-Z][A-Za-z]*)?(?:Error|Exception)(?:[:(].*|\s+(?![\sa-z]).*)?)$"
)
_LITERAL = re.compile(
    r"""^(?:
        [-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?n?
      | NaN | -?Infinity
      | true | false | null | undefined | None | True | False
      | '(?:[^'\\]|\\.)*' | "(?:[^"\\]|\\.)*" | `(?:[^`\\]|\\.)*`
      | (?:[A-Za-z_$][\w$]*\s*(?:\(\d+\)\s*)?)?[\[{].*[\]}]
      | [^\s]+
    )$""",
    re.VERBOSE,
)


def split_comment(line: str, prefix: str = "//") -> Tuple[str, str | None]:
    """Split ``line`` into code and trailing comment, ignoring string contents."""
    quotes = _QUOTES.get(prefix, ("'", '"'))
    quote: str | None = None
    index = 0
    while index < len(line):
        char = line[index]
        if quote is not None:
            if char == "\\":
                index += 2
                continue
            if char == quote:
                quote = None
        elif char in quotes:
            quote = char
        elif line.startswith(prefix, index):
            return line[:index], line[index + len(prefix):]
        index += 1
    return line, None


def parse_expectations(source_text: str, language: str = "javascript") -> Tuple[Tuple[str, ...], bool]:
    """Return ``(expected_outputs, expected_to_throw)`` for a snippet body.

    When a throw is expected its description is the last entry. Ambiguous
    annotations yield ``((), False)`` and are logged, never guessed.
    """
    prefix = COMMENT_PREFIXES.get(language.lower())
    if prefix is None:
        logger.debug("No comment syntax known for %s; snippet is unasserted", language)
        return (), False
    try:
        return _parse(source_text, prefix)
    except AnnotationParseAmbiguous as exc:
        logger.warning("Ignoring expectations of ambiguous snippet: %s", exc)
        return (), False


def _parse(source_text: str, prefix: str) -> Tuple[Tuple[str, ...], bool]:
    output_call = _OUTPUT_CALLS[prefix]
    catches_errors = bool(_CATCH_CLAUSE[prefix].search(source_text))
    expected: List[str] = []
    expects_throw = False

    for line_number, line in enumerate(source_text.splitlines(), start=1):
        code, comment = split_comment(line, prefix)
        if comment is None:
            continue
        comment = comment.strip()
        if not comment:
            continue

        marker = _MARKER.match(comment)
        payload = comment[marker.end():].strip() if marker else comment
        is_output_line = bool(output_call.search(code))

        if not code.strip() and not marker:
            # Prose between statements.
            continue

        error = _ERROR_ECHO.match(payload)
        if error and catches_errors and code.strip() and not is_output_line:
            # Caught by the snippet itself, so it never reaches the runtime.
            raise AnnotationParseAmbiguous(
                f"error declared on a statement inside a snippet that catches errors: {comment!r}",
                line_number=line_number,
            )
        if error and not catches_errors:
            if expects_throw:
                raise AnnotationParseAmbiguous(
                    "more than one thrown error declared", line_number=line_number
                )
            expected.append(error.group("desc").strip())
            expects_throw = True
            continue

        if not is_output_line and code.strip():
            if marker:
                raise AnnotationParseAmbiguous(
                    f"output marker on a line without console output: {comment!r}",
                    line_number=line_number,
                )
            continue

        if not payload:
            raise AnnotationParseAmbiguous("empty output marker", line_number=line_number)
        if not marker and not _LITERAL.match(payload):
            raise AnnotationParseAmbiguous(
                f"comment is not a recognised literal: {comment!r}", line_number=line_number
            )
        if expects_throw:
            raise AnnotationParseAmbiguous(
                "output declared after the expected throw", line_number=line_number
            )
        expected.append(_unquote(payload))

    return tuple(expected), expects_throw


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "'\"`":
        inner = value[1:-1]
        if value[0] not in inner.replace("\\" + value[0], ""):
            return inner.replace("\\" + value[0], value[0])
    return value


__all__ = ["COMMENT_PREFIXES", "parse_expectations", "split_comment"]
