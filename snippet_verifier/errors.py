"""Exception taxonomy for the snippet verifier."""

from __future__ import annotations


class VerifierError(Exception):
    """Base class for errors raised by the verifier itself."""


class AnnotationParseAmbiguous(VerifierError):
    """An expected-output comment could not be read unambiguously."""

    def __init__(self, message: str, *, line_number: int | None = None) -> None:
        self.line_number = line_number
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)


class InternalError(VerifierError):
    """The evaluation substrate is unusable; the run cannot continue."""


class RuntimeUnavailableError(InternalError):
    """The language runtime could not be started or stopped answering."""


__all__ = [
    "VerifierError",
    "AnnotationParseAmbiguous",
    "InternalError",
    "RuntimeUnavailableError",
]
