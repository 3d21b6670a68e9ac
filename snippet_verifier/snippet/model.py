from __future__ import annotations

import logging
from typing import Iterable, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .annotations import parse_expectations

logger = logging.getLogger("snippet_verifier")


class RawSnippet(BaseModel):
    """One fenced example as handed over by the document extractor."""

    source: str = Field(..., alias="code")
    chained: bool = False
    nondeterministic: bool = False
    language: str = "javascript"
    label: str | None = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SnippetRecord(BaseModel):
    """Read-only record of an extracted example and what it is expected to do."""

    id: int = Field(..., ge=0)
    source_text: str
    expected_outputs: Tuple[str, ...] = ()
    isolation_group: str
    expected_to_throw: bool = False
    nondeterministic: bool = False
    language: str = "javascript"
    label: str | None = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _throw_needs_description(self) -> "SnippetRecord":
        if self.expected_to_throw and not self.expected_outputs:
            raise ValueError("expected_to_throw requires the error description as the last expected output")
        return self

    @property
    def expected_error(self) -> str | None:
        """Description of the error the snippet is meant to throw, if any."""
        if not self.expected_to_throw:
            return None
        return self.expected_outputs[-1]

    @property
    def expected_lines(self) -> Tuple[str, ...]:
        """Console lines expected before completion (or before the throw)."""
        if self.expected_to_throw:
            return self.expected_outputs[:-1]
        return self.expected_outputs


def build_records(raw_snippets: Iterable[RawSnippet]) -> List[SnippetRecord]:
    """Number snippets in document order and resolve their isolation groups.

    A snippet joins its predecessor's group only when it is marked as chained;
    otherwise it opens a new group named after its own id.
    """
    records: List[SnippetRecord] = []
    group: str | None = None

    for index, raw in enumerate(raw_snippets):
        if raw.chained and group is None:
            logger.debug("Snippet %d is chained but has no predecessor; starting a new group", index)
        if not raw.chained or group is None:
            group = f"group-{index}"

        expected_outputs, expected_to_throw = parse_expectations(raw.source, raw.language)
        records.append(
            SnippetRecord(
                id=index,
                source_text=raw.source,
                expected_outputs=expected_outputs,
                isolation_group=group,
                expected_to_throw=expected_to_throw,
                nondeterministic=raw.nondeterministic,
                language=raw.language.lower(),
                label=raw.label,
            )
        )

    return records


__all__ = ["RawSnippet", "SnippetRecord", "build_records"]
