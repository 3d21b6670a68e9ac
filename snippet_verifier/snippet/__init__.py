"""Snippet records and the expected-output annotation parser."""

from .annotations import parse_expectations
from .model import RawSnippet, SnippetRecord, build_records

__all__ = ["RawSnippet", "SnippetRecord", "build_records", "parse_expectations"]
