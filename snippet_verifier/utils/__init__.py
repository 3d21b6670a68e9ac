"""Shared utility modules for the verifier."""

from .manifest_loader import ManifestLoader, load_raw_snippets

__all__ = ["ManifestLoader", "load_raw_snippets"]
