"""HTTP surface for snippet verification."""
