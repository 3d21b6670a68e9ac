"""Expected-output matching."""

from .matcher import MatchOutcome, VerificationStatus, error_matches, match
from .normalize import canonicalize

__all__ = ["MatchOutcome", "VerificationStatus", "canonicalize", "error_matches", "match"]
