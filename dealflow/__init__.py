"""Seeker/provider compatibility matching.

The engine (``compute_match`` and the rankers) is pure and importable on its
own; the ORM models, batch pipelines and API build on top of it.

Usage:
    from dealflow import compute_match

    result = compute_match(seeker, provider)
    print(f"Match: {result.overall_score}% - {result.explanation}")
"""

from .entities import MatchWeights, Provider, Seeker
from .scoring import (
    InvalidInputError,
    MatchResult,
    compute_match,
    rank_providers_for_seeker,
    rank_seekers_for_provider,
)

__all__ = [
    "InvalidInputError",
    "MatchResult",
    "MatchWeights",
    "Provider",
    "Seeker",
    "compute_match",
    "rank_providers_for_seeker",
    "rank_seekers_for_provider",
]
__version__ = "0.1.0"
