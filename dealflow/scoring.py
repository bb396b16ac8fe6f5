"""Match computation and ranking.

Runs the six factor scorers over a (seeker, provider) pair, applies the
weights, attaches an explanation, and ranks candidate pools against a pivot
entity. Everything here is pure: no I/O, no shared mutable state.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from .entities import FactorKey, MatchWeights, Provider, Seeker
from .explanation import build_explanation
from .factors import FACTOR_SCORERS, FactorResult, FactorScore, round_half_up

logger = logging.getLogger(__name__)

REASON_THRESHOLD = 70

RecordT = TypeVar("RecordT", bound=BaseModel)


class InvalidInputError(ValueError):
    """Raised when the engine is called with a missing or malformed record.

    Missing fields inside a record are not errors; they score as unknown.
    """
    pass


@dataclass(frozen=True)
class MatchResult:
    """Scored (seeker, provider) pair. Never mutated after creation."""
    seeker_id: int | None
    provider_id: int | None
    overall_score: int
    breakdown: tuple[FactorResult, ...]
    explanation: str

    @property
    def reasons(self) -> list[str]:
        """Reasons of the factors that scored well."""
        return [item.reason for item in self.breakdown if item.score >= REASON_THRESHOLD]

    def factor(self, key: FactorKey | str) -> FactorResult:
        key = FactorKey(key)
        for item in self.breakdown:
            if item.key == key:
                return item
        raise KeyError(key)

    def to_dict(self) -> dict[str, Any]:
        return {
            "seeker_id": self.seeker_id,
            "provider_id": self.provider_id,
            "overall_score": self.overall_score,
            "breakdown": [item.to_dict() for item in self.breakdown],
            "explanation": self.explanation,
            "reasons": self.reasons,
        }


def _require(record: Any, model: type[RecordT], name: str) -> RecordT:
    """Coerce a record to ``model`` or fail with InvalidInputError."""
    if record is None:
        raise InvalidInputError(f"{name} record is required")
    if isinstance(record, model):
        return record
    if isinstance(record, Mapping):
        try:
            return model.model_validate(dict(record))
        except ValidationError as e:
            raise InvalidInputError(f"Invalid {name} record: {e}") from e
    raise InvalidInputError(
        f"{name} must be a {model.__name__} or mapping, got {type(record).__name__}"
    )


def _resolve_weights(weights: MatchWeights | Mapping[str, float] | None) -> MatchWeights:
    if weights is None:
        return MatchWeights()
    if isinstance(weights, MatchWeights):
        return weights
    if isinstance(weights, Mapping):
        try:
            return MatchWeights.model_validate(dict(weights))
        except ValidationError as e:
            raise InvalidInputError(f"Invalid weights: {e}") from e
    raise InvalidInputError(f"weights must be MatchWeights or mapping, got {type(weights).__name__}")


def aggregate(
    factors: Sequence[FactorScore],
    weights: MatchWeights,
) -> tuple[int, tuple[FactorResult, ...]]:
    """Weight factor scores into an overall score and a breakdown.

    Per-factor contributions and the overall score are rounded independently,
    so the overall score may differ from the sum of contributions by a point
    or two.

    Args:
        factors: Unweighted factor scores
        weights: Factor weights (any non-negative total)

    Returns:
        Tuple of (overall_score, breakdown)
    """
    total_weight = weights.total
    if total_weight <= 0:
        logger.warning("Factor weights sum to zero, falling back to equal weights")
        weights = MatchWeights.equal()
        total_weight = weights.total

    breakdown = tuple(
        FactorResult.from_score(item, weights.get(item.key), total_weight) for item in factors
    )
    weighted_sum = sum(item.score * item.weight for item in breakdown)
    overall = min(100, round_half_up(weighted_sum / total_weight))
    return overall, breakdown


def compute_match(
    seeker: Seeker | Mapping[str, Any],
    provider: Provider | Mapping[str, Any],
    weights: MatchWeights | Mapping[str, float] | None = None,
) -> MatchResult:
    """Score a single seeker/provider pair.

    Args:
        seeker: Seeker record (model or mapping)
        provider: Provider record (model or mapping)
        weights: Factor weights (defaults from settings)

    Returns:
        MatchResult with overall score, six-factor breakdown and explanation

    Raises:
        InvalidInputError: If a record is missing or not a valid record
    """
    seeker = _require(seeker, Seeker, "seeker")
    provider = _require(provider, Provider, "provider")
    weights = _resolve_weights(weights)

    factors = [scorer(seeker, provider) for scorer in FACTOR_SCORERS]
    overall, breakdown = aggregate(factors, weights)

    logger.debug(
        f"Match seeker={seeker.id} provider={provider.id} score={overall} "
        + " ".join(f"{item.key.value}={item.score}" for item in breakdown)
    )

    return MatchResult(
        seeker_id=seeker.id,
        provider_id=provider.id,
        overall_score=overall,
        breakdown=breakdown,
        explanation=build_explanation(seeker, provider, breakdown, overall),
    )


def rank_candidates(
    pool: Iterable[RecordT],
    score: Callable[[RecordT], MatchResult],
    min_score: int = 0,
) -> list[MatchResult]:
    """Score every candidate with an id, drop those below ``min_score``, sort best first.

    Sorting is stable, so ties keep pool order. Capping the result count is
    left to the caller.
    """
    results = [score(candidate) for candidate in pool if candidate.id is not None]
    kept = [result for result in results if result.overall_score >= min_score]
    kept.sort(key=lambda result: result.overall_score, reverse=True)
    logger.info(f"Ranked {len(results)} candidates, {len(kept)} at or above {min_score}")
    return kept


def rank_providers_for_seeker(
    seeker: Seeker | Mapping[str, Any],
    providers: Iterable[Provider | Mapping[str, Any]],
    weights: MatchWeights | Mapping[str, float] | None = None,
    min_score: int = 0,
) -> list[MatchResult]:
    """Providers ranked by compatibility with ``seeker`` (descending)."""
    seeker = _require(seeker, Seeker, "seeker")
    weights = _resolve_weights(weights)
    pool = [_require(provider, Provider, "provider") for provider in providers]
    return rank_candidates(pool, lambda provider: compute_match(seeker, provider, weights), min_score)


def rank_seekers_for_provider(
    provider: Provider | Mapping[str, Any],
    seekers: Iterable[Seeker | Mapping[str, Any]],
    weights: MatchWeights | Mapping[str, float] | None = None,
    min_score: int = 0,
) -> list[MatchResult]:
    """Seekers ranked by compatibility with ``provider`` (descending)."""
    provider = _require(provider, Provider, "provider")
    weights = _resolve_weights(weights)
    pool = [_require(seeker, Seeker, "seeker") for seeker in seekers]
    return rank_candidates(pool, lambda seeker: compute_match(seeker, provider, weights), min_score)
