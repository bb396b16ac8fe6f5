"""Matching pipeline: rank, cap and persist matches for seekers and providers.

Loads entities from the database, hands them to the pure scoring engine,
keeps the best ``max_matches_per_entity`` results above ``min_score`` and
replaces previously stored matches for the same (seeker, provider) pairs.
"""
from __future__ import annotations

import asyncio
import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import partial
from typing import Sequence

from pydantic import ValidationError
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dealflow import models
from dealflow.config import settings
from dealflow.entities import FactorKey, MatchWeights, Provider, Seeker
from dealflow.scoring import MatchResult, rank_providers_for_seeker, rank_seekers_for_provider

logger = logging.getLogger(__name__)


@dataclass
class GeneratedMatches:
    """Matches produced for one pivot entity."""
    pivot_id: int
    generated: int
    matches: list[MatchResult] = field(default_factory=list)


@dataclass
class MatchingRunSummary:
    """Outcome of a full seeker x provider run."""
    seekers_processed: int
    providers_considered: int
    generated: int
    computed_at: datetime


class MatchingError(Exception):
    """Raised when matching pipeline fails."""
    pass


class EntityNotFoundError(MatchingError):
    """Raised when a seeker or provider id does not exist."""
    pass


async def get_seeker(session: AsyncSession, seeker_id: int) -> Seeker:
    """Fetch one seeker as an engine record.

    Raises:
        EntityNotFoundError: If no seeker has this id
    """
    row = await session.get(models.Seeker, seeker_id)
    if row is None:
        raise EntityNotFoundError(f"Seeker {seeker_id} not found")
    return Seeker.model_validate(row)


async def get_provider(session: AsyncSession, provider_id: int) -> Provider:
    """Fetch one provider as an engine record.

    Raises:
        EntityNotFoundError: If no provider has this id
    """
    row = await session.get(models.Provider, provider_id)
    if row is None:
        raise EntityNotFoundError(f"Provider {provider_id} not found")
    return Provider.model_validate(row)


async def list_seekers(session: AsyncSession) -> list[Seeker]:
    result = await session.execute(select(models.Seeker).order_by(models.Seeker.id))
    return [Seeker.model_validate(row) for row in result.scalars().all()]


async def list_providers(session: AsyncSession) -> list[Provider]:
    result = await session.execute(select(models.Provider).order_by(models.Provider.id))
    return [Provider.model_validate(row) for row in result.scalars().all()]


async def load_weights(session: AsyncSession) -> MatchWeights:
    """Active stored weights, or the configured defaults when none are stored."""
    query = (
        select(models.MatchingWeightsConfig)
        .where(models.MatchingWeightsConfig.is_active.is_(True))
        .order_by(models.MatchingWeightsConfig.id.desc())
        .limit(1)
    )
    result = await session.execute(query)
    row = result.scalar_one_or_none()
    if row is None:
        logger.debug("No stored weights, using configured defaults")
        return MatchWeights()

    try:
        return MatchWeights.model_validate(row.weights_json)
    except ValidationError as e:
        logger.error(f"Stored weights row {row.id} is invalid: {e}")
        raise MatchingError(f"Stored weights are invalid: {e}") from e


async def save_weights(session: AsyncSession, weights: MatchWeights) -> MatchWeights:
    """Store ``weights`` as the active configuration, retiring older rows."""
    try:
        await session.execute(
            update(models.MatchingWeightsConfig)
            .where(models.MatchingWeightsConfig.is_active.is_(True))
            .values(is_active=False)
        )
        session.add(models.MatchingWeightsConfig(weights_json=weights.as_dict(), is_active=True))
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to save weights: {e}")
        raise MatchingError(f"Weights persistence failed: {e}") from e

    logger.info(f"Saved matching weights: {weights.as_dict()}")
    return weights


def _score_columns(result: MatchResult) -> dict:
    return {
        "score": result.overall_score,
        "sector_score": result.factor(FactorKey.SECTOR).score,
        "stage_score": result.factor(FactorKey.STAGE).score,
        "traction_score": result.factor(FactorKey.TRACTION).score,
        "check_size_score": result.factor(FactorKey.CHECK_SIZE).score,
        "geography_score": result.factor(FactorKey.GEOGRAPHY).score,
        "thesis_score": result.factor(FactorKey.THESIS).score,
        "breakdown": [item.to_dict() for item in result.breakdown],
        "reasons": result.reasons,
        "explanation": result.explanation,
        "taxonomy_version": settings.matching.taxonomy_version,
        "computed_at": datetime.now(timezone.utc),
    }


async def replace_match(session: AsyncSession, result: MatchResult) -> models.Match:
    """Insert or overwrite the stored match for the result's pair (no commit).

    The workflow ``status`` of an existing row is kept.
    """
    query = select(models.Match).where(
        models.Match.seeker_id == result.seeker_id,
        models.Match.provider_id == result.provider_id,
    )
    existing = (await session.execute(query)).scalar_one_or_none()
    columns = _score_columns(result)

    if existing is None:
        record = models.Match(
            seeker_id=result.seeker_id,
            provider_id=result.provider_id,
            status="suggested",
            **columns,
        )
        session.add(record)
        return record

    for name, value in columns.items():
        setattr(existing, name, value)
    return existing


async def persist_matches(session: AsyncSession, results: Sequence[MatchResult]) -> None:
    """Replace stored matches for every result and commit."""
    try:
        for result in results:
            await replace_match(session, result)
        await session.commit()
    except Exception as e:
        await session.rollback()
        logger.error(f"Failed to persist matches: {e}")
        raise MatchingError(f"Match persistence failed: {e}") from e

    logger.info(f"Persisted {len(results)} matches")


async def generate_matches_for_seeker(
    session: AsyncSession,
    seeker_id: int,
    *,
    weights: MatchWeights | None = None,
    providers: list[Provider] | None = None,
    min_score: int | None = None,
    limit: int | None = None,
) -> GeneratedMatches:
    """Rank providers for one seeker, keep the top ``limit`` and persist them.

    Args:
        session: Database session
        seeker_id: Seeker to match
        weights: Factor weights (stored weights if None)
        providers: Candidate pool (all providers if None)
        min_score: Lowest score kept (default from config)
        limit: Maximum matches kept (default from config)

    Returns:
        GeneratedMatches with the persisted results

    Raises:
        EntityNotFoundError: If the seeker does not exist
        MatchingError: If persistence fails
    """
    min_score = settings.matching.min_score if min_score is None else min_score
    limit = limit or settings.matching.max_matches_per_entity

    seeker = await get_seeker(session, seeker_id)
    pool = providers if providers is not None else await list_providers(session)
    if not pool:
        logger.warning(f"No providers to match against seeker {seeker_id}")
        return GeneratedMatches(pivot_id=seeker_id, generated=0)

    weights = weights or await load_weights(session)
    matches = rank_providers_for_seeker(seeker, pool, weights, min_score)[:limit]
    await persist_matches(session, matches)

    logger.info(f"Generated {len(matches)} matches for seeker {seeker_id}")
    return GeneratedMatches(pivot_id=seeker_id, generated=len(matches), matches=matches)


async def generate_matches_for_provider(
    session: AsyncSession,
    provider_id: int,
    *,
    weights: MatchWeights | None = None,
    seekers: list[Seeker] | None = None,
    min_score: int | None = None,
    limit: int | None = None,
) -> GeneratedMatches:
    """Rank seekers for one provider, keep the top ``limit`` and persist them.

    Mirrors ``generate_matches_for_seeker`` from the provider side.
    """
    min_score = settings.matching.min_score if min_score is None else min_score
    limit = limit or settings.matching.max_matches_per_entity

    provider = await get_provider(session, provider_id)
    pool = seekers if seekers is not None else await list_seekers(session)
    if not pool:
        logger.warning(f"No seekers to match against provider {provider_id}")
        return GeneratedMatches(pivot_id=provider_id, generated=0)

    weights = weights or await load_weights(session)
    matches = rank_seekers_for_provider(provider, pool, weights, min_score)[:limit]
    await persist_matches(session, matches)

    logger.info(f"Generated {len(matches)} matches for provider {provider_id}")
    return GeneratedMatches(pivot_id=provider_id, generated=len(matches), matches=matches)


def _rank_row(
    seeker: Seeker,
    *,
    providers: list[Provider],
    weights: MatchWeights,
    min_score: int,
    limit: int,
) -> list[MatchResult]:
    return rank_providers_for_seeker(seeker, providers, weights, min_score)[:limit]


def score_matrix(
    seekers: Sequence[Seeker],
    providers: list[Provider],
    weights: MatchWeights,
    *,
    min_score: int = 0,
    limit: int | None = None,
    workers: int = 1,
) -> list[list[MatchResult]]:
    """Ranked, capped provider matches for every seeker, in seeker order.

    Pairs are independent, so rows are spread over a process pool when
    ``workers > 1``.
    """
    rank = partial(
        _rank_row,
        providers=providers,
        weights=weights,
        min_score=min_score,
        limit=limit or len(providers),
    )
    if workers <= 1 or len(seekers) < 2:
        return [rank(seeker) for seeker in seekers]

    with ProcessPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(rank, seekers))


async def run_full_matching(
    session: AsyncSession,
    *,
    weights: MatchWeights | None = None,
    workers: int | None = None,
) -> MatchingRunSummary:
    """Match every seeker against every provider and persist the top results.

    Returns:
        MatchingRunSummary with counts

    Raises:
        MatchingError: If loading or persistence fails
    """
    try:
        seekers = await list_seekers(session)
        providers = await list_providers(session)
        weights = weights or await load_weights(session)
    except MatchingError:
        raise
    except Exception as e:
        logger.error(f"Failed to load matching inputs: {e}", exc_info=True)
        raise MatchingError(f"Matching run failed: {e}") from e

    logger.info(f"Running matching: {len(seekers)} seekers x {len(providers)} providers")

    # Scoring is CPU-bound; keep it off the event loop
    loop = asyncio.get_running_loop()
    rows = await loop.run_in_executor(
        None,
        partial(
            score_matrix,
            seekers,
            providers,
            weights,
            min_score=settings.matching.min_score,
            limit=settings.matching.max_matches_per_entity,
            workers=workers or settings.matching.workers,
        ),
    )
    results = [match for row in rows for match in row]
    await persist_matches(session, results)

    summary = MatchingRunSummary(
        seekers_processed=len(seekers),
        providers_considered=len(providers),
        generated=len(results),
        computed_at=datetime.now(timezone.utc),
    )
    logger.info(f"Matching complete: {summary.generated} matches stored")
    return summary
