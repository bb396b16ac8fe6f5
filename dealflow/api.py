"""FastAPI app exposing match previews, batch generation and stored matches.

The preview endpoint runs the engine on ad-hoc payloads without touching the
database; everything else goes through the matching pipeline.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from . import models
from .config import settings
from .db import dispose_engine, get_session
from .entities import MatchWeights, Provider, Seeker
from .logging_config import setup_logging
from .pipelines.matching import (
    EntityNotFoundError,
    GeneratedMatches,
    MatchingError,
    generate_matches_for_provider,
    generate_matches_for_seeker,
    load_weights,
    run_full_matching,
    save_weights,
)
from .scoring import InvalidInputError, MatchResult, compute_match

logger = logging.getLogger(__name__)


# Pydantic request/response models
class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str


class ErrorResponse(BaseModel):
    """Error response."""
    error: str
    detail: str | None = None


class SeekerCreate(BaseModel):
    """Create seeker request."""
    model_config = ConfigDict(allow_inf_nan=False)

    name: str = Field(min_length=1, max_length=255)
    sector: str | None = None
    sub_sector: str | None = None
    stage: str | None = None
    geography: str | None = None
    funding_target: float | None = Field(default=None, ge=0)
    revenue: float | None = Field(default=None, ge=0)
    revenue_growth: float | None = None
    customers: float | None = Field(default=None, ge=0)
    description: str | None = None
    business_model: str | None = None
    tags: str | None = None


class ProviderCreate(BaseModel):
    """Create provider request."""
    model_config = ConfigDict(allow_inf_nan=False)

    name: str = Field(min_length=1, max_length=255)
    firm: str | None = None
    sector: str | None = None
    sub_sector: str | None = None
    stage: str | None = None
    geography: str | None = None
    check_size_min: float | None = Field(default=None, ge=0)
    check_size_max: float | None = Field(default=None, ge=0)
    thesis: str | None = None
    tags: str | None = None


class EntityCreatedResponse(BaseModel):
    """Id of a newly created seeker or provider."""
    id: int
    name: str


class PreviewRequest(BaseModel):
    """Score an ad-hoc pair without persisting anything."""
    seeker: Seeker
    provider: Provider
    weights: MatchWeights | None = None


class FactorDTO(BaseModel):
    """One factor of a match breakdown."""
    key: str
    score: int
    weight: float
    contribution: int
    reason: str


class MatchDTO(BaseModel):
    """Single match result."""
    seeker_id: int | None
    provider_id: int | None
    score: int
    breakdown: list[FactorDTO]
    reasons: list[str]
    explanation: str | None
    status: str | None = None
    computed_at: str | None = None


class GenerateResponse(BaseModel):
    """Matches generated for one seeker or provider."""
    status: str
    pivot_id: int
    generated: int
    matches: list[MatchDTO]
    message: str


class RunResponse(BaseModel):
    """Full matching run summary."""
    status: str
    seekers_processed: int
    providers_considered: int
    generated: int
    computed_at: str


def _result_to_dto(result: MatchResult) -> MatchDTO:
    return MatchDTO(
        seeker_id=result.seeker_id,
        provider_id=result.provider_id,
        score=result.overall_score,
        breakdown=[FactorDTO(**item.to_dict()) for item in result.breakdown],
        reasons=result.reasons,
        explanation=result.explanation,
    )


def _record_to_dto(record: models.Match) -> MatchDTO:
    return MatchDTO(
        seeker_id=record.seeker_id,
        provider_id=record.provider_id,
        score=record.score,
        breakdown=[FactorDTO(**item) for item in record.breakdown],
        reasons=record.reasons,
        explanation=record.explanation,
        status=record.status,
        computed_at=record.computed_at.isoformat(),
    )


def _generated_response(generated: GeneratedMatches, kind: str) -> GenerateResponse:
    return GenerateResponse(
        status="success",
        pivot_id=generated.pivot_id,
        generated=generated.generated,
        matches=[_result_to_dto(m) for m in generated.matches],
        message=f"Generated {generated.generated} matches for {kind} {generated.pivot_id}",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown logic."""
    # Startup
    setup_logging()
    logger.info("Application starting up")

    yield

    # Shutdown
    logger.info("Application shutting down")
    await dispose_engine()


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Seeker/provider compatibility scoring and ranking",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],  # Frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Exception handlers
@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request, exc: InvalidInputError):
    """Handle malformed records passed to the engine."""
    logger.warning(f"Invalid input: {exc}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorResponse(error="invalid_input", detail=str(exc)).model_dump(),
    )


@app.exception_handler(EntityNotFoundError)
async def not_found_handler(request, exc: EntityNotFoundError):
    """Handle unknown seeker/provider ids."""
    logger.info(f"Not found: {exc}")
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(error="not_found", detail=str(exc)).model_dump(),
    )


@app.exception_handler(MatchingError)
async def matching_error_handler(request, exc: MatchingError):
    """Handle matching pipeline errors."""
    logger.error(f"Matching error: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="matching_error", detail=str(exc)).model_dump(),
    )


@app.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(status="ok", version=settings.version)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "app": settings.app_name,
        "version": settings.version,
        "endpoints": {
            "health": "/health",
            "preview": "/match/preview",
            "seeker_matches": "/seekers/{seeker_id}/matches",
            "provider_matches": "/providers/{provider_id}/matches",
            "run": "/matching/run",
            "matches": "/matches",
            "weights": "/settings/weights",
            "docs": "/docs",
        },
    }


@app.post("/seekers", response_model=EntityCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_seeker(
    request: SeekerCreate,
    session: AsyncSession = Depends(get_session),
) -> EntityCreatedResponse:
    """Store a seeker so it can take part in matching."""
    record = models.Seeker(**request.model_dump())
    session.add(record)
    await session.commit()
    logger.info(f"Created seeker {record.id}: {record.name}")
    return EntityCreatedResponse(id=record.id, name=record.name)


@app.post("/providers", response_model=EntityCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_provider(
    request: ProviderCreate,
    session: AsyncSession = Depends(get_session),
) -> EntityCreatedResponse:
    """Store a provider so it can take part in matching."""
    record = models.Provider(**request.model_dump())
    session.add(record)
    await session.commit()
    logger.info(f"Created provider {record.id}: {record.name}")
    return EntityCreatedResponse(id=record.id, name=record.name)


@app.post("/match/preview", response_model=MatchDTO)
async def preview_match(request: PreviewRequest) -> MatchDTO:
    """Score a seeker/provider pair on the fly.

    Nothing is persisted; useful for "what if" edits before saving a profile.
    """
    result = compute_match(request.seeker, request.provider, request.weights)
    return _result_to_dto(result)


@app.post("/seekers/{seeker_id}/matches", response_model=GenerateResponse)
async def generate_for_seeker(
    seeker_id: int,
    session: AsyncSession = Depends(get_session),
) -> GenerateResponse:
    """Rank all providers for a seeker and store the top matches."""
    logger.info(f"Generating matches for seeker {seeker_id}")
    generated = await generate_matches_for_seeker(session, seeker_id)
    return _generated_response(generated, "seeker")


@app.post("/providers/{provider_id}/matches", response_model=GenerateResponse)
async def generate_for_provider(
    provider_id: int,
    session: AsyncSession = Depends(get_session),
) -> GenerateResponse:
    """Rank all seekers for a provider and store the top matches."""
    logger.info(f"Generating matches for provider {provider_id}")
    generated = await generate_matches_for_provider(session, provider_id)
    return _generated_response(generated, "provider")


@app.post("/matching/run", response_model=RunResponse)
async def run_matching(session: AsyncSession = Depends(get_session)) -> RunResponse:
    """Match every seeker against every provider."""
    summary = await run_full_matching(session)
    return RunResponse(
        status="success",
        seekers_processed=summary.seekers_processed,
        providers_considered=summary.providers_considered,
        generated=summary.generated,
        computed_at=summary.computed_at.isoformat(),
    )


@app.get("/matches", response_model=list[MatchDTO])
async def list_matches(
    limit: int = Query(default=50, ge=1, le=500),
    min_score: int = Query(default=40, ge=0, le=100),
    session: AsyncSession = Depends(get_session),
) -> list[MatchDTO]:
    """Stored matches, best first."""
    query = (
        select(models.Match)
        .where(models.Match.score >= min_score)
        .order_by(models.Match.score.desc(), models.Match.id)
        .limit(limit)
    )
    result = await session.execute(query)
    return [_record_to_dto(record) for record in result.scalars().all()]


@app.get("/seekers/{seeker_id}/matches", response_model=list[MatchDTO])
async def seeker_matches(
    seeker_id: int,
    session: AsyncSession = Depends(get_session),
) -> list[MatchDTO]:
    """Stored matches for one seeker, best first."""
    query = (
        select(models.Match)
        .where(models.Match.seeker_id == seeker_id)
        .order_by(models.Match.score.desc(), models.Match.id)
    )
    result = await session.execute(query)
    return [_record_to_dto(record) for record in result.scalars().all()]


@app.get("/providers/{provider_id}/matches", response_model=list[MatchDTO])
async def provider_matches(
    provider_id: int,
    session: AsyncSession = Depends(get_session),
) -> list[MatchDTO]:
    """Stored matches for one provider, best first."""
    query = (
        select(models.Match)
        .where(models.Match.provider_id == provider_id)
        .order_by(models.Match.score.desc(), models.Match.id)
    )
    result = await session.execute(query)
    return [_record_to_dto(record) for record in result.scalars().all()]


@app.get("/matches/{seeker_id}/{provider_id}", response_model=MatchDTO)
async def match_detail(
    seeker_id: int,
    provider_id: int,
    session: AsyncSession = Depends(get_session),
) -> MatchDTO:
    """Stored breakdown for one (seeker, provider) pair."""
    query = select(models.Match).where(
        models.Match.seeker_id == seeker_id,
        models.Match.provider_id == provider_id,
    )
    record = (await session.execute(query)).scalar_one_or_none()
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No match stored for seeker {seeker_id} and provider {provider_id}",
        )
    return _record_to_dto(record)


@app.get("/settings/weights", response_model=MatchWeights)
async def get_weights(session: AsyncSession = Depends(get_session)) -> MatchWeights:
    """Weights currently used for matching."""
    return await load_weights(session)


@app.put("/settings/weights", response_model=MatchWeights)
async def put_weights(
    weights: MatchWeights,
    session: AsyncSession = Depends(get_session),
) -> MatchWeights:
    """Replace the stored weights."""
    return await save_weights(session, weights)
