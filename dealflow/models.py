"""Core SQLAlchemy models (2.x style) for seekers, providers and matches.

The engine itself never touches these; the batch pipeline and the API load
rows, hand them to the engine as ``Seeker``/``Provider`` records, and store
the results here.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    type_annotation_map = {datetime: DateTime(timezone=True)}


class Seeker(Base):
    """Companies raising capital."""
    __tablename__ = "seekers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    sector: Mapped[str | None] = mapped_column(String(100), index=True)
    sub_sector: Mapped[str | None] = mapped_column(String(100))
    stage: Mapped[str | None] = mapped_column(String(50), index=True)
    geography: Mapped[str | None] = mapped_column(String(255))
    funding_target: Mapped[float | None] = mapped_column(Float)
    revenue: Mapped[float | None] = mapped_column(Float)
    revenue_growth: Mapped[float | None] = mapped_column(Float)
    customers: Mapped[float | None] = mapped_column(Float)
    description: Mapped[str | None] = mapped_column(Text)
    business_model: Mapped[str | None] = mapped_column(String(255))
    tags: Mapped[str | None] = mapped_column(Text)  # JSON array/object or delimited text
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    matches: Mapped[list[Match]] = relationship("Match", back_populates="seeker")


class Provider(Base):
    """Investors and funds deploying capital."""
    __tablename__ = "providers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    firm: Mapped[str | None] = mapped_column(String(255))
    sector: Mapped[str | None] = mapped_column(String(100), index=True)
    sub_sector: Mapped[str | None] = mapped_column(String(100))
    stage: Mapped[str | None] = mapped_column(String(50), index=True)
    geography: Mapped[str | None] = mapped_column(String(255))
    check_size_min: Mapped[float | None] = mapped_column(Float)
    check_size_max: Mapped[float | None] = mapped_column(Float)
    thesis: Mapped[str | None] = mapped_column(Text)
    tags: Mapped[str | None] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    # Relationships
    matches: Mapped[list[Match]] = relationship("Match", back_populates="provider")


class Match(Base):
    """Latest computed match per (seeker, provider) pair."""
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    seeker_id: Mapped[int] = mapped_column(
        ForeignKey("seekers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    provider_id: Mapped[int] = mapped_column(
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    sector_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stage_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    traction_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    check_size_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    geography_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    thesis_score: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    breakdown: Mapped[list] = mapped_column(JSON, nullable=False)  # Full weighted breakdown
    reasons: Mapped[list] = mapped_column(JSON, nullable=False)
    explanation: Mapped[str | None] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(50), default="suggested", nullable=False)
    taxonomy_version: Mapped[str] = mapped_column(String(50), nullable=False)
    computed_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)

    # Relationships
    seeker: Mapped[Seeker] = relationship("Seeker", back_populates="matches")
    provider: Mapped[Provider] = relationship("Provider", back_populates="matches")

    __table_args__ = (
        Index("ix_matches_seeker_score", "seeker_id", "score"),
        Index("ix_matches_provider_score", "provider_id", "score"),
        Index("ix_matches_seeker_provider", "seeker_id", "provider_id", unique=True),
    )


class MatchingWeightsConfig(Base):
    """Stored factor weights; the most recent active row wins."""
    __tablename__ = "matching_weights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    weights_json: Mapped[dict] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)
