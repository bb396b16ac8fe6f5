"""Entity records consumed by the matching engine.

Seekers raise capital, providers deploy it. Both validate straight from ORM
rows (``from_attributes``) or from API payloads. Numeric fields are optional:
``None`` means the value is unknown, not zero; unparseable or non-finite
amounts are read as unknown too.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import settings

logger = logging.getLogger(__name__)

# Tags arrive as JSON text, delimited text, a list, or an object of lists
TagsField = Union[str, list[str], dict[str, Any], None]


def coerce_amount(value: Any) -> float | None:
    """Parse a numeric business field, or None when it is unusable.

    Unparseable text and non-finite numbers (NaN, infinity) count as unknown.
    """
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Treating unparseable amount {value!r} as unknown")
        return None
    if not math.isfinite(number):
        logger.debug(f"Treating non-finite amount {value!r} as unknown")
        return None
    return number


class FactorKey(str, Enum):
    """Scoring factors, in breakdown order."""
    SECTOR = "sector"
    STAGE = "stage"
    TRACTION = "traction"
    CHECK_SIZE = "check_size"
    GEOGRAPHY = "geography"
    THESIS = "thesis"


FACTOR_KEYS: tuple[str, ...] = tuple(key.value for key in FactorKey)


class Seeker(BaseModel):
    """A company looking to raise a round."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int | None = None
    name: str | None = None
    sector: str | None = None
    sub_sector: str | None = None
    stage: str | None = None
    geography: str | None = None
    funding_target: float | None = None
    revenue: float | None = None
    revenue_growth: float | None = None
    customers: float | None = None
    description: str | None = None
    business_model: str | None = None
    tags: TagsField = None

    @field_validator("funding_target", "revenue", "revenue_growth", "customers", mode="before")
    @classmethod
    def unknown_if_malformed(cls, v: Any) -> float | None:
        return coerce_amount(v)


class Provider(BaseModel):
    """An investor or fund that writes checks."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int | None = None
    name: str | None = None
    firm: str | None = None
    sector: str | None = None
    sub_sector: str | None = None
    stage: str | None = None
    geography: str | None = None
    check_size_min: float | None = None
    check_size_max: float | None = None
    thesis: str | None = None
    tags: TagsField = None

    @field_validator("check_size_min", "check_size_max", mode="before")
    @classmethod
    def unknown_if_malformed(cls, v: Any) -> float | None:
        return coerce_amount(v)

    @property
    def label(self) -> str:
        """Name used when talking about this provider in prose."""
        return self.firm or self.name or "the investor"


def _default(key: str) -> float:
    return settings.matching.default_weights()[key]


class MatchWeights(BaseModel):
    """Relative importance of each factor.

    Weights need not sum to 100; the aggregator divides by the actual total.
    ``checkSize`` is accepted as an alias for ``check_size``.
    """
    model_config = ConfigDict(
        populate_by_name=True, frozen=True, extra="ignore", allow_inf_nan=False
    )

    sector: float = Field(default_factory=lambda: _default("sector"), ge=0)
    stage: float = Field(default_factory=lambda: _default("stage"), ge=0)
    traction: float = Field(default_factory=lambda: _default("traction"), ge=0)
    check_size: float = Field(default_factory=lambda: _default("check_size"), ge=0, alias="checkSize")
    geography: float = Field(default_factory=lambda: _default("geography"), ge=0)
    thesis: float = Field(default_factory=lambda: _default("thesis"), ge=0)

    @classmethod
    def equal(cls) -> MatchWeights:
        """Every factor weighted the same."""
        return cls(**{key: 1 for key in FACTOR_KEYS})

    def get(self, key: str) -> float:
        return getattr(self, FactorKey(key).value)

    @property
    def total(self) -> float:
        return sum(self.get(key) for key in FACTOR_KEYS)

    def as_dict(self) -> dict[str, float]:
        return {key: self.get(key) for key in FACTOR_KEYS}
