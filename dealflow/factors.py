"""The six factor scorers.

Each scorer is a pure function ``(seeker, provider) -> FactorScore`` returning
a 0-100 score and a short reason. Scorers never raise on missing data; they
fall back to a documented default score instead.
"""
from __future__ import annotations

import logging
import math
from dataclasses import InitVar, dataclass, field
from typing import Callable

from config.market_benchmarks import (
    CUSTOMER_BENCHMARK,
    DEFAULT_STAGE_TARGET,
    GROWTH_BENCHMARK,
    MAX_TRACTION_RATIO,
    REGION_MAP,
    STAGE_ALIASES,
    STAGE_ORDER,
    STAGE_TARGETS,
)

from .entities import FactorKey, Provider, Seeker
from .keywords import (
    build_keyword_list,
    jaccard,
    keyword_overlap,
    normalize_keyword,
    parse_list_field,
    to_token_set,
    tokens_from_keywords,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FactorScore:
    """Unweighted outcome of a single scorer."""
    key: FactorKey
    score: int
    reason: str


@dataclass(frozen=True)
class FactorResult:
    """A factor score with its weight applied.

    ``contribution`` is derived from score, weight and the total weight and
    cannot be passed in.
    """
    key: FactorKey
    score: int
    weight: float
    reason: str
    total_weight: InitVar[float]
    contribution: int = field(init=False)

    def __post_init__(self, total_weight: float) -> None:
        object.__setattr__(
            self, "contribution", round_half_up(self.score * self.weight / total_weight)
        )

    @classmethod
    def from_score(cls, factor: FactorScore, weight: float, total_weight: float) -> FactorResult:
        return cls(factor.key, factor.score, weight, factor.reason, total_weight)

    @property
    def label(self) -> str:
        return FACTOR_LABELS[self.key]

    def to_dict(self) -> dict:
        return {
            "key": self.key.value,
            "score": self.score,
            "weight": self.weight,
            "contribution": self.contribution,
            "reason": self.reason,
        }


FACTOR_LABELS: dict[FactorKey, str] = {
    FactorKey.SECTOR: "sector alignment",
    FactorKey.STAGE: "stage fit",
    FactorKey.TRACTION: "traction metrics",
    FactorKey.CHECK_SIZE: "check size fit",
    FactorKey.GEOGRAPHY: "geography alignment",
    FactorKey.THESIS: "thesis fit",
}

FactorScorer = Callable[[Seeker, Provider], FactorScore]


def round_half_up(value: float) -> int:
    """Round halves up (2.5 -> 3), unlike the built-in ``round``."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def ratio_to_score(ratio: float) -> int:
    """Map a 0..1 ratio onto 0..100, clamping outside values."""
    if ratio >= 1:
        return 100
    if ratio <= 0:
        return 0
    return round_half_up(ratio * 100)


def _clean(value: str | None) -> str:
    return (value or "").strip().lower()


def _positive(value: float | None) -> float | None:
    if value is None or value <= 0:
        return None
    return value


def canonical_stage(value: str | None) -> str:
    """Normalized stage name with common spellings folded onto the ladder."""
    stage = normalize_keyword(value)
    return STAGE_ALIASES.get(stage, stage)


def check_size_bounds(provider: Provider) -> tuple[float | None, float | None]:
    """Provider's (min, max) check size with unknown or inverted ranges cleaned up.

    Non-positive bounds count as unknown; an inverted range is swapped.
    """
    low = _positive(provider.check_size_min)
    high = _positive(provider.check_size_max)
    if low is not None and high is not None and low > high:
        logger.debug(f"Provider {provider.id} has inverted check size range, swapping")
        low, high = high, low
    return low, high


def score_sector(seeker: Seeker, provider: Provider) -> FactorScore:
    """Keyword/token overlap of sector, sub-sector and tags."""
    seeker_keywords = build_keyword_list(
        [seeker.sector, seeker.sub_sector, parse_list_field(seeker.tags)]
    )
    provider_keywords = build_keyword_list(
        [provider.sector, provider.sub_sector, parse_list_field(provider.tags)]
    )

    token_overlap = jaccard(
        tokens_from_keywords(seeker_keywords),
        tokens_from_keywords(provider_keywords),
    )
    overlap = keyword_overlap(seeker_keywords, provider_keywords)
    score = clamp_score((token_overlap * 0.6 + overlap * 0.4) * 100)

    if not seeker_keywords and not provider_keywords:
        reason = "No sector data available"
    elif not seeker_keywords or not provider_keywords:
        reason = "Incomplete sector data for comparison"
    elif score >= 85:
        reason = "Excellent keyword alignment"
    elif score >= 65:
        reason = "Strong overlapping keywords"
    elif score >= 45:
        reason = "Partial sector overlap"
    else:
        reason = "Limited keyword overlap"

    logger.debug(
        f"Sector: tokens={token_overlap:.2f} keywords={overlap:.2f} score={score}"
    )
    return FactorScore(FactorKey.SECTOR, score, reason)


def score_stage(seeker: Seeker, provider: Provider) -> FactorScore:
    """Distance between stages on the funding ladder."""
    seeker_stage = canonical_stage(seeker.stage)
    provider_stage = canonical_stage(provider.stage)

    if not seeker_stage or not provider_stage:
        return FactorScore(FactorKey.STAGE, 0, "Stage data incomplete")

    if seeker_stage == provider_stage:
        return FactorScore(FactorKey.STAGE, 100, "Ideal stage focus")

    if seeker_stage not in STAGE_ORDER or provider_stage not in STAGE_ORDER:
        return FactorScore(FactorKey.STAGE, 55, "Unmapped stage, partial confidence")

    delta = abs(STAGE_ORDER.index(seeker_stage) - STAGE_ORDER.index(provider_stage))
    if delta == 1:
        return FactorScore(FactorKey.STAGE, 85, "Adjacent stage focus")
    if delta == 2:
        return FactorScore(FactorKey.STAGE, 60, "Stage slightly outside mandate")
    return FactorScore(FactorKey.STAGE, 25, "Stage far from investor focus")


def score_traction(seeker: Seeker, provider: Provider) -> FactorScore:
    """Revenue, growth and customers benchmarked against the seeker's stage."""
    target = STAGE_TARGETS.get(canonical_stage(seeker.stage), DEFAULT_STAGE_TARGET)

    revenue_ratio = min((seeker.revenue or 0) / target, MAX_TRACTION_RATIO)
    growth_ratio = min((seeker.revenue_growth or 0) / GROWTH_BENCHMARK, MAX_TRACTION_RATIO)
    customer_ratio = min((seeker.customers or 0) / CUSTOMER_BENCHMARK, MAX_TRACTION_RATIO)

    score = round_half_up(
        ratio_to_score(revenue_ratio / MAX_TRACTION_RATIO) * 0.5
        + ratio_to_score(growth_ratio / MAX_TRACTION_RATIO) * 0.3
        + ratio_to_score(customer_ratio / MAX_TRACTION_RATIO) * 0.2
    )

    if seeker.revenue is None and seeker.revenue_growth is None and seeker.customers is None:
        reason = "No traction data shared"
    elif score >= 80:
        reason = "Outstanding traction vs. stage benchmarks"
    elif score >= 60:
        reason = "Healthy traction relative to stage"
    elif score >= 40:
        reason = "Developing traction metrics"
    else:
        reason = "Traction below stage benchmarks"

    return FactorScore(FactorKey.TRACTION, score, reason)


def score_check_size(seeker: Seeker, provider: Provider) -> FactorScore:
    """How close the round size is to the provider's check range."""
    target = _positive(seeker.funding_target)
    low, high = check_size_bounds(provider)

    if target is None:
        return FactorScore(FactorKey.CHECK_SIZE, 0, "Missing check size information")
    if low is None and high is None:
        return FactorScore(
            FactorKey.CHECK_SIZE, 40, "Company shared funding needs but investor range unknown"
        )

    lower = low if low is not None else target
    upper = high if high is not None else target

    if lower <= target <= upper:
        return FactorScore(
            FactorKey.CHECK_SIZE, 100, "Funding needs inside this investor's check size"
        )

    distance = lower - target if target < lower else target - upper
    tolerance = max(upper, target, 1)
    ratio = max(0.0, 1 - distance / tolerance)
    return FactorScore(
        FactorKey.CHECK_SIZE,
        round_half_up(20 + ratio * 80),
        "Funding round slightly outside typical check size",
    )


def score_geography(seeker: Seeker, provider: Provider) -> FactorScore:
    """Exact, regional or partial location overlap."""
    seeker_geo = _clean(seeker.geography)
    provider_geo = _clean(provider.geography)

    if not seeker_geo or not provider_geo:
        return FactorScore(FactorKey.GEOGRAPHY, 0, "No geography data")
    if seeker_geo == provider_geo:
        return FactorScore(FactorKey.GEOGRAPHY, 100, "Exact geography match")

    if REGION_MAP.get(seeker_geo, seeker_geo) == REGION_MAP.get(provider_geo, provider_geo):
        return FactorScore(FactorKey.GEOGRAPHY, 80, "Same macro region")

    def contained(source: str, other: str) -> bool:
        parts = (part.strip() for part in source.split(","))
        return any(part and part in other for part in parts)

    if contained(seeker_geo, provider_geo) or contained(provider_geo, seeker_geo):
        return FactorScore(FactorKey.GEOGRAPHY, 60, "Partial geographic overlap")
    return FactorScore(FactorKey.GEOGRAPHY, 30, "Minimal geographic overlap")


def score_thesis(seeker: Seeker, provider: Provider) -> FactorScore:
    """Token overlap between what the seeker does and the provider's thesis."""
    seeker_tokens = (
        to_token_set(_clean(seeker.description))
        | to_token_set(seeker.sector)
        | to_token_set(seeker.business_model)
        | {tag.lower() for tag in parse_list_field(seeker.tags)}
    )
    thesis_tokens = to_token_set(_clean(provider.thesis))

    if not seeker_tokens or not thesis_tokens:
        return FactorScore(FactorKey.THESIS, 45, "Limited thesis information")

    score = round_half_up(40 + jaccard(seeker_tokens, thesis_tokens) * 60)
    if score >= 85:
        reason = "Thesis tightly matches this company's focus"
    elif score >= 65:
        reason = "Strong thematic overlap"
    elif score >= 45:
        reason = "Partial thesis alignment"
    else:
        reason = "Minimal thesis overlap"
    return FactorScore(FactorKey.THESIS, score, reason)


# Evaluation order is also the breakdown order
FACTOR_SCORERS: tuple[FactorScorer, ...] = (
    score_sector,
    score_stage,
    score_traction,
    score_check_size,
    score_geography,
    score_thesis,
)
