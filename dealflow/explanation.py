"""Plain-language explanation of a match.

Built only from the numbers already computed, so the same inputs always
produce the same text.
"""
from __future__ import annotations

import re
from typing import Sequence

from .entities import Provider, Seeker
from .factors import FactorResult, check_size_bounds, round_half_up

THESIS_SUMMARY_LENGTH = 140
TOP_FACTOR_COUNT = 3

_SENTENCE_BREAK = re.compile(r"[.\n]")


def describe_match_quality(score: int) -> str:
    if score >= 85:
        return "strong"
    if score >= 70:
        return "good"
    if score >= 55:
        return "balanced"
    return "developing"


def format_list(items: Sequence[str]) -> str:
    """Join with commas and a final "and" (Oxford comma for three or more)."""
    if not items:
        return ""
    if len(items) == 1:
        return items[0]
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return f"{', '.join(items[:-1])}, and {items[-1]}"


def _fixed(value: float, places: int) -> float:
    """``value`` rounded to ``places`` decimals, halves up."""
    scale = 10 ** places
    return round_half_up(value * scale) / scale


def format_money(amount: float | None) -> str:
    if not amount or amount <= 0:
        return "$0"
    if amount >= 1_000_000:
        return f"${_fixed(amount / 1_000_000, 1):.1f}M"
    if amount >= 1_000:
        return f"${_fixed(amount / 1_000, 0):.0f}K"
    if float(amount).is_integer():
        return f"${int(amount):,}"
    return f"${_fixed(amount, 2):,.2f}"


def format_check_size_range(low: float | None, high: float | None) -> str:
    if low and high:
        return f"{format_money(low)} - {format_money(high)}"
    if low:
        return f"from {format_money(low)}"
    if high:
        return f"up to {format_money(high)}"
    return "their typical range"


def funding_alignment_sentence(seeker: Seeker, provider: Provider) -> str:
    """Where the round sits relative to the provider's checks ("" if unknown)."""
    target = seeker.funding_target
    low, high = check_size_bounds(provider)
    if not target or target <= 0 or (low is None and high is None):
        return ""

    check_range = format_check_size_range(low, high)
    within_min = low is None or target >= low
    within_max = high is None or target <= high

    if within_min and within_max:
        seeker_label = seeker.name or "This company"
        return (
            f" {seeker_label} is raising {format_money(target)}, which fits "
            f"{provider.label}'s typical check size of {check_range}."
        )

    relation = "below" if high is not None and target > high else "above"
    return (
        f" {provider.label} typically invests {check_range}, which is "
        f"{relation} this round of {format_money(target)}."
    )


def summarize_thesis(thesis: str | None) -> str:
    """First sentence of the thesis, else its first 140 characters."""
    if not thesis:
        return ""
    for part in _SENTENCE_BREAK.split(thesis):
        if part.strip():
            return part.strip()
    return thesis[:THESIS_SUMMARY_LENGTH]


def build_explanation(
    seeker: Seeker,
    provider: Provider,
    breakdown: Sequence[FactorResult],
    score: int,
) -> str:
    """Compose the explanation paragraph for a scored pair.

    Args:
        seeker: Seeker record
        provider: Provider record
        breakdown: Weighted factor results
        score: Overall match score

    Returns:
        "This is a {quality} match based on {factors}.{funding}{thesis}"
    """
    top_factors = sorted(breakdown, key=lambda item: item.score, reverse=True)[:TOP_FACTOR_COUNT]
    labels = [f"{item.label} ({item.score}%)" for item in top_factors]
    factor_phrase = f"based on {format_list(labels)}" if labels else "based on available data"

    thesis_summary = summarize_thesis(provider.thesis)
    thesis_sentence = f" {provider.label} focuses on {thesis_summary}." if thesis_summary else ""

    text = (
        f"This is a {describe_match_quality(score)} match {factor_phrase}."
        f"{funding_alignment_sentence(seeker, provider)}{thesis_sentence}"
    )
    return text.strip()
