"""
Tests for the individual factor scorers.
"""

import pytest

from dealflow.entities import FactorKey, Provider, Seeker
from dealflow.factors import (
    FactorResult,
    FactorScore,
    canonical_stage,
    check_size_bounds,
    ratio_to_score,
    round_half_up,
    score_check_size,
    score_geography,
    score_sector,
    score_stage,
    score_thesis,
    score_traction,
)


class TestRounding:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (81.5, 82), (46.5, 47), (2.49, 2), (-0.5, 0)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_ratio_to_score_clamps(self):
        assert ratio_to_score(-1) == 0
        assert ratio_to_score(0.416) == 42
        assert ratio_to_score(3) == 100


class TestSector:
    def test_identical_sector(self):
        result = score_sector(Seeker(sector="AI/ML"), Provider(sector="AI/ML"))

        assert result.key == FactorKey.SECTOR
        assert result.score == 100
        assert result.reason == "Excellent keyword alignment"

    def test_synonyms_score_high(self):
        result = score_sector(Seeker(sector="Fintech"), Provider(sector="Payments"))

        assert result.score == 85

    def test_unrelated_sector(self):
        result = score_sector(Seeker(sector="AI/ML"), Provider(sector="ClimateTech"))

        assert result.score == 0
        assert result.reason == "Limited keyword overlap"

    def test_tags_contribute(self):
        seeker = Seeker(sector="Logistics", tags='["AI"]')
        provider = Provider(sector="Artificial Intelligence")

        assert score_sector(seeker, provider).score > 0

    def test_missing_data(self):
        assert score_sector(Seeker(), Provider()).reason == "No sector data available"
        assert score_sector(Seeker(), Provider()).score == 0

        result = score_sector(Seeker(sector="AI"), Provider())
        assert result.score == 0
        assert result.reason == "Incomplete sector data for comparison"


class TestStage:
    @pytest.mark.parametrize(
        "seeker_stage,provider_stage,expected",
        [
            ("Series A", "series a", 100),
            ("Seed", "Series A", 85),
            ("Seed", "Series B", 60),
            ("Pre-Seed", "Growth", 25),
            ("Bridge", "Seed", 55),
            ("Bridge", "bridge", 100),
            ("Series-A", "Series A", 100),
            ("Series_B", "Series B", 100),
            ("Preseed", "Seed", 85),
            (None, "Seed", 0),
            ("Seed", "", 0),
        ],
    )
    def test_ladder_distance(self, seeker_stage, provider_stage, expected):
        result = score_stage(Seeker(stage=seeker_stage), Provider(stage=provider_stage))

        assert result.score == expected

    def test_canonical_stage(self):
        assert canonical_stage("Late-Stage") == "late stage"
        assert canonical_stage("Growth Stage") == "growth"
        assert canonical_stage(None) == ""


class TestTraction:
    def test_below_benchmarks(self, base_seeker):
        result = score_traction(base_seeker, Provider())

        assert result.score == 33
        assert result.reason == "Traction below stage benchmarks"

    def test_outstanding(self):
        seeker = Seeker(stage="Seed", revenue=1_000_000, revenue_growth=200, customers=2_000)

        result = score_traction(seeker, Provider())

        assert result.score == 100
        assert result.reason == "Outstanding traction vs. stage benchmarks"

    def test_ratios_are_capped(self):
        seeker = Seeker(stage="Seed", revenue=50_000_000, revenue_growth=10_000, customers=10**7)

        assert score_traction(seeker, Provider()).score == 100

    def test_no_metrics(self):
        result = score_traction(Seeker(stage="Seed"), Provider())

        assert result.score == 0
        assert result.reason == "No traction data shared"

    def test_unmapped_stage_uses_default_target(self):
        seeker = Seeker(stage="Bridge", revenue=500_000)

        assert score_traction(seeker, Provider()).score == 25


class TestCheckSize:
    def test_inside_range(self, base_seeker, base_provider):
        result = score_check_size(base_seeker, base_provider)

        assert result.score == 100
        assert result.reason == "Funding needs inside this investor's check size"

    def test_above_range(self, base_seeker, base_provider):
        seeker = base_seeker.model_copy(update={"funding_target": 30_000_000})

        result = score_check_size(seeker, base_provider)

        assert result.score == 39
        assert result.reason == "Funding round slightly outside typical check size"

    def test_below_range(self, base_seeker, base_provider):
        seeker = base_seeker.model_copy(update={"funding_target": 1_000_000})

        assert score_check_size(seeker, base_provider).score == 77

    def test_open_ended_ranges(self):
        seeker = Seeker(funding_target=10_000_000)

        assert score_check_size(seeker, Provider(check_size_min=3_000_000)).score == 100
        assert score_check_size(Seeker(funding_target=5_000_000), Provider(check_size_max=7_000_000)).score == 100

    def test_missing_target(self, base_provider):
        result = score_check_size(Seeker(), base_provider)

        assert result.score == 0
        assert result.reason == "Missing check size information"

    def test_unknown_range(self, base_seeker):
        result = score_check_size(base_seeker, Provider(check_size_min=0, check_size_max=None))

        assert result.score == 40

    def test_inverted_range_is_swapped(self, base_seeker):
        provider = Provider(check_size_min=7_000_000, check_size_max=3_000_000)

        assert check_size_bounds(provider) == (3_000_000, 7_000_000)
        assert score_check_size(base_seeker, provider).score == 100

    def test_score_never_below_floor(self):
        seeker = Seeker(funding_target=1_000_000_000)
        provider = Provider(check_size_min=10_000, check_size_max=20_000)

        assert 20 <= score_check_size(seeker, provider).score < 25


class TestGeography:
    @pytest.mark.parametrize(
        "seeker_geo,provider_geo,expected",
        [
            ("San Francisco, CA", "san francisco, ca", 100),
            ("USA", "North America", 80),
            ("Germany", "Europe", 80),
            ("San Francisco, CA", "CA", 60),
            ("Berlin", "Tokyo", 30),
            ("Germany", "Japan", 30),
            ("USA,", "Tokyo", 30),
            (None, "USA", 0),
        ],
    )
    def test_tiers(self, seeker_geo, provider_geo, expected):
        result = score_geography(Seeker(geography=seeker_geo), Provider(geography=provider_geo))

        assert result.score == expected


class TestThesis:
    def test_partial_overlap(self, base_seeker, base_provider):
        result = score_thesis(base_seeker, base_provider)

        assert result.score == 49
        assert result.reason == "Partial thesis alignment"

    def test_identical_text(self):
        seeker = Seeker(description="climate software")
        provider = Provider(thesis="Climate software")

        result = score_thesis(seeker, provider)

        assert result.score == 100
        assert result.reason == "Thesis tightly matches this company's focus"

    def test_no_thesis(self, base_seeker):
        result = score_thesis(base_seeker, Provider())

        assert result.score == 45
        assert result.reason == "Limited thesis information"

    def test_no_overlap_floor(self):
        result = score_thesis(Seeker(description="robots"), Provider(thesis="consumer apparel"))

        assert result.score == 40
        assert result.reason == "Minimal thesis overlap"


class TestFactorResult:
    def test_contribution_is_derived(self):
        result = FactorResult.from_score(FactorScore(FactorKey.TRACTION, 33, "x"), 20, 100)

        assert result.contribution == 7
        assert result.label == "traction metrics"
        assert result.to_dict()["key"] == "traction"

    def test_contribution_cannot_be_passed(self):
        with pytest.raises(TypeError):
            FactorResult(FactorKey.SECTOR, 50, 10, "x", 100, contribution=5)
