"""Tests for metrics derived from the categorizer: health checks, colors,
interpretation text, cohort rank, spectrum placement and ceiling guidance.
"""

import sys
import typing
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from health_engine import (
    CHS_CATEGORIES,
    category,
    category_colors,
    ceiling_guidance,
    color,
    interpretation,
    is_healthy,
    needs_improvement,
    rank,
    resolve_category,
    round_half_up,
    spectrum_position,
    spectrum_zones,
)
from schemas import CeilingGuidance

CUT_POINTS = [70, 55, 45, 30]


class TestHealthChecks:
    def test_is_healthy(self):
        assert is_healthy(54) is False
        assert is_healthy(54.999) is False
        assert is_healthy(55) is True
        assert is_healthy(100) is True

    def test_needs_improvement(self):
        assert needs_improvement(44.99) is True
        assert needs_improvement(45) is False
        assert needs_improvement(0) is True

    def test_checks_agree_with_category(self):
        for s in [x / 10 for x in range(0, 1001)]:
            assert is_healthy(s) == (category(s) in ("good", "excellent"))
            assert needs_improvement(s) == (category(s) in ("below-average", "needs-attention"))

    def test_checks_follow_table(self):
        """Moving the 'good' cut point moves is_healthy with it."""
        bands = list(CHS_CATEGORIES)
        bands[1] = bands[1].model_copy(update={"min": 60})
        bands[2] = bands[2].model_copy(update={"max": 60})
        assert is_healthy(57, bands) is False
        assert is_healthy(60, bands) is True


class TestColors:
    def test_color_projection(self):
        assert color(85) == "#006644"
        assert color(60) == "#00875A"
        assert color(50) == "#6B778C"
        assert color(35) == "#FF8B00"
        assert color(5) == "#DE350B"

    def test_category_colors(self):
        assert category_colors("needs-attention") == {
            "bg": "#FFEBE6", "text": "#DE350B", "border": "#FFBDAD"}


class TestInterpretation:
    @pytest.mark.parametrize("cut", CUT_POINTS)
    def test_agrees_with_category_at_cut_points(self, cut):
        for s in (cut, cut - 0.001, cut - 0.1):
            assert interpretation(s) == resolve_category(s).interpretation

    def test_text_per_band(self):
        assert interpretation(70) == "Significantly above baseline with strong trajectory"
        assert interpretation(69.9) == "Above baseline with positive direction"
        assert interpretation(55) == "Above baseline with positive direction"
        assert interpretation(54.9) == "Near baseline, stable performance"
        assert interpretation(45) == "Near baseline, stable performance"
        assert interpretation(44.9) == "Below baseline, needs attention"
        assert interpretation(30) == "Below baseline, needs attention"
        assert interpretation(29.9) == "Significantly below baseline, intervention required"

    def test_severity_order_preserved(self):
        """Higher score never maps to a more severe interpretation."""
        severity = {b.interpretation: b.rank for b in CHS_CATEGORIES}
        levels = [severity[interpretation(s / 10)] for s in range(0, 1001)]
        assert levels == sorted(levels)


class TestRank:
    def test_top_score(self):
        r = rank(100, 47)
        assert (r.teams_ahead, r.ordinal) == (0, 1)

    def test_bottom_score(self):
        r = rank(0, 47)
        assert (r.teams_ahead, r.ordinal) == (47, 48)

    def test_half_rounds_up(self):
        r = rank(50, 47)  # 23.5 teams ahead
        assert (r.teams_ahead, r.ordinal) == (24, 25)

    def test_default_cohort(self):
        r = rank(75)
        assert r.teams_ahead == 12  # 11.75
        assert r.cohort_size == 48

    def test_monotonic(self):
        ordinals = [rank(s).ordinal for s in range(0, 101)]
        assert ordinals == sorted(ordinals, reverse=True)

    def test_round_half_up(self):
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2
        assert round_half_up(-2.5) == -2


class TestSpectrum:
    @pytest.mark.parametrize("score", [0, 12.5, 50, 70, 100])
    def test_position(self, score):
        assert spectrum_position(score) == 100 - score

    def test_position_endpoints(self):
        assert spectrum_position(0) == 100
        assert spectrum_position(100) == 0

    def test_zone_order_and_widths(self):
        zones = spectrum_zones()
        assert [z.category for z in zones] == [
            "excellent", "good", "average", "below-average", "needs-attention"]
        assert [z.width for z in zones] == [30, 15, 10, 15, 30]

    def test_zones_tile_the_bar(self):
        zones = spectrum_zones()
        assert zones[0].start == 0
        assert zones[-1].end == 100
        for left, right in zip(zones, zones[1:]):
            assert left.end == right.start

    @pytest.mark.parametrize("score", [95, 80, 60, 50, 40, 33, 10, 1])
    def test_marker_lands_in_own_zone(self, score):
        pos = spectrum_position(score)
        zone = next(z for z in spectrum_zones() if z.category == category(score))
        assert zone.start < pos < zone.end

    def test_zone_colors_from_bands(self):
        zones = {z.category: z for z in spectrum_zones()}
        assert zones["average"].background_color == "#F4F5F7"


class TestCeilingGuidance:
    def test_sustained_excellence(self):
        g = ceiling_guidance(80)
        assert g.kind == "sustained-excellence"
        assert g.title == "Maintaining Excellence"
        assert ceiling_guidance(100).kind == "sustained-excellence"

    def test_near_excellence(self):
        g = ceiling_guidance(79)
        assert g is not None
        assert g.kind == "near-excellence"
        assert ceiling_guidance(75).kind == "near-excellence"

    def test_none_below_75(self):
        assert ceiling_guidance(74.9) is None
        assert ceiling_guidance(0) is None

    def test_two_distinct_payloads(self):
        assert ceiling_guidance(90).message != ceiling_guidance(77).message
        assert ceiling_guidance(90) == ceiling_guidance(85)

    def test_return_annotation(self):
        hints = typing.get_type_hints(ceiling_guidance)
        assert hints["return"] == typing.Optional[CeilingGuidance]
