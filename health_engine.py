#!/usr/bin/env python3
"""
Team Health Dashboard - Categorization & Derived Metrics Engine
================================================================
Single source of truth for interpreting a Composite Health Score (CHS).
Every badge, bar, spectrum marker and guidance block on the dashboard is
derived from the band table defined here, so changing a cut point changes
all derived behaviour consistently.

CHS is centered at 50 ("baseline / no change from average"); 50 is NOT
"satisfactory". Thresholds are asymmetric: 70 / 55 / 45 / 30.

Behaviour
---------
* Scores are clamped to [0, 100] before lookup; no function raises for a
  numeric score.
* If a band sequence that does not partition [0, 100] is passed in, the
  lookup falls back to the most severe band and logs a warning. The
  built-in table is validated at import, so it never takes that path.
"""

import logging
import math
from pathlib import Path

import yaml

from schemas import (
    CategoryBand,
    CeilingGuidance,
    CHSWeights,
    DashboardConfig,
    RankResult,
    ScoreEvaluation,
    SpectrumZone,
    ThresholdTable,
    SCORE_MAX,
    SCORE_MIN,
)

# =========================================================================
# A. Load configuration
# =========================================================================
ROOT = Path(__file__).resolve().parent
CONFIG_PATH = ROOT / "config.yaml"

DEFAULT_PEER_COUNT = 47


def load_config(path: Path = CONFIG_PATH) -> DashboardConfig:
    """Load and validate the YAML configuration file."""
    with open(path, "r") as f:
        raw = yaml.safe_load(f) or {}
    return DashboardConfig(**raw)


# =========================================================================
# B. Threshold table
# =========================================================================
_TABLE = ThresholdTable(bands=(
    CategoryBand(
        id="excellent", rank=5, label="Excellent", short_label="Excellent",
        min=70, max=101,  # inclusive of 100
        color="#006644", background_color="#E3FCEF", border_color="#ABF5D1",
        description="Significantly above baseline with strong trajectory",
        guidance="Exceptional performance! Consider mentoring other teams and documenting your approach.",
        interpretation="Significantly above baseline with strong trajectory",
    ),
    CategoryBand(
        id="good", rank=4, label="Good", short_label="Good",
        min=55, max=70,
        color="#00875A", background_color="#E3FCEF", border_color="#79F2C0",
        description="Above baseline with positive direction",
        guidance="Strong performance! Fine-tune and share best practices with other teams.",
        interpretation="Above baseline with positive direction",
    ),
    CategoryBand(
        id="average", rank=3, label="Average", short_label="Average",
        min=45, max=55,
        color="#6B778C", background_color="#F4F5F7", border_color="#DFE1E6",
        description="Near baseline, stable performance",
        guidance="You have stable practices in place. Look for improvement opportunities.",
        interpretation="Near baseline, stable performance",
    ),
    CategoryBand(
        id="below-average", rank=2, label="Below Average", short_label="Below Avg",
        min=30, max=45,
        color="#FF8B00", background_color="#FFF7ED", border_color="#FFE380",
        description="Under baseline, needs attention",
        guidance="Focus on building stronger practices. Identify and address key gaps.",
        interpretation="Below baseline, needs attention",
    ),
    CategoryBand(
        id="needs-attention", rank=1, label="Needs Attention", short_label="Attention",
        min=0, max=30,
        color="#DE350B", background_color="#FFEBE6", border_color="#FFBDAD",
        description="Significantly below baseline, intervention required",
        guidance="Requires immediate focus. Establish basic processes and capture work consistently.",
        interpretation="Significantly below baseline, intervention required",
    ),
))

CHS_CATEGORIES: tuple[CategoryBand, ...] = _TABLE.bands
_FALLBACK_BAND = min(CHS_CATEGORIES, key=lambda b: b.rank)

CHS_THRESHOLDS = {band.id.replace("-", "_"): band.min for band in CHS_CATEGORIES}


# =========================================================================
# C. Categorizer
# =========================================================================
def clamp_score(score: float) -> float:
    return max(SCORE_MIN, min(SCORE_MAX, score))


def resolve_category(score: float, bands=CHS_CATEGORIES) -> CategoryBand:
    """Return the first band whose [min, max) contains the clamped score.

    Falls back to the most severe band when nothing matches. That only
    happens for a band sequence that does not partition [0, 100]. An empty
    sequence falls back to the built-in needs-attention band.
    """
    clamped = clamp_score(score)
    for band in bands:
        if band.min <= clamped < band.max:
            return band

    fallback = min(bands, key=lambda b: b.rank) if bands else _FALLBACK_BAND
    logging.warning(f"No category band contains score {clamped}; "
                    f"falling back to '{fallback.id}'")
    return fallback


def evaluate_score(score: float, bands=CHS_CATEGORIES) -> ScoreEvaluation:
    return ScoreEvaluation(score=score, clamped_score=clamp_score(score),
                           band=resolve_category(score, bands))


def get_category_config(category_id: str, bands=CHS_CATEGORIES) -> CategoryBand:
    """Look up a band by id. Raises KeyError for an unknown id."""
    for band in bands:
        if band.id == category_id:
            return band
    raise KeyError(f"Unknown CHS category: {category_id!r}")


# =========================================================================
# D. Derived metrics
# =========================================================================
def category(score: float, bands=CHS_CATEGORIES) -> str:
    return resolve_category(score, bands).id


def maturity_rank(score: float, bands=CHS_CATEGORIES) -> int:
    """Maturity level 1-5, kept for the legacy five-level naming scheme."""
    return resolve_category(score, bands).rank


def maturity_name(score: float, bands=CHS_CATEGORIES) -> str:
    return resolve_category(score, bands).label


def is_healthy(score: float, bands=CHS_CATEGORIES) -> bool:
    """True if the score is in the Good or Excellent band (55+)."""
    return score >= get_category_config("good", bands).min


def needs_improvement(score: float, bands=CHS_CATEGORIES) -> bool:
    """True if the score is in Below Average or Needs Attention (<45)."""
    return score < get_category_config("average", bands).min


def color(score: float, bands=CHS_CATEGORIES) -> str:
    return resolve_category(score, bands).color


def category_colors(category_id: str, bands=CHS_CATEGORIES) -> dict:
    band = get_category_config(category_id, bands)
    return {"bg": band.background_color, "text": band.color,
            "border": band.border_color}


def interpretation(score: float, bands=CHS_CATEGORIES) -> str:
    return resolve_category(score, bands).interpretation


def round_half_up(x: float) -> int:
    """Round .5 toward +infinity (Python's round() is half-to-even)."""
    return math.floor(x + 0.5)


def rank(score: float, peer_count: int = DEFAULT_PEER_COUNT) -> RankResult:
    """Estimated position of the team within its comparison cohort.

    peer_count is the cohort size minus the team itself, so a perfect
    score ranks 1st of peer_count + 1.
    """
    teams_ahead = round_half_up((100 - score) / 100 * peer_count)
    return RankResult(teams_ahead=teams_ahead, ordinal=teams_ahead + 1,
                      cohort_size=peer_count + 1)


def spectrum_position(score: float) -> float:
    """Marker position (percent) on the spectrum bar: 100 - score.

    The bar is laid out Excellent -> Needs Attention left to right, so the
    score axis is mirrored. See spectrum_zones().
    """
    return 100 - score


def spectrum_zones(bands=CHS_CATEGORIES) -> list[SpectrumZone]:
    """Zones of the spectrum bar in left-to-right order.

    Each band [min, max) maps to positions (100 - max, 100 - min], so a
    marker placed with spectrum_position() lands in its own band's zone.
    """
    zones = []
    for band in sorted(bands, key=lambda b: b.min, reverse=True):
        zones.append(SpectrumZone(
            category=band.id,
            start=SCORE_MAX - min(band.max, SCORE_MAX),
            end=SCORE_MAX - band.min,
            color=band.color,
            background_color=band.background_color,
        ))
    return zones


# Ceiling-effect guidance for high-performing teams
CEILING_SUSTAINED_MIN = 80
CEILING_NEAR_MIN = 75

_SUSTAINED_EXCELLENCE = CeilingGuidance(
    kind="sustained-excellence",
    title="Maintaining Excellence",
    message=("Your team is operating at a high level. At this stage, maintaining "
             "excellence is itself an achievement. Focus on sustaining your strong "
             "practices and mentoring other teams."),
    cps_interpretation=("A Composite Progress Score (CPS) of 48-55 indicates "
                        "\"Sustained Excellence\" — holding steady at a high "
                        "level is a positive outcome."),
)

_NEAR_EXCELLENCE = CeilingGuidance(
    kind="near-excellence",
    title="Near Excellence",
    message=("Your team is performing very well with moderate room for improvement. "
             "A CPS of 50-55 is a healthy target."),
    cps_interpretation=("Focus on fine-tuning specific areas rather than expecting "
                        "large score jumps."),
)


def ceiling_guidance(score: float) -> CeilingGuidance | None:
    """Guidance for scores with limited upside, or None below 75."""
    if score >= CEILING_SUSTAINED_MIN:
        return _SUSTAINED_EXCELLENCE
    if score >= CEILING_NEAR_MIN:
        return _NEAR_EXCELLENCE
    return None


# =========================================================================
# E. Composite weighting (CSS / TRS / PGS)
# =========================================================================
# CSS = Current State Score, TRS = Trajectory Score, PGS = Peer Growth Score
CHS_WEIGHT_PRESETS = {
    "balanced": {
        "weights": CHSWeights(css=0.50, trs=0.35, pgs=0.15),
        "label": "Balanced (Recommended)",
        "description": "Equal emphasis on current practices and improvement trajectory",
    },
    "snapshot-focus": {
        "weights": CHSWeights(css=0.65, trs=0.25, pgs=0.10),
        "label": "Snapshot Focus",
        "description": "Emphasize where teams are today over where they're heading",
    },
    "growth-focus": {
        "weights": CHSWeights(css=0.40, trs=0.45, pgs=0.15),
        "label": "Growth Focus",
        "description": "Emphasize improvement trajectory over current position",
    },
    "peer-comparison": {
        "weights": CHSWeights(css=0.45, trs=0.30, pgs=0.25),
        "label": "Peer Comparison",
        "description": "Stronger emphasis on how teams compare to similar peers",
    },
}

CHS_WEIGHTS = CHS_WEIGHT_PRESETS["balanced"]["weights"]

COMPOSITE_MIN = 5.0
COMPOSITE_MAX = 95.0


def get_weights(preset: str) -> CHSWeights:
    return CHS_WEIGHT_PRESETS[preset]["weights"]


def weights_from_config(cfg: DashboardConfig) -> CHSWeights:
    """Explicit css/trs/pgs overrides win over the named preset."""
    wc = cfg.chs_weights
    if wc.css is not None:
        return CHSWeights(css=wc.css, trs=wc.trs, pgs=wc.pgs)
    return get_weights(wc.preset)


def combine_components(css: float, trs: float | None = None,
                       pgs: float | None = None,
                       weights: CHSWeights = CHS_WEIGHTS) -> float:
    """Weighted CHS from its components.

    Missing PGS: its weight is redistributed to CSS and TRS in proportion
    to their own weights. Missing TRS: CSS alone. Result is clamped to
    [5, 95] and rounded to one decimal.
    """
    if trs is not None and pgs is not None:
        chs = weights.css * css + weights.trs * trs + weights.pgs * pgs
    elif trs is not None and weights.css + weights.trs > 0:
        base = weights.css + weights.trs
        css_w = weights.css + weights.pgs * weights.css / base
        trs_w = weights.trs + weights.pgs * weights.trs / base
        chs = css_w * css + trs_w * trs
    else:
        chs = css

    chs = max(COMPOSITE_MIN, min(COMPOSITE_MAX, chs))
    return round_half_up(chs * 10) / 10


def component_contributions(css: float | None, trs: float | None = None,
                            pgs: float | None = None,
                            weights: CHSWeights = CHS_WEIGHTS) -> dict:
    """Whole-point contribution of each component, as shown on hover.

    CSS defaults to the 50 baseline when absent; absent TRS/PGS add 0.
    """
    css_score = round_half_up(css if css is not None else 50)
    out = {"css": round_half_up(css_score * weights.css), "trs": 0, "pgs": 0}
    if trs is not None:
        out["trs"] = round_half_up(round_half_up(trs) * weights.trs)
    if pgs is not None:
        out["pgs"] = round_half_up(round_half_up(pgs) * weights.pgs)
    return out
