#!/usr/bin/env python3
"""
Typed schemas for the Team Health Dashboard engine.

Provides Pydantic models for the category band table, the per-call
evaluation records handed to the rendering layer, and the config.yaml
contents. These schemas are documentation-as-code: they define what the
engine expects and produces, making assumptions explicit and testable.
"""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator


CategoryId = Literal["excellent", "good", "average", "below-average", "needs-attention"]

SCORE_MIN = 0.0
SCORE_MAX = 100.0


# =========================================================================
# Category bands
# =========================================================================

class CategoryBand(BaseModel):
    """One contiguous score range [min, max) with its display metadata.

    The top band uses max=101 so that a score of exactly 100 falls inside it.
    """
    id: CategoryId
    rank: int = Field(..., ge=1, le=5)   # 1 = needs-attention, 5 = excellent
    label: str
    short_label: str
    min: float
    max: float
    color: str
    background_color: str
    border_color: str
    description: str
    guidance: str
    interpretation: str

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def min_below_max(self) -> "CategoryBand":
        if self.min >= self.max:
            raise ValueError(
                f"Band '{self.id}' has min {self.min} >= max {self.max}"
            )
        return self


def validate_bands(bands) -> list[str]:
    """Return every reason the band sequence fails to partition [0, 100].

    An empty list means the table is well-formed: no gaps, no overlaps,
    unique ids and ranks, and rank increasing with the score range.
    """
    problems = []
    if not bands:
        return ["No category bands defined"]

    ids = [b.id for b in bands]
    if len(set(ids)) != len(ids):
        problems.append(f"Duplicate band ids: {ids}")
    ranks = [b.rank for b in bands]
    if len(set(ranks)) != len(ranks):
        problems.append(f"Duplicate band ranks: {ranks}")

    ordered = sorted(bands, key=lambda b: b.min)
    if ordered[0].min > SCORE_MIN:
        problems.append(f"Gap below {ordered[0].min}: scores from 0 are uncovered")
    if ordered[-1].max <= SCORE_MAX:
        problems.append(f"Top band '{ordered[-1].id}' ends at {ordered[-1].max}; 100 is uncovered")

    for lower, upper in zip(ordered, ordered[1:]):
        if lower.max < upper.min:
            problems.append(f"Gap between '{lower.id}' and '{upper.id}': [{lower.max}, {upper.min})")
        elif lower.max > upper.min:
            problems.append(f"Overlap between '{lower.id}' and '{upper.id}': [{upper.min}, {lower.max})")
        if lower.rank >= upper.rank:
            problems.append(f"Rank of '{upper.id}' ({upper.rank}) must exceed rank of '{lower.id}' ({lower.rank})")
    return problems


class ThresholdTable(BaseModel):
    """Validated, immutable set of category bands in lookup order."""
    bands: tuple[CategoryBand, ...]

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def bands_partition_score_range(self) -> "ThresholdTable":
        problems = validate_bands(self.bands)
        if problems:
            raise ValueError(
                "Category bands must partition [0, 100]: " + "; ".join(problems)
            )
        return self


# =========================================================================
# Per-call evaluation records
# =========================================================================

class ScoreEvaluation(BaseModel):
    """A resolved band together with the score that produced it."""
    score: float
    clamped_score: float = Field(..., ge=SCORE_MIN, le=SCORE_MAX)
    band: CategoryBand

    model_config = ConfigDict(frozen=True)

    @property
    def category(self) -> str:
        return self.band.id


class RankResult(BaseModel):
    teams_ahead: int
    ordinal: int
    cohort_size: int

    model_config = ConfigDict(frozen=True)


class CeilingGuidance(BaseModel):
    """Advisory text shown to high scorers with limited remaining upside."""
    kind: Literal["sustained-excellence", "near-excellence"]
    title: str
    message: str
    cps_interpretation: str

    model_config = ConfigDict(frozen=True)


class PeerSample(BaseModel):
    """Synthetic comparison team on a normalized [0, 1] axis."""
    label: str
    score: float = Field(..., ge=0.02, le=0.98)

    model_config = ConfigDict(frozen=True)


class SpectrumZone(BaseModel):
    """One colored zone of the mirrored spectrum bar, in position percent."""
    category: CategoryId
    start: float
    end: float
    color: str
    background_color: str

    model_config = ConfigDict(frozen=True)

    @computed_field
    @property
    def width(self) -> float:
        return self.end - self.start


class CHSWeights(BaseModel):
    """Composite weights for the CSS / TRS / PGS components. Must sum to 1."""
    css: float = Field(0.50, ge=0, le=1)
    trs: float = Field(0.35, ge=0, le=1)
    pgs: float = Field(0.15, ge=0, le=1)

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "CHSWeights":
        total = self.css + self.trs + self.pgs
        if abs(total - 1.0) > 0.005:
            raise ValueError(f"CHS weights must sum to 1 (got {total})")
        return self


# =========================================================================
# DashboardConfig: top-level config schema
# =========================================================================

class DashboardConfig(BaseModel):
    """Schema for validated config.yaml contents."""

    class ComparisonConfig(BaseModel):
        peer_count: int = Field(47, ge=1)   # cohort size minus the team itself
        spectrum_peer_count: int = Field(12, ge=0)
        hero_seed: int = 42
        peer_names: list[str] = [
            "Platform Team", "Mobile Squad", "Core API", "DevOps",
            "Frontend Team", "Data Engineering", "Security", "Integrations",
            "Growth Team", "Infrastructure", "QA Team", "Design Systems",
        ]

        @field_validator("peer_names")
        @classmethod
        def names_not_empty(cls, v: list[str]) -> list[str]:
            if not v:
                raise ValueError("peer_names must contain at least one name")
            return v

    class WeightsConfig(BaseModel):
        preset: Literal["balanced", "snapshot-focus", "growth-focus", "peer-comparison"] = "balanced"
        css: Optional[float] = None
        trs: Optional[float] = None
        pgs: Optional[float] = None

        @model_validator(mode="after")
        def overrides_complete(self) -> "DashboardConfig.WeightsConfig":
            given = [w for w in (self.css, self.trs, self.pgs) if w is not None]
            if given and len(given) != 3:
                raise ValueError("Weight overrides need all of css, trs and pgs")
            if given and abs(sum(given) - 1.0) > 0.005:
                raise ValueError(f"CHS weights must sum to 1 (got {sum(given)})")
            return self

    class OutputConfig(BaseModel):
        payload_file: str = "dashboard_data.json"

    comparison: ComparisonConfig = ComparisonConfig()
    chs_weights: WeightsConfig = WeightsConfig()
    output: OutputConfig = OutputConfig()

    model_config = ConfigDict(extra="allow")
