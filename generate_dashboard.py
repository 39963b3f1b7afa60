#!/usr/bin/env python3
"""
Dashboard Data Generator for the Team Health Dashboard.
========================================================
Reads a table of team health scores (CSV or JSON), runs every team through
the categorization engine, and writes a single JSON payload holding all
the decisions the rendering layer needs: category badges, colors, ranks,
spectrum positions, ceiling guidance and synthetic comparison peers. The
renderer displays these values as-is and makes no threshold decisions of
its own.

Usage:
    python generate_dashboard.py --scores teams.csv                 # new run dir
    python generate_dashboard.py --scores teams.json --output out.json
"""

import argparse
import json
import logging
import math
import sys
from pathlib import Path

import numpy as np
import pandas as pd

from health_engine import (
    CHS_CATEGORIES,
    CHS_THRESHOLDS,
    CHS_WEIGHTS,
    ceiling_guidance,
    combine_components,
    component_contributions,
    evaluate_score,
    is_healthy,
    load_config,
    needs_improvement,
    rank,
    spectrum_position,
    spectrum_zones,
    weights_from_config,
)
from peer_generator import generate_comparison_positions, generate_peers, seed_from_key
from run_context import RunContext
from schemas import CHSWeights, DashboardConfig

ROOT = Path(__file__).resolve().parent

REQUIRED_COLS = ["team", "health_score"]
DEFAULT_BENCHMARK_PERCENTILE = 50.0

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _safe(v):
    """Convert numpy/pandas types to JSON-safe Python types."""
    if v is None or (isinstance(v, float) and math.isnan(v)):
        return None
    if isinstance(v, (np.integer,)):
        return int(v)
    if isinstance(v, (np.floating,)):
        f = float(v)
        return None if math.isnan(f) else f
    if isinstance(v, np.bool_):
        return bool(v)
    return v


def _optional(row, col):
    v = _safe(row.get(col))
    return None if v is None else float(v)


def load_team_scores(path: Path, weights: CHSWeights = CHS_WEIGHTS) -> pd.DataFrame:
    """Load team scores from CSV or JSON (list of records).

    A blank health_score is derived from the css/trs/pgs components with
    combine_components() when css is present. Rows with neither are skipped.
    """
    path = Path(path)
    if path.suffix.lower() == ".json":
        with open(path) as f:
            df = pd.DataFrame(json.load(f))
    else:
        df = pd.read_csv(path)

    missing = [c for c in REQUIRED_COLS if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing required column(s): {missing}")

    for col in ("css", "trs", "pgs"):
        if col not in df.columns:
            df[col] = np.nan
        df[col] = pd.to_numeric(df[col], errors="raise")

    df["health_score"] = pd.to_numeric(df["health_score"], errors="raise")
    derive = df["health_score"].isna() & df["css"].notna()
    df["score_derived"] = derive
    if derive.any():
        df.loc[derive, "health_score"] = [
            combine_components(row["css"], _optional(row, "trs"),
                               _optional(row, "pgs"), weights)
            for _, row in df[derive].iterrows()
        ]
        logging.info(f"Derived health_score from components for "
                     f"{df.loc[derive, 'team'].tolist()}")

    blank = df["health_score"].isna()
    if blank.any():
        logging.warning(f"Skipping {int(blank.sum())} team(s) with no health_score: "
                        f"{df.loc[blank, 'team'].tolist()}")
        df = df[~blank].reset_index(drop=True)
    if "benchmark_percentile" not in df.columns:
        df["benchmark_percentile"] = DEFAULT_BENCHMARK_PERCENTILE
    df["benchmark_percentile"] = (pd.to_numeric(df["benchmark_percentile"])
                                  .fillna(DEFAULT_BENCHMARK_PERCENTILE))
    return df


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def evaluate_teams(df: pd.DataFrame, cfg: DashboardConfig) -> pd.DataFrame:
    """Add the per-team engine outputs as columns (one row per team)."""
    df = df.copy()
    if df.empty:
        for col in ("category", "label", "color", "maturity_rank", "teams_ahead",
                    "ordinal", "spectrum_position", "is_healthy", "needs_improvement"):
            df[col] = pd.Series(dtype=object)
        return df

    peer_count = cfg.comparison.peer_count
    evals = [evaluate_score(s) for s in df["health_score"]]
    ranks = [rank(s, peer_count) for s in df["health_score"]]

    df["category"] = [e.band.id for e in evals]
    df["label"] = [e.band.label for e in evals]
    df["color"] = [e.band.color for e in evals]
    df["maturity_rank"] = [e.band.rank for e in evals]
    df["teams_ahead"] = [r.teams_ahead for r in ranks]
    df["ordinal"] = [r.ordinal for r in ranks]
    df["spectrum_position"] = df["health_score"].map(spectrum_position)
    df["is_healthy"] = df["health_score"].map(is_healthy)
    df["needs_improvement"] = df["health_score"].map(needs_improvement)
    return df


def prepare_dashboard_data(df: pd.DataFrame, cfg: DashboardConfig) -> dict:
    """Build the JSON-safe payload consumed by the rendering layer."""
    comparison = cfg.comparison
    weights = weights_from_config(cfg)

    teams = []
    for _, row in df.iterrows():
        score = float(row["health_score"])
        band = evaluate_score(score).band
        guidance = ceiling_guidance(score)
        peers = generate_peers(score / 100, float(row["benchmark_percentile"]),
                               comparison.spectrum_peer_count,
                               comparison.peer_names)
        css, trs, pgs = (_optional(row, c) for c in ("css", "trs", "pgs"))
        seed = seed_from_key(str(row["team"]))
        teams.append({
            "team": _safe(row["team"]),
            "health_score": score,
            "score_derived": bool(row.get("score_derived", False)),
            "category": band.id,
            "label": band.label,
            "short_label": band.short_label,
            "colors": {"text": band.color, "bg": band.background_color,
                       "border": band.border_color},
            "description": band.description,
            "guidance": band.guidance,
            "interpretation": band.interpretation,
            "maturity_rank": band.rank,
            "rank": {"teams_ahead": _safe(row["teams_ahead"]),
                     "ordinal": _safe(row["ordinal"]),
                     "cohort_size": comparison.peer_count + 1},
            "spectrum_position": _safe(row["spectrum_position"]),
            "is_healthy": _safe(row["is_healthy"]),
            "needs_improvement": _safe(row["needs_improvement"]),
            "ceiling_guidance": guidance.model_dump() if guidance else None,
            "peers": [p.model_dump() for p in peers],
            "comparison_seed": seed,
            "comparison_positions": generate_comparison_positions(
                comparison.peer_count, seed),
            "contributions": component_contributions(css, trs, pgs, weights),
        })

    return {
        "thresholds": dict(CHS_THRESHOLDS),
        "legend": [band.model_dump() for band in CHS_CATEGORIES],
        "spectrum_zones": [zone.model_dump() for zone in spectrum_zones()],
        "comparison_positions": generate_comparison_positions(
            comparison.peer_count, comparison.hero_seed),
        "weights": weights.model_dump(),
        "teams": teams,
    }


def generate_dashboard(scores_path: Path, output_path: Path = None,
                       cfg: DashboardConfig = None, run_id: str = None) -> Path:
    """Generate the dashboard payload for a scores file.

    Args:
        scores_path: CSV/JSON of team scores.
        output_path: Where to write the JSON. Defaults to a new run directory
            (runs/<run_id>/<output.payload_file>) with config snapshot and
            metadata alongside.
        cfg: Validated config; loaded from config.yaml when omitted.

    Returns:
        Path to the written payload.
    """
    if cfg is None:
        cfg = load_config()

    df = evaluate_teams(load_team_scores(scores_path, weights_from_config(cfg)), cfg)
    payload = prepare_dashboard_data(df, cfg)

    if output_path is not None:
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(payload, f, indent=2)
        print(f"Dashboard data generated: {output_path} ({len(payload['teams'])} teams)")
        return output_path

    ctx = RunContext(run_id)
    try:
        ctx.save_config(cfg)
        for team in payload["teams"]:
            ctx.log.debug("Team evaluated", extra={
                "team": team["team"], "score": team["health_score"],
                "category": team["category"]})
        path = ctx.save_payload(payload, cfg.output.payload_file)
        ctx.save_metadata({"scores_file": str(scores_path),
                           "team_count": len(payload["teams"]),
                           "config_hash": ctx.config_hash(cfg)})
    finally:
        ctx.close()
    print(f"Dashboard data generated: {path} ({len(payload['teams'])} teams)")
    return path


def main():
    parser = argparse.ArgumentParser(description="Generate team health dashboard data")
    parser.add_argument("--scores", type=str, required=True,
                        help="CSV or JSON file with team and health_score columns")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to config.yaml (default: project config.yaml)")
    parser.add_argument("--output", type=str, default=None,
                        help="Output JSON path (default: runs/<run_id>/dashboard_data.json)")
    parser.add_argument("--run-id", type=str, default=None,
                        help="Run id for the runs/ directory (default: random)")
    args = parser.parse_args()

    cfg = load_config(Path(args.config)) if args.config else load_config()
    output = Path(args.output) if args.output else None
    try:
        generate_dashboard(Path(args.scores), output, cfg, args.run_id)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
