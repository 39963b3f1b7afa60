#!/usr/bin/env python3
"""
Deterministic synthetic peers for the comparison visuals.

The dashboard scatters "other teams" around the current team's marker for
visual density. These are not real benchmark data; they only need to look
plausible and to stay put between re-renders, so everything here is a pure
function of its inputs built on a sine hash:

    seeded_random(x) = frac(sin(x) * 10000)

The hash is NOT a PRNG and must not be replaced by one: golden snapshots
of the generated peers depend on the exact formula. Outputs are bit-exact
for a given platform libm; sin() implementations may differ in the last
ulp, which moves a score by about 1e-12.
"""

import logging
import math

from schemas import PeerSample

PEER_TEAM_NAMES = (
    "Platform Team", "Mobile Squad", "Core API", "DevOps",
    "Frontend Team", "Data Engineering", "Security", "Integrations",
    "Growth Team", "Infrastructure", "QA Team", "Design Systems",
)

SPECTRUM_PEER_COUNT = 12
PEER_SCORE_FLOOR = 0.02
PEER_SCORE_CEIL = 0.98

HERO_TEAM_COUNT = 47
HERO_SEED = 42
POSITION_FLOOR = 5.0
POSITION_CEIL = 95.0


def seeded_random(seed: float) -> float:
    """Sine-based hash of seed onto [0, 1)."""
    x = math.sin(seed) * 10000
    return x - math.floor(x)


def generate_peers(current_score: float, benchmark_percentile: float,
                   count: int = SPECTRUM_PEER_COUNT,
                   names=PEER_TEAM_NAMES) -> list[PeerSample]:
    """Synthetic peer scores biased by the team's benchmark percentile.

    Args:
        current_score: the team's score normalized to [0, 1].
        benchmark_percentile: 0-100. A peer is drawn below the team with
            probability (100 - benchmark_percentile) / 100, above it
            otherwise. Not clamped: values outside [0, 100] push that
            probability outside [0, 1].
        count: number of peers; zero or negative yields [].
        names: labels assigned cyclically by index.

    Returns:
        PeerSample list in index order, each score within [0.02, 0.98].
        Identical arguments always produce identical output.
    """
    peers = []
    below_probability = (100 - benchmark_percentile) / 100
    for i in range(max(count, 0)):
        r0 = seeded_random(i + benchmark_percentile)
        if r0 < below_probability:
            score = seeded_random(i * 2 + 1) * current_score * 0.85
        else:
            score = current_score + seeded_random(i * 3 + 2) * (1 - current_score) * 0.7
        score = max(PEER_SCORE_FLOOR, min(PEER_SCORE_CEIL, score))
        peers.append(PeerSample(label=names[i % len(names)], score=score))
    logging.debug(f"Generated {len(peers)} peers for score={current_score} "
                  f"percentile={benchmark_percentile}")
    return peers


def generate_comparison_positions(team_count: int = HERO_TEAM_COUNT,
                                  seed: int = HERO_SEED) -> list[float]:
    """Spectrum positions (percent, 5-95) for the hero comparison cohort."""
    positions = []
    for i in range(max(team_count, 0)):
        x = math.sin(seed * (i + 1) * 9999) * 10000
        normalized = x - math.floor(x)
        positions.append(max(POSITION_FLOOR, min(POSITION_CEIL, normalized * 100)))
    return positions


def seed_from_key(key: str) -> int:
    """Stable per-outcome seed: the sum of the key's code points.

    Used to give each team its own comparison cohort that does not change
    between payload builds.
    """
    return sum(ord(ch) for ch in key)
