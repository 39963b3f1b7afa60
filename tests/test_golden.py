"""Golden-file regression test.

Runs the peer generator and the hero comparison positions on fixed inputs
and verifies the output matches a known-good snapshot. The visuals must
not jitter between re-renders, so any change here is a breaking change.

To regenerate the golden file after an intentional change:
    pytest tests/test_golden.py --regen

"""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
from health_engine import category, rank, spectrum_position
from peer_generator import generate_comparison_positions, generate_peers

FIXTURES = Path(__file__).resolve().parent / "fixtures"
GOLDEN_PATH = FIXTURES / "golden_peers.json"

CASES = [
    (0.6, 70, 12),
    (0.25, 10, 12),
    (0.9, 98, 12),
    (0.5, 50, 47),
]


def _snapshot():
    return {
        "peers": [
            {"current": c, "percentile": p, "count": n,
             "samples": [s.model_dump() for s in generate_peers(c, p, n)]}
            for c, p, n in CASES
        ],
        "comparison_positions": generate_comparison_positions(47, 42),
    }


def test_golden_file(request):
    """Compare generator output against golden file."""
    actual = _snapshot()

    regen = request.config.getoption("--regen", default=False)
    if regen:
        GOLDEN_PATH.parent.mkdir(parents=True, exist_ok=True)
        with open(GOLDEN_PATH, "w") as f:
            json.dump(actual, f, indent=2)
        pytest.skip(f"Golden file written at {GOLDEN_PATH}. Re-run to verify.")
    assert GOLDEN_PATH.exists(), f"{GOLDEN_PATH} missing; create it with --regen"

    with open(GOLDEN_PATH) as f:
        expected = json.load(f)

    # JSON floats round-trip exactly, so compare bit-for-bit
    assert actual == expected


def test_engine_reference_values():
    """Hand-checked values that must never drift."""
    assert [category(s) for s in (29.9, 30, 44.9, 45, 54.9, 55, 69.9, 70, 100)] == [
        "needs-attention", "below-average", "below-average", "average",
        "average", "good", "good", "excellent", "excellent",
    ]
    assert rank(50, 47).ordinal == 25
    assert spectrum_position(37.5) == 62.5
