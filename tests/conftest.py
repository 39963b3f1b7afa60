"""Shared fixtures for Team Health Dashboard tests."""

import sys
from pathlib import Path

import pytest
import yaml


def pytest_addoption(parser):
    parser.addoption("--regen", action="store_true", default=False,
                     help="Regenerate golden file")

# Ensure project root is importable
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

FIXTURES = Path(__file__).resolve().parent / "fixtures"


@pytest.fixture
def raw_cfg():
    """The production config.yaml as a plain dict."""
    with open(ROOT / "config.yaml") as f:
        return yaml.safe_load(f)


@pytest.fixture
def cfg(raw_cfg):
    """The production config.yaml, validated."""
    from schemas import DashboardConfig
    return DashboardConfig(**raw_cfg)


@pytest.fixture
def scores_csv():
    return FIXTURES / "team_scores.csv"
