#!/usr/bin/env python3
"""
Run Context: reproducibility infrastructure for dashboard payload builds.

Provides:
  - run_id generation (UUID4)
  - Config snapshot saving
  - Payload + run metadata recording (timestamps, versions, parameters)
  - Structured JSON logging

Usage:
    ctx = RunContext()              # generates run_id, creates runs/{run_id}/
    ctx.save_config(cfg)            # snapshot of the validated config
    ctx.log.info("message", extra={"team": "Core API"})
    ctx.save_payload(payload)       # dashboard_data.json for the renderer
    ctx.save_metadata({...})        # save final run metadata
"""

import hashlib
import json
import logging
import platform
import subprocess
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import yaml

from schemas import DashboardConfig

ROOT = Path(__file__).resolve().parent
RUNS_DIR = ROOT / "runs"


class _JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ"),
            "level": record.levelname,
            "module": record.module,
            "func": record.funcName,
            "msg": record.getMessage(),
        }
        # Merge any extra fields (team, score, category, etc.)
        for key in ("team", "score", "category", "phase", "step",
                    "count", "run_id"):
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        return json.dumps(entry, default=str)


class RunContext:
    """Manages a single payload build's metadata, artifacts, and logging."""

    def __init__(self, run_id: str | None = None, runs_dir: Path = RUNS_DIR):
        self.run_id = run_id or uuid.uuid4().hex[:12]
        self.start_time = datetime.now()
        self.run_dir = Path(runs_dir) / self.run_id
        self.run_dir.mkdir(parents=True, exist_ok=True)

        # Set up structured file logger
        self.log = logging.getLogger(f"chs.{self.run_id}")
        self.log.setLevel(logging.DEBUG)
        self.log.propagate = False

        # Remove existing handlers to avoid duplicates on re-init
        for handler in list(self.log.handlers):
            handler.close()
        self.log.handlers.clear()

        # JSON file handler
        log_path = self.run_dir / "run.log"
        fh = logging.FileHandler(str(log_path), encoding="utf-8")
        fh.setFormatter(_JSONFormatter())
        self.log.addHandler(fh)

        # Console handler (human-readable)
        ch = logging.StreamHandler(sys.stdout)
        ch.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(message)s", datefmt="%H:%M:%S"))
        ch.setLevel(logging.INFO)
        self.log.addHandler(ch)

        self.log.info("Run started", extra={"run_id": self.run_id})

    def save_config(self, cfg: DashboardConfig) -> Path:
        """Save a snapshot of the config used for this run."""
        path = self.run_dir / "config.yaml"
        with open(path, "w") as f:
            yaml.dump(cfg.model_dump(), f, default_flow_style=False, sort_keys=False)
        self.log.info("Config snapshot saved", extra={"phase": "init"})
        return path

    def config_hash(self, cfg: DashboardConfig) -> str:
        """Deterministic hash of the config keys that change the payload."""
        relevant = {
            "comparison": cfg.comparison.model_dump(),
            "chs_weights": cfg.chs_weights.model_dump(),
        }
        raw = json.dumps(relevant, sort_keys=True)
        return hashlib.sha256(raw.encode()).hexdigest()[:12]

    def save_payload(self, payload: dict, name: str = "dashboard_data.json") -> Path:
        path = self.run_dir / name
        with open(path, "w") as f:
            json.dump(payload, f, indent=2)
        self.log.info(f"Payload saved: {name} ({len(payload.get('teams', []))} teams)",
                      extra={"phase": "artifact", "step": name,
                             "count": len(payload.get("teams", []))})
        return path

    def save_metadata(self, extra: dict | None = None) -> Path:
        """Save run metadata (call at end of the build)."""
        end_time = datetime.now()
        meta = {
            "run_id": self.run_id,
            "start_time": self.start_time.isoformat(),
            "end_time": end_time.isoformat(),
            "elapsed_seconds": round((end_time - self.start_time).total_seconds(), 1),
            "git_sha": _get_git_sha(),
            "python_version": sys.version,
            "platform": platform.platform(),
            "packages": _get_package_versions(),
        }
        if extra:
            meta.update(extra)
        path = self.run_dir / "meta.json"
        with open(path, "w") as f:
            json.dump(meta, f, indent=2, default=str)
        self.log.info("Run metadata saved", extra={"run_id": self.run_id})
        return path

    def close(self):
        for handler in list(self.log.handlers):
            handler.close()
        self.log.handlers.clear()


def _get_git_sha() -> str:
    """Get the current git commit SHA, or 'unknown' if not in a git repo."""
    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True, text=True, timeout=5,
            cwd=str(ROOT),
        )
        if result.returncode == 0:
            return result.stdout.strip()
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass
    return "unknown"


def _get_package_versions() -> dict:
    """Get versions of key dependencies."""
    import importlib.metadata

    versions = {}
    for pkg in ["pandas", "numpy", "pyyaml", "pydantic"]:
        try:
            versions[pkg] = importlib.metadata.version(pkg)
        except importlib.metadata.PackageNotFoundError:
            versions[pkg] = "unknown"
    return versions
