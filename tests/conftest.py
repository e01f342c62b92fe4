"""Pytest configuration for headless pygame tests."""

from __future__ import annotations

import os
import random
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def data_dir(monkeypatch, tmp_path: Path) -> Path:
    """Redirect settings and score files into a temporary directory."""
    from snakegame import utils

    monkeypatch.setattr(utils, "DATA_DIR", tmp_path)
    monkeypatch.setattr(utils, "SETTINGS_FILE", tmp_path / "settings.json")
    monkeypatch.setattr(utils, "SCORES_FILE", tmp_path / "scores.json")
    return tmp_path
