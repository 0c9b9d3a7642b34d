"""Shared fixtures: in-memory Drive, controllable clock, a configured project directory."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from tests.fakes.fake_drive import SECRET, FakeClock, FakeDrive


@pytest.fixture()
def fake_drive() -> FakeDrive:
    return FakeDrive()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def project_root(tmp_path: Path) -> Path:
    """A project directory with a minimal settings.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    settings = {
        "data_dir": "./data",
        "google": {"work_dir": "Issues"},
        "scheduler": {"delay_seconds": 60, "timezone": "America/New_York"},
        "secrets": {"github_secret": SECRET},
    }
    (config_dir / "settings.yaml").write_text(yaml.safe_dump(settings), encoding="utf-8")
    return tmp_path
