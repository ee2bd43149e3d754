"""Pytest configuration and fixtures."""

import json
import shutil
from collections.abc import Callable
from datetime import date
from pathlib import Path
from typing import Any

import pytest

from transit_api import convert
from transit_api.gtfs.models import ConvertConfig

# Pacific/Honolulu has no DST, America/Los_Angeles is on standard time here
REFERENCE_DATE = date(2024, 1, 15)


@pytest.fixture
def gtfs_minimal() -> Path:
    """Path to minimal GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_minimal"


@pytest.fixture
def gtfs_branching() -> Path:
    """Path to branching GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_branching"


@pytest.fixture
def gtfs_edgecases() -> Path:
    """Path to edge cases GTFS fixture."""
    return Path(__file__).parent / "fixtures" / "gtfs_edgecases"


@pytest.fixture
def tmp_output(tmp_path: Path) -> Path:
    """Temporary output directory."""
    output_dir = tmp_path / "api"
    output_dir.mkdir()
    yield output_dir
    # Cleanup
    if output_dir.exists():
        shutil.rmtree(output_dir)


@pytest.fixture
def make_feed(tmp_path: Path, gtfs_minimal: Path) -> Callable[..., Path]:
    """Copy the minimal feed and overwrite some of its tables."""

    def _make_feed(**tables: str) -> Path:
        feed_dir = tmp_path / "feed"
        shutil.copytree(gtfs_minimal, feed_dir, dirs_exist_ok=True)
        for name, content in tables.items():
            (feed_dir / f"{name}.txt").write_text(content, encoding="utf-8")
        return feed_dir

    return _make_feed


@pytest.fixture
def api_data(gtfs_minimal: Path, tmp_output: Path) -> dict[str, Any]:
    """Aggregate api.json built from the minimal fixture."""
    convert(
        str(gtfs_minimal),
        str(tmp_output),
        ConvertConfig(
            input_path=str(gtfs_minimal),
            output_path=str(tmp_output),
            reference_date=REFERENCE_DATE,
        ),
    )
    with open(tmp_output / "api.json", encoding="utf-8") as f:
        return json.load(f)
