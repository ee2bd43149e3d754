"""End-to-end tests."""

import json
from datetime import date
from pathlib import Path

import pytest

from transit_api import convert, validate
from transit_api.gtfs.models import ConvertConfig

REFERENCE_DATE = date(2024, 1, 15)


def run_convert(gtfs: Path, output: Path, **options):
    return convert(
        str(gtfs),
        str(output),
        ConvertConfig(
            input_path=str(gtfs),
            output_path=str(output),
            reference_date=REFERENCE_DATE,
            **options,
        ),
    )


def test_end_to_end_minimal(gtfs_minimal: Path, tmp_output: Path) -> None:
    """Test complete pipeline on minimal fixture."""
    manifest = run_convert(gtfs_minimal, tmp_output)

    # Check manifest
    assert manifest.schema_version == 1
    assert manifest.stats == {
        "stops": 4,
        "routes": 2,
        "trips": 4,
        "stop_times": 11,
        "calendars": 3,
    }
    assert manifest.inputs["reference_date"] == "2024-01-15"

    # Check files exist
    for filename in ["routes.json", "stops.json", "calendar.json", "indexes.json", "api.json"]:
        assert (tmp_output / filename).exists()
        assert filename in manifest.outputs
    assert (tmp_output / "routes" / "R1.json").exists()
    assert "routes/R1.json" in manifest.outputs
    assert (tmp_output / "manifest.json").exists()

    # Validate
    report = validate(str(tmp_output))
    assert report.valid
    assert len(report.errors) == 0
    assert report.stats["trips"] == 4


def test_end_to_end_documents(gtfs_minimal: Path, tmp_output: Path) -> None:
    run_convert(gtfs_minimal, tmp_output)

    with open(tmp_output / "routes.json", encoding="utf-8") as f:
        routes = json.load(f)
    assert [r["route_id"] for r in routes] == ["R2", "R1"]
    assert routes[1]["trip_ids"] == ["T1", "T2", "T3"]

    with open(tmp_output / "calendar.json", encoding="utf-8") as f:
        calendar = json.load(f)
    assert calendar["WKDY"]["exceptions"]["removed"] == ["2024-12-25"]

    with open(tmp_output / "api.json", encoding="utf-8") as f:
        api = json.load(f)
    route = api["routes"]["R1"]
    assert route["first_stop"] == "A"
    assert route["last_stop"] == "C"
    assert route["trips"]["T1"]["stop_times"][0] == {
        "stop_id": "A",
        "time": "1970-01-01T08:00:00-10:00",
    }


def test_end_to_end_branching(gtfs_branching: Path, tmp_output: Path) -> None:
    """Test complete pipeline on branching fixture."""
    manifest = run_convert(gtfs_branching, tmp_output, jobs=2, pretty=False)

    assert manifest.stats["routes"] == 2
    assert manifest.stats["trips"] == 4
    assert manifest.stats["stop_times"] == 10

    report = validate(str(tmp_output))
    assert report.valid


def test_end_to_end_invalid_feed(gtfs_edgecases: Path, tmp_output: Path) -> None:
    """An invalid feed aborts before anything is written."""
    with pytest.raises(ValueError, match="validation failed"):
        run_convert(gtfs_edgecases, tmp_output)

    assert not (tmp_output / "routes.json").exists()


def test_end_to_end_route_failure_writes_no_aggregates(make_feed, tmp_output: Path) -> None:
    feed = make_feed(
        trips=(
            "route_id,service_id,trip_id,direction_id\n"
            "R1,WKDY,T1,0\n"
            "R1,WKDY,T2,0\n"
            "R1,WKDY,T3,1\n"
            "R2,WKND,T4,1\n"
        )
    )

    with pytest.raises(ValueError, match="could not find first or last stop"):
        run_convert(feed, tmp_output)

    assert not (tmp_output / "api.json").exists()
    assert not (tmp_output / "manifest.json").exists()


def test_validate_detects_tampering(gtfs_minimal: Path, tmp_output: Path) -> None:
    run_convert(gtfs_minimal, tmp_output)

    with open(tmp_output / "stops.json", "a", encoding="utf-8") as f:
        f.write(" ")

    report = validate(str(tmp_output))
    assert not report.valid
    assert any("Checksum mismatch for stops.json" in err for err in report.errors)


def test_validate_missing_output(tmp_output: Path) -> None:
    report = validate(str(tmp_output))

    assert not report.valid
    assert "Required file missing: api.json" in report.errors


def test_validate_dangling_route_reference(gtfs_minimal: Path, tmp_output: Path) -> None:
    run_convert(gtfs_minimal, tmp_output)
    (tmp_output / "routes" / "R2.json").unlink()

    report = validate(str(tmp_output))
    assert not report.valid
    assert "Route document missing: routes/R2.json" in report.errors
