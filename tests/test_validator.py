"""Tests for GTFS validator."""

from pathlib import Path

from transit_api.gtfs.reader import FeedReader
from transit_api.gtfs.validator import GTFSValidator


def validate_feed(path: Path):
    reader = FeedReader(str(path))
    reader.read_all()
    return GTFSValidator(reader).validate()


def test_validator_valid_data(gtfs_minimal: Path) -> None:
    """Test validator passes on valid data."""
    report = validate_feed(gtfs_minimal)

    assert report.valid
    assert len(report.errors) == 0
    assert report.warnings == []
    assert report.stats["stops"] == 4
    assert report.stats["routes"] == 2
    assert report.stats["calendar_dates"] == 3


def test_validator_branching(gtfs_branching: Path) -> None:
    """A blank agency_id in a single-agency feed is fine."""
    report = validate_feed(gtfs_branching)

    assert report.valid


def test_validator_invalid_coordinates(gtfs_edgecases: Path) -> None:
    """Test validator catches invalid coordinates."""
    report = validate_feed(gtfs_edgecases)

    assert not report.valid
    assert any("X2 has invalid latitude" in err for err in report.errors)


def test_validator_orphan_trip(gtfs_edgecases: Path) -> None:
    """Test validator catches trips referencing nonexistent routes."""
    report = validate_feed(gtfs_edgecases)

    assert any("ET2 references non-existent route GHOST" in err for err in report.errors)


def test_validator_stop_time_references(gtfs_edgecases: Path) -> None:
    report = validate_feed(gtfs_edgecases)

    assert any("non-existent stop MISSING" in err for err in report.errors)
    assert any("ET1 has duplicate stop_sequence" in err for err in report.errors)


def test_validator_warnings(gtfs_edgecases: Path) -> None:
    """Problems that do not block conversion are reported as warnings."""
    report = validate_feed(gtfs_edgecases)

    assert any("X1 has empty name" in w for w in report.warnings)
    assert any("ET3 has no stop times" in w for w in report.warnings)
    assert any("ET4 has non-increasing times" in w for w in report.warnings)
    assert any("undefined service UNDEFINED" in w for w in report.warnings)


def test_validator_unknown_agency(make_feed) -> None:
    feed = make_feed(
        routes="route_id,agency_id,route_short_name,route_long_name\nR1,OTHER,1,One\nR2,HT,2,Two\n"
    )
    report = validate_feed(feed)

    assert not report.valid
    assert any("unknown agency 'OTHER'" in err for err in report.errors)


def test_validator_multi_agency_needs_ids(make_feed) -> None:
    feed = make_feed(
        agency=(
            "agency_id,agency_name,agency_timezone\n"
            "HT,Hele-On,Pacific/Honolulu\n"
            ",Shuttle,Pacific/Honolulu\n"
        )
    )
    report = validate_feed(feed)

    assert not report.valid
    assert any("no agency_id in a multi-agency feed" in err for err in report.errors)
