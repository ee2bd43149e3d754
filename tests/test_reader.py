"""Tests for GTFS reader."""

import zipfile
from pathlib import Path

import pytest

from transit_api.errors import FeedError
from transit_api.gtfs.reader import FeedReader, Table, ZipTableSource


def test_read_minimal(gtfs_minimal: Path) -> None:
    """Test reading minimal GTFS fixture."""
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    assert len(reader.agencies) == 1
    assert len(reader.stops) == 4
    assert len(reader.routes) == 2
    assert len(reader.trips) == 4
    assert len(reader.stop_times) == 11
    assert len(reader.calendar) == 2
    assert len(reader.calendar_dates) == 3


def test_typed_records(gtfs_minimal: Path) -> None:
    """Rows are converted to typed records."""
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    route = reader.routes[0]
    assert route.route_id == "R1"
    assert route.route_sort_order == 2
    assert route.route_color == "1565C0"

    trip = reader.trips[2]
    assert trip.trip_id == "T3"
    assert trip.direction_id == 1
    assert trip.trip_short_name == "Return"

    weekday = reader.calendar[0]
    assert weekday.monday is True
    assert weekday.sunday is False


def test_time_parsing() -> None:
    """Test time parsing including >24h."""
    assert FeedReader._parse_time("08:00:00") == 8 * 3600
    assert FeedReader._parse_time("25:10:00") == 25 * 3600 + 10 * 60
    assert FeedReader._parse_time(" 7:05:09") == 7 * 3600 + 5 * 60 + 9

    with pytest.raises(FeedError):
        FeedReader._parse_time("08:00")
    with pytest.raises(FeedError):
        FeedReader._parse_time("aa:bb:cc")


def test_stop_times_ordered_by_sequence(gtfs_minimal: Path) -> None:
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    stop_ids = [st.stop_id for st in reader.stop_times_for_trip("T3")]
    assert stop_ids == ["C", "B", "A"]
    assert reader.stop_times_for_trip("UNKNOWN") == []


def test_trips_for_route_keep_table_order(gtfs_minimal: Path) -> None:
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    assert [t.trip_id for t in reader.trips_for_route("R1")] == ["T1", "T2", "T3"]


def test_agencies_txt_and_blank_agency_id(gtfs_branching: Path) -> None:
    """agencies.txt is accepted and a blank agency_id means the only agency."""
    reader = FeedReader(str(gtfs_branching))
    reader.read_all()

    assert reader.agencies[0].agency_name == "Valley Transit"
    assert reader.routes[0].agency_id == ""
    assert reader.agency_timezone("") == "America/Los_Angeles"


def test_untimed_stop_times(gtfs_branching: Path) -> None:
    """Rows without any time are skipped, departure_time fills a missing arrival."""
    reader = FeedReader(str(gtfs_branching))
    reader.read_all()

    night = reader.stop_times_for_trip("N1")
    assert [st.stop_id for st in night] == ["S1", "S5"]
    assert night[1].arrival_time == 25 * 3600 + 10 * 60


def test_optional_tables(gtfs_branching: Path) -> None:
    reader = FeedReader(str(gtfs_branching))
    reader.read_all()

    assert reader.calendar_dates == []
    assert reader.exceptions_for_service("DAILY") == []


def test_unknown_agency(gtfs_minimal: Path) -> None:
    reader = FeedReader(str(gtfs_minimal))
    reader.read_all()

    with pytest.raises(FeedError, match="Unknown agency"):
        reader.agency_timezone("NOPE")


def test_missing_required_table(tmp_path: Path) -> None:
    (tmp_path / "agency.txt").write_text(
        "agency_id,agency_name,agency_timezone\nA,Agency,UTC\n", encoding="utf-8"
    )
    reader = FeedReader(str(tmp_path))

    with pytest.raises(FeedError, match="stops.txt"):
        reader.read_all()


def test_missing_required_column(make_feed) -> None:
    feed = make_feed(stop_times="trip_id,stop_id,stop_sequence\nT1,A,1\n")
    reader = FeedReader(str(feed))

    with pytest.raises(FeedError, match="arrival_time"):
        reader.read_all()


@pytest.mark.parametrize(
    "tables, message",
    [
        (
            {"stop_times": "trip_id,arrival_time,stop_id,stop_sequence\nT1,08:00:00,A,first\n"},
            "Invalid stop_sequence 'first' in stop_times.txt for T1",
        ),
        (
            {"trips": "route_id,service_id,trip_id,direction_id\nR1,WKDY,T1,north\n"},
            "Invalid direction_id 'north' in trips.txt for T1",
        ),
        (
            {"calendar_dates": "service_id,date,exception_type\nHOL,20240101,add\n"},
            "Invalid exception_type 'add' in calendar_dates.txt for HOL",
        ),
    ],
)
def test_invalid_integer_names_table_and_row(make_feed, tables: dict, message: str) -> None:
    reader = FeedReader(str(make_feed(**tables)))

    with pytest.raises(FeedError, match=message):
        reader.read_all()


def test_invalid_path(tmp_path: Path) -> None:
    with pytest.raises(ValueError):
        FeedReader(str(tmp_path / "missing"))


def test_read_zip(gtfs_minimal: Path, tmp_path: Path) -> None:
    """Zip archives are read, including tables inside a subfolder."""
    archive = tmp_path / "feed.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        for path in gtfs_minimal.iterdir():
            zf.write(path, f"gtfs/{path.name}")

    reader = FeedReader(str(archive))
    assert isinstance(reader.source, ZipTableSource)
    reader.read_all()

    assert len(reader.routes) == 2
    assert len(reader.stop_times) == 11


class InMemorySource:
    """Table source backed by dictionaries."""

    def __init__(self, tables: dict[str, Table]) -> None:
        self.tables = tables

    def has_table(self, name: str) -> bool:
        return name in self.tables

    def read_table(self, name: str) -> Table:
        return self.tables[name]


def test_custom_table_source() -> None:
    """Any object answering has_table/read_table can back the reader."""
    source = InMemorySource(
        {
            "stops": Table(
                columns=["stop_id", "stop_name", "stop_lat", "stop_lon"],
                rows=[{"stop_id": "Z", "stop_name": "Zed", "stop_lat": "1.5", "stop_lon": "2.5"}],
            )
        }
    )
    reader = FeedReader(source=source)
    reader.read_stops()

    assert reader.stops[0].name == "Zed"
    assert reader.stops[0].lat == 1.5
