"""GTFS table access and typed row fetches."""

import csv
import io
import logging
import zipfile
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from transit_api.errors import FeedError
from transit_api.gtfs.models import Agency, Calendar, CalendarDate, Route, Stop, StopTime, Trip

logger = logging.getLogger(__name__)

WEEKDAY_COLUMNS = ["sunday", "monday", "tuesday", "wednesday", "thursday", "friday", "saturday"]

REQUIRED_COLUMNS: dict[str, list[str]] = {
    "agency": ["agency_name", "agency_timezone"],
    "agencies": ["agency_name", "agency_timezone"],
    "routes": ["route_id"],
    "trips": ["route_id", "service_id", "trip_id"],
    "stop_times": ["trip_id", "stop_id", "stop_sequence", "arrival_time"],
    "stops": ["stop_id", "stop_lat", "stop_lon"],
    "calendar": ["service_id", *WEEKDAY_COLUMNS, "start_date", "end_date"],
    "calendar_dates": ["service_id", "date", "exception_type"],
}


@dataclass
class Table:
    """Rows of one feed table along with its header."""

    columns: list[str]
    rows: list[dict[str, str]] = field(default_factory=list)


class TableSource(Protocol):
    """Query collaborator returning raw feed tables by name (without .txt)."""

    def has_table(self, name: str) -> bool: ...

    def read_table(self, name: str) -> Table: ...


def _parse_csv(text_stream: io.TextIOBase) -> Table:
    reader = csv.DictReader(text_stream)
    rows = [{k.strip(): (v or "").strip() for k, v in row.items() if k is not None} for row in reader]
    columns = [c.strip() for c in (reader.fieldnames or [])]
    return Table(columns=columns, rows=rows)


def _parse_int(value: str, table: str, column: str, row_id: str) -> int:
    try:
        return int(value)
    except ValueError as e:
        raise FeedError(f"Invalid {column} {value!r} in {table}.txt for {row_id}") from e


class DirectoryTableSource:
    """Feed tables stored as .txt files in a directory."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def __str__(self) -> str:
        return str(self.path)

    def has_table(self, name: str) -> bool:
        return (self.path / f"{name}.txt").exists()

    def read_table(self, name: str) -> Table:
        with open(self.path / f"{name}.txt", encoding="utf-8-sig", newline="") as f:
            return _parse_csv(f)


class ZipTableSource:
    """Feed tables stored in a GTFS zip archive, possibly in a subfolder."""

    def __init__(self, path: Path) -> None:
        self.path = path
        with zipfile.ZipFile(path) as zf:
            self._members = {Path(name).name.lower(): name for name in zf.namelist()}

    def __str__(self) -> str:
        return str(self.path)

    def has_table(self, name: str) -> bool:
        return f"{name}.txt" in self._members

    def read_table(self, name: str) -> Table:
        member = self._members[f"{name}.txt"]
        with zipfile.ZipFile(self.path) as zf, zf.open(member) as raw:
            return _parse_csv(io.TextIOWrapper(raw, encoding="utf-8-sig", newline=""))


def open_source(gtfs_path: str) -> TableSource:
    """Pick the table source matching a directory or zip path."""
    path = Path(gtfs_path)
    if path.is_dir():
        return DirectoryTableSource(path)
    if path.is_file() and zipfile.is_zipfile(path):
        return ZipTableSource(path)
    raise ValueError(f"GTFS path not found or not a directory/zip archive: {gtfs_path}")


class FeedReader:
    """Read a GTFS feed into typed records and answer per-table queries."""

    def __init__(self, gtfs_path: str | None = None, source: TableSource | None = None) -> None:
        """Initialize reader from a GTFS directory/zip path or an explicit table source."""
        if source is None:
            if gtfs_path is None:
                raise ValueError("Either gtfs_path or source is required")
            source = open_source(gtfs_path)
        self.source = source

        self.agencies: list[Agency] = []
        self.routes: list[Route] = []
        self.trips: list[Trip] = []
        self.stops: list[Stop] = []
        self.stop_times: list[StopTime] = []
        self.calendar: list[Calendar] = []
        self.calendar_dates: list[CalendarDate] = []

        self._trips_by_route: dict[str, list[Trip]] = defaultdict(list)
        self._stop_times_by_trip: dict[str, list[StopTime]] = defaultdict(list)
        self._dates_by_service: dict[str, list[CalendarDate]] = defaultdict(list)
        self._agency_by_id: dict[str, Agency] = {}

    def read_all(self) -> None:
        """Read all feed tables."""
        logger.info(f"Reading GTFS data from {self.source}")
        self.read_agencies()
        self.read_stops()
        self.read_routes()
        self.read_calendar()
        self.read_calendar_dates()
        self.read_trips()
        self.read_stop_times()
        logger.info(
            f"Loaded {len(self.agencies)} agencies, {len(self.stops)} stops, "
            f"{len(self.routes)} routes, {len(self.trips)} trips, "
            f"{len(self.stop_times)} stop_times, {len(self.calendar)} calendar entries, "
            f"{len(self.calendar_dates)} calendar date exceptions"
        )

    def _table(self, name: str, required: bool = True) -> Table | None:
        """Fetch a table and check its header has the expected columns."""
        if not self.source.has_table(name):
            if required:
                raise FeedError(f"Required table not found: {name}.txt")
            logger.info(f"{name}.txt not found, skipping")
            return None

        table = self.source.read_table(name)
        missing = [c for c in REQUIRED_COLUMNS[name] if c not in table.columns]
        if missing:
            raise FeedError(f"{name}.txt is missing required columns: {', '.join(missing)}")
        return table

    def read_agencies(self) -> None:
        """Read agency.txt, falling back to agencies.txt."""
        name = "agency"
        if not self.source.has_table(name) and self.source.has_table("agencies"):
            name = "agencies"

        table = self._table(name)
        for row in table.rows:
            agency = Agency(
                agency_id=row.get("agency_id", ""),
                agency_name=row["agency_name"],
                agency_timezone=row["agency_timezone"],
            )
            self.agencies.append(agency)
            self._agency_by_id[agency.agency_id] = agency

    def read_stops(self) -> None:
        """Read stops.txt."""
        table = self._table("stops")
        for row in table.rows:
            try:
                lat = float(row["stop_lat"])
                lon = float(row["stop_lon"])
            except ValueError as e:
                raise FeedError(f"Stop {row['stop_id']} has invalid coordinates") from e
            self.stops.append(
                Stop(stop_id=row["stop_id"], name=row.get("stop_name", ""), lat=lat, lon=lon)
            )

    def read_routes(self) -> None:
        """Read routes.txt."""
        table = self._table("routes")
        for row in table.rows:
            sort_order = row.get("route_sort_order", "")
            self.routes.append(
                Route(
                    route_id=row["route_id"],
                    agency_id=row.get("agency_id", ""),
                    route_short_name=row.get("route_short_name", ""),
                    route_long_name=row.get("route_long_name", ""),
                    route_url=row.get("route_url", ""),
                    route_color=row.get("route_color", ""),
                    route_text_color=row.get("route_text_color", ""),
                    route_sort_order=(
                        _parse_int(sort_order, "routes", "route_sort_order", row["route_id"])
                        if sort_order
                        else None
                    ),
                )
            )

    def read_trips(self) -> None:
        """Read trips.txt."""
        table = self._table("trips")
        for row in table.rows:
            trip = Trip(
                trip_id=row["trip_id"],
                route_id=row["route_id"],
                service_id=row["service_id"],
                direction_id=_parse_int(
                    row.get("direction_id") or "0", "trips", "direction_id", row["trip_id"]
                ),
                trip_headsign=row.get("trip_headsign", ""),
                trip_short_name=row.get("trip_short_name", ""),
            )
            self.trips.append(trip)
            self._trips_by_route[trip.route_id].append(trip)

    def read_stop_times(self) -> None:
        """Read stop_times.txt and normalize times."""
        table = self._table("stop_times")
        untimed = 0
        for row in table.rows:
            raw_time = row["arrival_time"] or row.get("departure_time", "")
            if not raw_time:
                untimed += 1
                continue

            stop_time = StopTime(
                trip_id=row["trip_id"],
                stop_id=row["stop_id"],
                arrival_time=self._parse_time(raw_time),
                stop_sequence=_parse_int(
                    row["stop_sequence"], "stop_times", "stop_sequence", row["trip_id"]
                ),
            )
            self.stop_times.append(stop_time)

        if untimed:
            logger.info(f"Skipped {untimed} stop_times without arrival or departure time")

        # Sort by trip_id, then stop_sequence for normalization
        self.stop_times.sort(key=lambda st: (st.trip_id, st.stop_sequence))
        for st in self.stop_times:
            self._stop_times_by_trip[st.trip_id].append(st)

    def read_calendar(self) -> None:
        """Read calendar.txt if present."""
        table = self._table("calendar", required=False)
        if table is None:
            return

        for row in table.rows:
            flags = {day: row[day] == "1" for day in WEEKDAY_COLUMNS}
            self.calendar.append(
                Calendar(
                    service_id=row["service_id"],
                    start_date=row["start_date"],
                    end_date=row["end_date"],
                    **flags,
                )
            )

    def read_calendar_dates(self) -> None:
        """Read calendar_dates.txt if present."""
        table = self._table("calendar_dates", required=False)
        if table is None:
            return

        for row in table.rows:
            calendar_date = CalendarDate(
                service_id=row["service_id"],
                date=row["date"],
                exception_type=_parse_int(
                    row["exception_type"], "calendar_dates", "exception_type", row["service_id"]
                ),
            )
            self.calendar_dates.append(calendar_date)
            self._dates_by_service[calendar_date.service_id].append(calendar_date)

    @staticmethod
    def _parse_time(time_str: str) -> int:
        """Parse HH:MM:SS to seconds since midnight, supporting >24h."""
        parts = time_str.strip().split(":")
        if len(parts) != 3:
            raise FeedError(f"Invalid time format: {time_str}")

        try:
            hours, minutes, seconds = (int(p) for p in parts)
        except ValueError as e:
            raise FeedError(f"Invalid time format: {time_str}") from e

        return hours * 3600 + minutes * 60 + seconds

    def trips_for_route(self, route_id: str) -> list[Trip]:
        """Trips of a route in trip-table order."""
        return list(self._trips_by_route.get(route_id, []))

    def stop_times_for_trip(self, trip_id: str) -> list[StopTime]:
        """Stop times of a trip ordered by stop_sequence."""
        return list(self._stop_times_by_trip.get(trip_id, []))

    def exceptions_for_service(self, service_id: str) -> list[CalendarDate]:
        """Calendar date exceptions of a service in table order."""
        return list(self._dates_by_service.get(service_id, []))

    def agency_timezone(self, agency_id: str) -> str:
        """IANA timezone name of an agency; a blank id means the feed's only agency."""
        agency = self._agency_by_id.get(agency_id)
        if agency is None and not agency_id and len(self.agencies) == 1:
            agency = self.agencies[0]
        if agency is None:
            raise FeedError(f"Unknown agency: {agency_id!r}")
        if not agency.agency_timezone:
            raise FeedError(f"Agency {agency.agency_id!r} has no timezone")
        return agency.agency_timezone
