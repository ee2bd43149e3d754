"""Data models for GTFS records and API documents."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any


@dataclass(frozen=True)
class Agency:
    """GTFS agency."""

    agency_id: str
    agency_name: str
    agency_timezone: str


@dataclass(frozen=True)
class Route:
    """GTFS route."""

    route_id: str
    agency_id: str
    route_short_name: str
    route_long_name: str
    route_url: str = ""
    route_color: str = ""
    route_text_color: str = ""
    route_sort_order: int | None = None


@dataclass(frozen=True)
class Trip:
    """GTFS trip."""

    trip_id: str
    route_id: str
    service_id: str
    direction_id: int = 0
    trip_headsign: str = ""
    trip_short_name: str = ""


@dataclass(frozen=True)
class StopTime:
    """GTFS stop time."""

    trip_id: str
    stop_id: str
    arrival_time: int  # seconds after service-day midnight, may exceed 86400
    stop_sequence: int


@dataclass(frozen=True)
class Stop:
    """GTFS stop with coordinates."""

    stop_id: str
    name: str
    lat: float
    lon: float


@dataclass(frozen=True)
class Calendar:
    """GTFS calendar entry (weekly service pattern)."""

    service_id: str
    sunday: bool
    monday: bool
    tuesday: bool
    wednesday: bool
    thursday: bool
    friday: bool
    saturday: bool
    start_date: str  # YYYYMMDD
    end_date: str  # YYYYMMDD


@dataclass(frozen=True)
class CalendarDate:
    """GTFS calendar date exception."""

    service_id: str
    date: str  # YYYYMMDD
    exception_type: int  # 1 = added, 2 = removed


@dataclass
class StopTimeDoc:
    """Stop time as published: stop reference and timezone-qualified instant."""

    stop_id: str
    time: str


@dataclass
class TripDoc:
    """Trip as published, with its ordered stop times."""

    trip_id: str
    route_id: str
    service_id: str
    direction_id: int
    headsign: str
    name: str
    stop_times: list[StopTimeDoc] = field(default_factory=list)


@dataclass
class RouteDoc:
    """Entry of the aggregate routes index."""

    route_id: str
    name: str
    short_name: str
    source_url: str
    color: str
    text_color: str
    sort_order: int | None
    timezone: str
    trip_ids: list[str] = field(default_factory=list)


@dataclass
class RouteDetails:
    """Per-route document with trips and derived bounds."""

    route: RouteDoc
    trips: dict[str, TripDoc]
    days: list[bool]
    first_stop: str
    last_stop: str
    start_time: str
    end_time: str


@dataclass
class StopDoc:
    """Stop as published, with the routes reachable from it."""

    stop_id: str
    name: str
    lat: float
    lon: float
    route_ids: list[str] = field(default_factory=list)


@dataclass
class CalendarDoc:
    """Service calendar as published."""

    service_id: str
    days: list[bool]  # Sunday..Saturday
    description: str
    added: list[str] = field(default_factory=list)  # ISO dates
    removed: list[str] = field(default_factory=list)  # ISO dates


@dataclass
class Manifest:
    """Build manifest with metadata and checksums."""

    schema_version: int
    tool_version: str
    created_at_iso: str
    inputs: dict[str, Any]
    outputs: dict[str, str]  # filename -> sha256
    stats: dict[str, int]
    build: dict[str, str]


@dataclass
class ValidationReport:
    """Report from validation process."""

    valid: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    stats: dict[str, int] = field(default_factory=dict)


@dataclass
class ConvertConfig:
    """Configuration for conversion process."""

    input_path: str
    output_path: str
    jobs: int = 1
    reference_date: date | None = None  # date used to resolve UTC offsets
    pretty: bool = True  # indent JSON output
