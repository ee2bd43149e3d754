"""GTFS data validator."""

import logging

from transit_api.gtfs.models import ValidationReport
from transit_api.gtfs.reader import FeedReader

logger = logging.getLogger(__name__)


class GTFSValidator:
    """Validate GTFS data for consistency and referential completeness."""

    def __init__(self, reader: FeedReader) -> None:
        """Initialize validator with a loaded feed reader."""
        self.reader = reader
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def validate(self) -> ValidationReport:
        """Run all validation checks."""
        logger.info("Validating GTFS data")

        self._validate_agencies()
        self._validate_stops()
        self._validate_routes()
        self._validate_trips()
        self._validate_stop_times()
        self._validate_services()

        valid = len(self.errors) == 0

        stats = {
            "agencies": len(self.reader.agencies),
            "stops": len(self.reader.stops),
            "routes": len(self.reader.routes),
            "trips": len(self.reader.trips),
            "stop_times": len(self.reader.stop_times),
            "calendar": len(self.reader.calendar),
            "calendar_dates": len(self.reader.calendar_dates),
        }

        report = ValidationReport(
            valid=valid,
            errors=self.errors.copy(),
            warnings=self.warnings.copy(),
            stats=stats,
        )

        if not valid:
            logger.error(f"Validation failed with {len(self.errors)} errors")
            for error in self.errors:
                logger.debug(f"  - {error}")
        elif self.warnings:
            logger.warning(f"Validation passed with {len(self.warnings)} warnings")
        else:
            logger.info("Validation passed")

        return report

    def _validate_agencies(self) -> None:
        """Validate agencies exist and are unambiguous."""
        if not self.reader.agencies:
            self.errors.append("No agencies found in GTFS data")
        elif len(self.reader.agencies) > 1:
            for agency in self.reader.agencies:
                if not agency.agency_id:
                    self.errors.append(
                        f"Agency {agency.agency_name!r} has no agency_id in a multi-agency feed"
                    )

    def _validate_stops(self) -> None:
        """Validate stops have valid coordinates."""
        for stop in self.reader.stops:
            if not (-90 <= stop.lat <= 90):
                self.errors.append(f"Stop {stop.stop_id} has invalid latitude: {stop.lat}")
            if not (-180 <= stop.lon <= 180):
                self.errors.append(f"Stop {stop.stop_id} has invalid longitude: {stop.lon}")
            if not stop.name:
                self.warnings.append(f"Stop {stop.stop_id} has empty name")

    def _validate_routes(self) -> None:
        """Validate routes exist and reference known agencies."""
        if not self.reader.routes:
            self.errors.append("No routes found in GTFS data")

        agency_ids = {agency.agency_id for agency in self.reader.agencies}
        single_agency = len(self.reader.agencies) == 1
        for route in self.reader.routes:
            if route.agency_id in agency_ids or (not route.agency_id and single_agency):
                continue
            self.errors.append(f"Route {route.route_id} references unknown agency {route.agency_id!r}")

    def _validate_trips(self) -> None:
        """Validate trips reference valid routes."""
        route_ids = {route.route_id for route in self.reader.routes}

        for trip in self.reader.trips:
            if trip.route_id not in route_ids:
                self.errors.append(
                    f"Trip {trip.trip_id} references non-existent route {trip.route_id}"
                )
            if trip.direction_id not in (0, 1):
                self.errors.append(
                    f"Trip {trip.trip_id} has invalid direction_id: {trip.direction_id}"
                )

    def _validate_stop_times(self) -> None:
        """Validate stop_times are ordered and reference valid stops/trips."""
        stop_ids = {stop.stop_id for stop in self.reader.stops}
        trip_ids = {trip.trip_id for trip in self.reader.trips}

        seen_trips: set[str] = set()
        for st in self.reader.stop_times:
            seen_trips.add(st.trip_id)
            if st.trip_id not in trip_ids:
                self.errors.append(f"Stop times reference non-existent trip {st.trip_id}")
            if st.stop_id not in stop_ids:
                self.errors.append(
                    f"Stop time for trip {st.trip_id} references non-existent stop {st.stop_id}"
                )

        for trip in self.reader.trips:
            if trip.trip_id not in seen_trips:
                self.warnings.append(f"Trip {trip.trip_id} has no stop times")
                continue

            stop_times = self.reader.stop_times_for_trip(trip.trip_id)
            sequences = [st.stop_sequence for st in stop_times]
            if len(set(sequences)) != len(sequences):
                self.errors.append(
                    f"Trip {trip.trip_id} has duplicate stop_sequence values: {sequences}"
                )

            # Check times are monotonically increasing
            prev_time = -1
            for st in stop_times:
                if st.arrival_time < prev_time:
                    self.warnings.append(
                        f"Trip {trip.trip_id} has non-increasing times at stop {st.stop_id}: "
                        f"{prev_time} -> {st.arrival_time}"
                    )
                prev_time = st.arrival_time

    def _validate_services(self) -> None:
        """Validate trips reference a defined service."""
        service_ids = {cal.service_id for cal in self.reader.calendar}
        service_ids.update(cd.service_id for cd in self.reader.calendar_dates)

        if not service_ids:
            self.warnings.append("No calendar.txt or calendar_dates.txt service definitions")
            return

        for trip in self.reader.trips:
            if trip.service_id not in service_ids:
                self.warnings.append(
                    f"Trip {trip.trip_id} references undefined service {trip.service_id}"
                )
