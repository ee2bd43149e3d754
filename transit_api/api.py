"""Public API for the transit feed pipeline."""

import hashlib
import json
import logging
import platform
from datetime import UTC, datetime
from pathlib import Path

from transit_api.gtfs.calendar import build_calendars
from transit_api.gtfs.models import ConvertConfig, Manifest, ValidationReport
from transit_api.gtfs.reader import FeedReader
from transit_api.gtfs.validator import GTFSValidator
from transit_api.output.json import write_json_files
from transit_api.transform.indexing import build_search_indexes
from transit_api.transform.routes import build_routes
from transit_api.transform.stops import build_stops
from transit_api.version import SCHEMA_VERSION, VERSION

logger = logging.getLogger(__name__)

REQUIRED_OUTPUTS = ["routes.json", "stops.json", "calendar.json", "indexes.json", "api.json"]


def _sha256(path: str | Path) -> str:
    with open(path, "rb") as f:
        return hashlib.sha256(f.read()).hexdigest()


def convert(
    input_path: str,
    output_path: str,
    config: ConvertConfig | None = None,
) -> Manifest:
    """
    Convert a GTFS feed to the JSON schedule API.

    Args:
        input_path: Path to GTFS directory or zip archive
        output_path: Path to output directory
        config: Optional conversion configuration

    Returns:
        Manifest with build metadata

    Raises:
        ValueError: the feed is invalid or a route cannot be assembled
    """
    if config is None:
        config = ConvertConfig(input_path=input_path, output_path=output_path)

    logger.info(f"Starting conversion: {input_path} -> {output_path}")
    start_time = datetime.now(UTC)
    reference_date = config.reference_date or start_time.date()

    # Read GTFS
    reader = FeedReader(input_path)
    reader.read_all()

    # Validate
    validator = GTFSValidator(reader)
    validation_report = validator.validate()
    if not validation_report.valid:
        raise ValueError(f"GTFS validation failed with {len(validation_report.errors)} errors")

    # Transform
    output_dir = Path(output_path)
    calendars = build_calendars(reader)
    routes, files_written = build_routes(
        reader,
        calendars,
        output_dir,
        reference_date,
        jobs=config.jobs,
        pretty=config.pretty,
    )
    stops = build_stops(reader)
    indexes = build_search_indexes(routes, stops)

    # Write aggregate outputs, only once every route succeeded
    files_written.update(
        write_json_files(output_dir, routes, stops, calendars, indexes, pretty=config.pretty)
    )

    checksums = {filename: _sha256(filepath) for filename, filepath in sorted(files_written.items())}

    stats = {
        "stops": len(stops),
        "routes": len(routes),
        "trips": sum(len(details.trips) for details in routes),
        "stop_times": sum(
            len(trip.stop_times) for details in routes for trip in details.trips.values()
        ),
        "calendars": len(calendars),
    }

    manifest = Manifest(
        schema_version=SCHEMA_VERSION,
        tool_version=VERSION,
        created_at_iso=start_time.isoformat(),
        inputs={"gtfs_path": input_path, "reference_date": reference_date.isoformat()},
        outputs=checksums,
        stats=stats,
        build={
            "python": platform.python_version(),
            "platform": platform.platform(),
        },
    )

    # Write manifest
    manifest_path = output_dir / "manifest.json"
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(
            {
                "schema_version": manifest.schema_version,
                "tool_version": manifest.tool_version,
                "created_at": manifest.created_at_iso,
                "inputs": manifest.inputs,
                "outputs": manifest.outputs,
                "stats": manifest.stats,
                "build": manifest.build,
            },
            f,
            indent=2,
            sort_keys=True,
        )

    logger.info(f"Wrote manifest to {manifest_path}")

    elapsed = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(f"Conversion completed in {elapsed:.2f}s")

    return manifest


def _check_references(output_dir: Path, errors: list[str], warnings: list[str]) -> dict[str, int]:
    """Check every id referenced between API documents exists."""
    with open(output_dir / "routes.json", encoding="utf-8") as f:
        routes = json.load(f)
    with open(output_dir / "stops.json", encoding="utf-8") as f:
        stops = json.load(f)
    with open(output_dir / "calendar.json", encoding="utf-8") as f:
        calendar = json.load(f)

    route_ids = {route["route_id"] for route in routes}
    sort_keys = [(r["sort_order"] is None, r["sort_order"] or 0) for r in routes]
    if sort_keys != sorted(sort_keys):
        errors.append("routes.json is not ordered by sort_order")

    trips = 0
    for route_id in route_ids:
        route_path = output_dir / "routes" / f"{route_id}.json"
        if not route_path.exists():
            errors.append(f"Route document missing: routes/{route_id}.json")
            continue
        with open(route_path, encoding="utf-8") as f:
            details = json.load(f)
        for stop_key in ("first_stop", "last_stop"):
            if details.get(stop_key) not in stops:
                errors.append(f"Route {route_id} {stop_key} references unknown stop")
        for trip in details.get("trips", {}).values():
            trips += 1
            if trip["service_id"] not in calendar:
                warnings.append(f"Trip {trip['trip_id']} references unknown service {trip['service_id']}")
            for stop_time in trip["stop_times"]:
                if stop_time["stop_id"] not in stops:
                    errors.append(
                        f"Trip {trip['trip_id']} references unknown stop {stop_time['stop_id']}"
                    )

    for stop_id, stop in stops.items():
        for route_id in stop["route_ids"]:
            if route_id not in route_ids:
                errors.append(f"Stop {stop_id} references unknown route {route_id}")

    return {"routes": len(route_ids), "stops": len(stops), "trips": trips, "calendars": len(calendar)}


def validate(output_path: str) -> ValidationReport:
    """
    Validate JSON API output.

    Args:
        output_path: Path to output directory containing the API documents

    Returns:
        ValidationReport with results
    """
    logger.info(f"Validating output: {output_path}")

    output_dir = Path(output_path)
    errors: list[str] = []
    warnings: list[str] = []
    stats: dict[str, int] = {}

    # Check required files exist
    for filename in [*REQUIRED_OUTPUTS, "manifest.json"]:
        if not (output_dir / filename).exists():
            errors.append(f"Required file missing: {filename}")

    if errors:
        return ValidationReport(valid=False, errors=errors, warnings=warnings)

    try:
        stats = _check_references(output_dir, errors, warnings)
    except (OSError, ValueError, KeyError, TypeError) as e:
        errors.append(f"API document validation failed: {e}")
        return ValidationReport(valid=False, errors=errors, warnings=warnings)

    # Validate manifest
    manifest_path = output_dir / "manifest.json"
    try:
        with open(manifest_path, encoding="utf-8") as f:
            manifest_data = json.load(f)

        required_manifest_fields = [
            "schema_version",
            "tool_version",
            "created_at",
            "outputs",
            "stats",
        ]
        for field in required_manifest_fields:
            if field not in manifest_data:
                warnings.append(f"Manifest missing field: {field}")

        # Verify checksums
        for filename, expected_hash in manifest_data.get("outputs", {}).items():
            filepath = output_dir / filename
            if not filepath.exists():
                errors.append(f"File listed in manifest is missing: {filename}")
                continue
            actual_hash = _sha256(filepath)
            if actual_hash != expected_hash:
                errors.append(
                    f"Checksum mismatch for {filename}: "
                    f"expected {expected_hash}, got {actual_hash}"
                )

    except (OSError, ValueError) as e:
        errors.append(f"Manifest validation failed: {e}")

    valid = len(errors) == 0

    if valid:
        logger.info("Validation passed")
    else:
        logger.error(f"Validation failed with {len(errors)} errors")

    return ValidationReport(
        valid=valid,
        errors=errors,
        warnings=warnings,
        stats=stats,
    )
