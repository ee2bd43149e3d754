"""Command-line interface for transit-api-pipeline."""

import argparse
import logging
import sys
from datetime import date

from transit_api.api import convert, validate
from transit_api.gtfs.models import ConvertConfig
from transit_api.version import VERSION


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def cmd_convert(args: argparse.Namespace) -> int:
    """Execute convert command."""
    setup_logging(args.verbose)

    config = ConvertConfig(
        input_path=args.input,
        output_path=args.output,
        jobs=args.jobs,
        reference_date=args.reference_date,
        pretty=args.pretty,
    )

    try:
        manifest = convert(args.input, args.output, config)
        print("\nConversion successful!")
        print(f"Output: {args.output}")
        print(f"Stats: {manifest.stats}")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Conversion failed")
        return 1


def cmd_validate(args: argparse.Namespace) -> int:
    """Execute validate command."""
    setup_logging(args.verbose)

    try:
        report = validate(args.input)
        if report.valid:
            print("\nValidation successful!")
            print(f"Stats: {report.stats}")
            if report.warnings:
                print(f"Warnings ({len(report.warnings)}):")
                for warning in report.warnings:
                    print(f"  - {warning}")
            return 0
        else:
            print(f"\nValidation failed with {len(report.errors)} errors:")
            for error in report.errors:
                print(f"  - {error}")
            return 1
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        logging.exception("Validation failed")
        return 1


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="transit-api",
        description="Convert GTFS feeds to a JSON schedule API",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert GTFS to the JSON API")
    convert_parser.add_argument(
        "--input", required=True, help="Path to GTFS directory or zip archive"
    )
    convert_parser.add_argument(
        "--output", default="./api", help="Output directory (default: ./api)"
    )
    convert_parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Number of routes assembled in parallel (default: 1)",
    )
    convert_parser.add_argument(
        "--reference-date",
        type=date.fromisoformat,
        default=None,
        help="Date (YYYY-MM-DD) used to resolve agency UTC offsets (default: today)",
    )
    convert_parser.add_argument(
        "--pretty",
        type=lambda x: x.lower() == "true",
        default=True,
        help="Indent JSON output (default: true)",
    )
    convert_parser.set_defaults(func=cmd_convert)

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate JSON API output")
    validate_parser.add_argument("--input", required=True, help="Path to output directory")
    validate_parser.set_defaults(func=cmd_validate)

    # Parse and execute
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
