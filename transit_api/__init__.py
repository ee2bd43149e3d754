"""Transit API pipeline - Convert GTFS feeds into a JSON schedule API."""

from transit_api.api import convert, validate
from transit_api.version import SCHEMA_VERSION, VERSION

__version__ = VERSION
__all__ = ["SCHEMA_VERSION", "VERSION", "convert", "validate"]
