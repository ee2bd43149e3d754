"""Search index structures for routes and stops by name."""

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from transit_api.gtfs.models import RouteDetails, StopDoc

logger = logging.getLogger(__name__)


class SearchIndexer(Protocol):
    """Builds a serializable search index over (id, text) records."""

    def create_index(self, key: str, records: Iterable[tuple[str, str]]) -> dict[str, Any]: ...


class NameIndexer:
    """
    Plain name index: one record per entry with its normalized text.

    Ranking is left to the consumer; this only fixes record order and
    normalization so the client can load it without rebuilding.
    """

    def create_index(self, key: str, records: Iterable[tuple[str, str]]) -> dict[str, Any]:
        entries = []
        for idx, (record_id, text) in enumerate(records):
            entries.append({"i": idx, "id": record_id, "v": " ".join(text.lower().split())})
        return {"keys": [key], "records": entries}


def build_search_indexes(
    routes: list[RouteDetails],
    stops: dict[str, StopDoc],
    indexer: SearchIndexer | None = None,
) -> dict[str, dict[str, Any]]:
    """Build the routes and stops name indexes written to indexes.json."""
    if indexer is None:
        indexer = NameIndexer()

    route_index = indexer.create_index(
        "name", ((details.route.route_id, details.route.name) for details in routes)
    )
    stop_index = indexer.create_index("name", ((stop.stop_id, stop.name) for stop in stops.values()))

    logger.info(f"Built search indexes for {len(routes)} routes and {len(stops)} stops")
    return {"routes": route_index, "stops": stop_index}
