"""Fetch the aggregate schedule API with a local cache fallback."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

logger = logging.getLogger(__name__)

API_KEYS = ("routes", "stops", "calendar")

SOURCE_NETWORK = "network"
SOURCE_CACHE = "cache"
SOURCE_OFFLINE = "offline"


@dataclass
class ClientConfig:
    """Where the rider app loads its schedule from."""

    api_url: str
    cache_path: Path | None = None
    timeout: float = 10.0


@dataclass
class LoadResult:
    data: dict[str, Any]
    source: str

    @property
    def offline(self) -> bool:
        return self.source == SOURCE_OFFLINE


def empty_schedule() -> dict[str, Any]:
    return {key: {} for key in API_KEYS}


def _check_shape(data: Any) -> dict[str, Any]:
    if not isinstance(data, dict) or any(not isinstance(data.get(key), dict) for key in API_KEYS):
        raise ValueError(f"Schedule data must be an object with {', '.join(API_KEYS)}")
    return data


def load_cached(cache_path: Path | None) -> dict[str, Any] | None:
    """Read a cached copy of the schedule; None if there is no usable one."""
    if cache_path is None or not cache_path.exists():
        return None
    try:
        with open(cache_path, encoding="utf-8") as f:
            return _check_shape(json.load(f))
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable schedule cache {cache_path}: {e}")
        return None


def save_cache(cache_path: Path, data: dict[str, Any]) -> None:
    try:
        cache_path.parent.mkdir(parents=True, exist_ok=True)
        with open(cache_path, "w", encoding="utf-8") as f:
            json.dump(data, f)
    except OSError as e:
        logger.warning(f"Could not write schedule cache {cache_path}: {e}")


def fetch_schedule(config: ClientConfig, session: requests.Session | None = None) -> LoadResult:
    """
    Load api.json once.

    A failed request or malformed payload falls back to the cached copy, and
    without one to empty offline data. A successful download refreshes the
    cache. There is no retry.
    """
    http = session if session is not None else requests
    try:
        response = http.get(config.api_url, timeout=config.timeout)
        response.raise_for_status()
        data = _check_shape(response.json())
    except (requests.RequestException, ValueError) as e:
        logger.warning(f"Failed to fetch schedule from {config.api_url}: {e}")
        cached = load_cached(config.cache_path)
        if cached is not None:
            logger.info(f"Using cached schedule from {config.cache_path}")
            return LoadResult(data=cached, source=SOURCE_CACHE)
        logger.warning("No cached schedule available, running offline")
        return LoadResult(data=empty_schedule(), source=SOURCE_OFFLINE)

    logger.info(f"Fetched schedule with {len(data['routes'])} routes from {config.api_url}")
    if config.cache_path is not None:
        save_cache(config.cache_path, data)
    return LoadResult(data=data, source=SOURCE_NETWORK)
