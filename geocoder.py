"""
geocoder.py — reverse geocoding for station names and search keywords.

This is the only part of the project that touches the network.  Callers
that must not block (the editor, the save path) go through GeoKeywordLookup,
which runs lookups on a small thread pool and hands back futures.
"""

import logging
import re
import time
from concurrent.futures import Future, ThreadPoolExecutor

import requests

from config import (
    COUNTRY_DIST, GEOCODE_MAX_RETRIES, GEOCODE_RETRY_DELAY, GEOCODE_TIMEOUT,
    GEOCODE_URL, GEOCODE_WORKERS, INTERNATIONAL_DIST, MAPBOX_ACCESS_TOKEN,
    REGION_DIST, WORLD_DIST, WORLD_KEYWORDS,
)

logger = logging.getLogger(__name__)

SPLIT_RE = re.compile(r"""[\s,.\-_:;<>/\\\[\]()=+|{}'"?!*#]+""")


class GeocodeError(Exception):
    """Reverse geocoding failed."""


class RetryableGeocodeError(GeocodeError):
    """A transient failure (HTTP 429 or 5xx, timeout) worth trying again."""


class TerminalGeocodeError(GeocodeError):
    """A failure that retrying cannot fix, such as a rejected token."""


def _split_words(text: str) -> list[str]:
    return [w for w in SPLIT_RE.split((text or "").lower()) if w]


class ReverseGeocoder:
    """Thin Mapbox reverse-geocoding client with bounded retry."""

    def __init__(self, access_token: str = MAPBOX_ACCESS_TOKEN, url: str = GEOCODE_URL,
                 timeout: float = GEOCODE_TIMEOUT):
        self.access_token = access_token
        self.url = url
        self.timeout = timeout
        self.max_retries = GEOCODE_MAX_RETRIES
        self.retry_delay = GEOCODE_RETRY_DELAY

    def _request_once(self, lat: float, lng: float) -> list[dict]:
        try:
            response = requests.get(
                self.url.format(lat=lat, lng=lng),
                params={"access_token": self.access_token},
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise RetryableGeocodeError(f"timeout: {exc}") from exc
        except requests.exceptions.ConnectionError as exc:
            raise RetryableGeocodeError(f"connection error: {exc}") from exc
        except requests.exceptions.RequestException as exc:
            raise TerminalGeocodeError(f"request failed: {exc}") from exc

        status = response.status_code
        if status == 429 or status >= 500:
            raise RetryableGeocodeError(f"HTTP {status}")
        if status != 200:
            raise TerminalGeocodeError(f"HTTP {status}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise TerminalGeocodeError("reply is not JSON") from exc
        if not isinstance(payload, dict):
            raise TerminalGeocodeError("reply is not a JSON object")
        return payload.get("features") or []

    def reverse(self, lat: float, lng: float) -> list[dict]:
        """Features at a coordinate, retrying transient failures."""
        for attempt in range(self.max_retries):
            try:
                return self._request_once(lat, lng)
            except RetryableGeocodeError as exc:
                logger.warning(f"Geocode attempt {attempt + 1}/{self.max_retries} failed: {exc}")
                if attempt == self.max_retries - 1:
                    raise
                time.sleep(self.retry_delay * (attempt + 1))
        raise RetryableGeocodeError("no attempts made")


def lookup_station_name(lat: float, lng: float, geocoder: ReverseGeocoder | None = None) -> str | None:
    """Name for a new station: the first feature with text, or None."""
    geocoder = geocoder or ReverseGeocoder()
    try:
        features = geocoder.reverse(lat, lng)
    except GeocodeError as exc:
        logger.warning(f"Station name lookup failed at {lat},{lng}: {exc}")
        return None
    for feature in features:
        if feature.get("text"):
            return feature["text"]
    return None


def generate_title_keywords(title: str | None) -> list[str]:
    return _split_words(title) if title else []


def _place_type(max_dist: float) -> str:
    if max_dist > COUNTRY_DIST:
        return "country"
    if max_dist > REGION_DIST:
        return "region"
    return "place"


def generate_geo_keywords(centroid: dict | None, max_dist: float | None,
                          geocoder: ReverseGeocoder | None = None) -> list[str]:
    """Place-name words describing where a system is.

    The wider the system, the coarser the place type looked up.  Network
    failures return whatever words were gathered before the lookup.
    """
    if not centroid:
        return []
    max_dist = max_dist or 0
    if max_dist > WORLD_DIST:
        return list(WORLD_KEYWORDS)

    words = ["international"] if max_dist > INTERNATIONAL_DIST else []
    place_type = _place_type(max_dist)

    geocoder = geocoder or ReverseGeocoder()
    try:
        features = geocoder.reverse(centroid["lat"], centroid["lng"])
    except GeocodeError as exc:
        logger.warning(f"Geo keyword lookup failed: {exc}")
        return words

    matches = [f for f in features if place_type in (f.get("place_type") or [])]
    if not matches:
        return words

    feature = matches[0]
    words.extend(_split_words(feature.get("text")))
    short_code = (feature.get("properties") or {}).get("short_code")
    if short_code:
        words.extend(_split_words(short_code))
    for item in feature.get("context") or []:
        words.extend(_split_words(item.get("text")))
        words.extend(_split_words(item.get("short_code")))
    return words


def unique_keywords(*groups: list[str]) -> list[str]:
    """Concatenate keyword lists, dropping blanks and repeats, keeping order."""
    seen = []
    for group in groups:
        for word in group:
            if word and word not in seen:
                seen.append(word)
    return seen


class GeoKeywordLookup:
    """Runs geocoding off the caller's thread."""

    def __init__(self, geocoder: ReverseGeocoder | None = None, max_workers: int = GEOCODE_WORKERS):
        self.geocoder = geocoder or ReverseGeocoder()
        self._executor = ThreadPoolExecutor(max_workers=max_workers)

    def keywords(self, title: str | None, centroid: dict | None, max_dist: float | None) -> Future:
        """Future resolving to the title + place keywords for a system."""
        return self._executor.submit(self._keywords, title, centroid, max_dist)

    def station_name(self, lat: float, lng: float) -> Future:
        return self._executor.submit(lookup_station_name, lat, lng, self.geocoder)

    def _keywords(self, title, centroid, max_dist) -> list[str]:
        return unique_keywords(
            generate_title_keywords(title),
            generate_geo_keywords(centroid, max_dist, self.geocoder),
        )

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
