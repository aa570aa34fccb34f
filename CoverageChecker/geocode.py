# CoverageChecker/geocode.py
"""Reverse geocoding through OpenStreetMap Nominatim."""

import logging

import requests

from .countries import resolve_country_code
from .errors import SourceUnavailable, UpstreamTimeout, ValidationFailure

log = logging.getLogger(__name__)

NOMINATIM_HEADERS = {"User-Agent": "CoverageChecker/1.0"}


def parse_coordinates(lat, lng):
    """
    Validates raw query values and returns them as floats.
    Raises ValidationFailure with a message suitable for the client.
    """
    if lat in (None, "") or lng in (None, ""):
        raise ValidationFailure("lat and lng parameters are required")
    try:
        latitude, longitude = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValidationFailure("lat and lng must be valid numbers")
    if latitude != latitude or longitude != longitude:
        raise ValidationFailure("lat and lng must be valid numbers")
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValidationFailure("Invalid coordinate range")
    return latitude, longitude


def reverse_geocode(lat: float, lng: float, *, url: str, session=None, timeout: float = 5.0):
    """
    Location of a point as ``{countryCode, country, state, displayName}``,
    or None when Nominatim has no address for it.

    Special regions (Hong Kong, Macau, ...) get their own country code.
    """
    http = session or requests
    log.debug("Geocoding coordinates: %s, %s", lat, lng)
    try:
        resp = http.get(
            url,
            params={"lat": lat, "lon": lng, "format": "json", "addressdetails": 1},
            headers=NOMINATIM_HEADERS,
            timeout=timeout,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.Timeout as e:
        raise UpstreamTimeout("Geocoding service timeout") from e
    except (requests.RequestException, ValueError) as e:
        raise SourceUnavailable("Geocoding service unavailable", status_code=500) from e

    address = data.get("address") if isinstance(data, dict) else None
    if not address:
        log.warning("No address data found for coordinates: %s, %s", lat, lng)
        return None

    return {
        "countryCode": resolve_country_code(address),
        "country": address.get("country", ""),
        "state": address.get("state") or address.get("territory") or "",
        "displayName": data.get("display_name", ""),
    }
