# CoverageChecker/sources.py
"""
Upstream operator sources: the GSMA registry feed (CSV) and the nPerf
per-country ISP listing (JSON).
"""

import csv
import io
import logging
import re

import requests

from .countries import is_known_country
from .errors import MalformedResponse, SourceUnavailable, UpstreamTimeout, ValidationFailure
from .models import ListingRecord, RegistryRecord

log = logging.getLogger(__name__)

BROWSER_HEADERS = {"User-Agent": "Mozilla/5.0"}

LISTING_LINK = "https://www.nperf.com/en/map/{code}/-/{listing_id}.{slug}/signal"

# Field aliases seen in listing items
ID_FIELDS = ("IspId", "id_isp")
NAME_FIELDS = ("IspName", "name")


def fetch_registry(url: str, *, session=None, timeout: float = 5.0):
    """
    Downloads the GSMA feed and returns its rows as RegistryRecord.

    Raises SourceUnavailable when the feed cannot be retrieved.
    """
    http = session or requests
    try:
        resp = http.get(url, headers=BROWSER_HEADERS, timeout=timeout)
        resp.raise_for_status()
    except requests.Timeout as e:
        raise UpstreamTimeout(f"GSMA feed timed out: {e}") from e
    except requests.RequestException as e:
        raise SourceUnavailable(f"GSMA feed unavailable: {e}") from e
    return parse_registry(resp.text)


def parse_registry(text: str):
    """Header row dropped; columns are (id, name, country) by position."""
    try:
        rows = [row for row in csv.reader(io.StringIO(text)) if row]
    except csv.Error as e:
        raise MalformedResponse(f"GSMA feed is not valid CSV: {e}") from e
    records = []
    for row in rows[1:]:
        if len(row) < 3:
            log.debug("Skipping short GSMA row: %r", row)
            continue
        records.append(RegistryRecord(registry_id=row[0], name=row[1], country_name=row[2]))
    return records


# ---------- listing envelopes ----------

def _records(value):
    if isinstance(value, dict):
        return list(value.values())
    if isinstance(value, list):
        return value
    return None


def _isp_envelope(payload):
    data = payload.get("data")
    if isinstance(data, dict):
        return _records(data.get("isp"))
    return None


def _result_envelope(payload):
    return _records(payload.get("result"))


# Tried in order; the first one returning records wins.
ENVELOPE_SHAPES = (
    ("data.isp", _isp_envelope),
    ("result", _result_envelope),
)


def decode_envelope(payload):
    """
    Extracts the raw listing items from a response body. A mapping of
    records counts as its values.

    Raises MalformedResponse when no known envelope matches.
    """
    if isinstance(payload, dict):
        for shape, detector in ENVELOPE_SHAPES:
            items = detector(payload)
            if items is not None:
                log.debug("Listing envelope: %s", shape)
                return items
    raise MalformedResponse("unrecognised listing envelope")


def _first(item: dict, fields):
    for field in fields:
        value = item.get(field)
        if value:
            return value
    return None


def listing_slug(name: str) -> str:
    slug = re.sub(r"\s+", "-", name)
    return re.sub(r"[^\w-]", "", slug, flags=re.ASCII)


def listing_link(code: str, listing_id: str, name: str) -> str:
    return LISTING_LINK.format(code=code, listing_id=listing_id, slug=listing_slug(name))


def parse_listings(code: str, items):
    """Keeps the items carrying both an id and a name."""
    listings = []
    for item in items:
        if not isinstance(item, dict):
            continue
        listing_id = _first(item, ID_FIELDS)
        name = _first(item, NAME_FIELDS)
        if not (listing_id and name):
            continue
        listing_id, name = str(listing_id), str(name)
        listings.append(ListingRecord(
            country_code=code,
            listing_id=listing_id,
            listing_name=name,
            link=listing_link(code, listing_id, name),
        ))
    return listings


def fetch_listings(code: str, *, url: str, session=None, timeout: float = 5.0):
    """
    Fetches the operators nPerf knows for one country.

    Any failure for the country is logged and gives an empty list.
    """
    if not is_known_country(code):
        raise ValidationFailure(f"unknown country code: {code!r}")

    http = session or requests
    try:
        resp = http.post(url, json={"countryCode": code}, headers=BROWSER_HEADERS, timeout=timeout)
    except requests.RequestException as e:
        log.debug("Failed to fetch nPerf data for %s: %s", code, e)
        return []

    if resp.status_code != 200:
        log.debug("nPerf answered %s for %s", resp.status_code, code)
        return []

    try:
        items = decode_envelope(resp.json())
    except ValueError as e:
        log.debug("nPerf sent invalid JSON for %s: %s", code, e)
        return []
    except MalformedResponse as e:
        log.debug("Dropping nPerf response for %s: %s", code, e)
        return []

    return parse_listings(code, items)
