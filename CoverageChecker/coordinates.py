# CoverageChecker/coordinates.py
"""
Coordinate extraction from map links and map pages.

Both cascades are ordered tables; the first entry that matches decides.
"""

import math
import re
from numbers import Real
from typing import Callable, List, Optional, Tuple
from urllib.parse import unquote

from .models import Coordinate

NUM = r"(-?\d+\.?\d*)"

# (name, pattern, use last occurrence)
URL_PATTERNS: List[Tuple[str, "re.Pattern", bool]] = [
    # Google place marker, repeated after the viewport data for the selected place
    ("place_marker", re.compile(r"!8m2!3d" + NUM + r"!4d" + NUM), True),
    ("marker", re.compile(r"!3d" + NUM + r"!4d" + NUM), True),
    # Apple Maps
    ("coordinate_param", re.compile(r"[?&]coordinate=" + NUM + r"\s*,\s*" + NUM), False),
    # Google Maps URLs (api=1)
    ("query_param", re.compile(r"[?&]query=" + NUM + r"\s*,\s*" + NUM), False),
    ("alternate_params", re.compile(
        r"[?&](?:q|ll|sll|daddr|destination|center)=" + NUM + r"\s*,\s*" + NUM), False),
    # map centre, least specific
    ("viewport", re.compile(r"@" + NUM + r"\s*,\s*" + NUM), False),
    ("place_path", re.compile(r"/place/(?:[^/?#]+/)?" + NUM + r"\s*,\s*" + NUM), False),
]


def _attr(name: str, content: str = NUM) -> Tuple[str, str]:
    """property-then-content and content-then-property forms of a meta tag."""
    prop = r"""(?:property|name)=["']""" + re.escape(name) + r"""["']"""
    value = r"""content=["']""" + content + r"""["']"""
    return prop + r"\s+" + value, value + r"\s+" + prop


def _pair(pattern: str) -> Callable[[str], Optional[Tuple[str, str]]]:
    regex = re.compile(pattern)

    def extract(html):
        m = regex.search(html)
        return (m.group(1), m.group(2)) if m else None

    return extract


def _split(lat_pattern: str, lng_pattern: str) -> Callable[[str], Optional[Tuple[str, str]]]:
    lat_re, lng_re = re.compile(lat_pattern), re.compile(lng_pattern)

    def extract(html):
        lat, lng = lat_re.search(html), lng_re.search(html)
        return (lat.group(1), lng.group(1)) if lat and lng else None

    return extract


HTML_PATTERNS: List[Tuple[str, Callable[[str], Optional[Tuple[str, str]]]]] = [
    ("place_location_meta", _split(_attr("place:location:latitude")[0],
                                   _attr("place:location:longitude")[0])),
    ("place_location_meta_reversed", _split(_attr("place:location:latitude")[1],
                                            _attr("place:location:longitude")[1])),
    ("og_geo", _split(_attr("og:latitude")[0], _attr("og:longitude")[0])),
    ("json_center", _pair(r'"center"\s*:\s*\[\s*' + NUM + r"\s*,\s*" + NUM + r"\s*\]")),
    ("json_lat_lng", _pair(r'"lat"\s*:\s*"?' + NUM + r'"?\s*,\s*"lng"\s*:\s*"?' + NUM)),
    ("json_latitude_longitude", _pair(
        r'"latitude"\s*:\s*"?' + NUM + r'"?\s*,\s*"longitude"\s*:\s*"?' + NUM)),
]


def is_valid(coords) -> bool:
    """Both values numeric and within latitude / longitude range."""
    if coords is None:
        return False
    if isinstance(coords, Coordinate):
        lat, lng = coords.lat, coords.lng
    elif isinstance(coords, dict):
        lat, lng = coords.get("lat"), coords.get("lng")
    else:
        return False
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value):
            return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def _coordinate(lat: str, lng: str) -> Optional[Coordinate]:
    coords = Coordinate(lat=float(lat), lng=float(lng))
    return coords if is_valid(coords) else None


def _decode(url: str) -> str:
    try:
        return unquote(url, errors="strict")
    except UnicodeDecodeError:
        return url


def extract_from_url(url: str) -> Optional[Coordinate]:
    """
    Coordinates encoded in a map URL, e.g.
    extract_from_url("https://maps.google.com/?q=40.7128,-74.0060")
    gives Coordinate(lat=40.7128, lng=-74.006).
    """
    if not url:
        return None
    text = _decode(url)
    for _name, regex, last in URL_PATTERNS:
        if last:
            match = None
            for match in regex.finditer(text):
                pass
        else:
            match = regex.search(text)
        if match:
            return _coordinate(match.group(1), match.group(2))
    return None


def extract_from_html(html: str) -> Optional[Coordinate]:
    """Coordinates embedded in a map page (meta tags or inline JSON)."""
    if not html:
        return None
    for _name, extract in HTML_PATTERNS:
        found = extract(html)
        if found:
            return _coordinate(*found)
    return None
