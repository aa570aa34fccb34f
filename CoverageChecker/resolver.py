# CoverageChecker/resolver.py

import logging
import socket
from urllib.parse import parse_qs, urlparse

import requests

from .coordinates import extract_from_html, extract_from_url
from .errors import SourceUnavailable, UpstreamTimeout
from .models import Resolution

log = logging.getLogger(__name__)

PAGE_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
}

# Cookie-consent interstitials that carry the real target in ?continue=
CONSENT_HOSTS = ("consent.google.com", "consent.youtube.com")

CHUNK_SIZE = 64 * 1024


def _session(max_redirects: int) -> requests.Session:
    session = requests.Session()
    session.max_redirects = max_redirects
    return session


def follow_redirects(url: str, *, session, timeout: float) -> str:
    """Final URL after redirects, or ``url`` itself when the request fails."""
    try:
        resp = session.head(url, allow_redirects=True, timeout=timeout)
    except requests.RequestException as e:
        log.warning("HEAD request failed, using original URL: %s", e)
        return url
    final = resp.url or url
    if final != url:
        log.debug("URL expanded to: %s", final)
    return final


def unwrap_consent(url: str) -> str:
    """The ``continue`` target of a consent page; other URLs unchanged."""
    parsed = urlparse(url)
    if (parsed.hostname or "").lower() not in CONSENT_HOSTS:
        return url
    target = parse_qs(parsed.query).get("continue")
    if target and target[0]:
        log.debug("Consent page unwrapped to: %s", target[0])
        return target[0]
    return url


def _is_dns_failure(exc: BaseException) -> bool:
    """True when a socket.gaierror sits anywhere in the exception chain."""
    seen = set()
    pending = [exc]
    while pending:
        err = pending.pop()
        if err is None or id(err) in seen:
            continue
        seen.add(id(err))
        if isinstance(err, socket.gaierror):
            return True
        # requests wraps urllib3 errors in args, urllib3 keeps them in .reason
        pending.extend(a for a in err.args if isinstance(a, BaseException))
        pending.extend((getattr(err, "reason", None), err.__cause__, err.__context__))
    return False


def fetch_page(url: str, *, session, timeout: float, max_bytes: int) -> str:
    """
    Body of ``url``, reading at most ``max_bytes``.

    Raises UpstreamTimeout / SourceUnavailable on transport errors.
    """
    try:
        with session.get(url, headers=PAGE_HEADERS, timeout=timeout, stream=True) as resp:
            chunks = []
            size = 0
            for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                chunks.append(chunk)
                size += len(chunk)
                if size >= max_bytes:
                    break
            encoding = resp.encoding or "utf-8"
    except requests.Timeout as e:
        log.error("Timed out fetching %s: %s", url, e)
        raise UpstreamTimeout("Request timeout") from e
    except requests.ConnectionError as e:
        if not _is_dns_failure(e):
            log.error("URL expansion error for %s: %s", url, e)
            raise SourceUnavailable("Failed to process URL", status_code=500) from e
        log.error("Could not resolve host of %s: %s", url, e)
        raise SourceUnavailable("URL not found", status_code=404) from e
    except requests.RequestException as e:
        log.error("URL expansion error for %s: %s", url, e)
        raise SourceUnavailable("Failed to process URL", status_code=500) from e
    body = b"".join(chunks)[:max_bytes]
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        log.debug("Unknown charset %r for %s, decoding as utf-8", encoding, url)
        return body.decode("utf-8", errors="replace")


def resolve(
    url: str,
    *,
    session=None,
    timeout: float = 5.0,
    max_redirects: int = 10,
    max_body_bytes: int = 1024 * 1024,
) -> Resolution:
    """
    Expands a (short) map link and looks for the coordinates it points at.

    Tries the expanded URL first, then the page behind it. ``coords`` is
    None when neither carries usable coordinates.
    """
    owned = session is None
    http = session or _session(max_redirects)
    try:
        return _resolve(url, http, timeout, max_body_bytes)
    finally:
        if owned:
            http.close()


def _resolve(url, http, timeout, max_body_bytes):
    final_url = unwrap_consent(follow_redirects(url, session=http, timeout=timeout))

    coords = extract_from_url(final_url)
    if coords is not None:
        log.info("Coordinates extracted from URL: %s, %s", coords.lat, coords.lng)
        return Resolution(final_url, coords)

    log.debug("No coordinates in URL, fetching page content")
    html = fetch_page(final_url, session=http, timeout=timeout, max_bytes=max_body_bytes)
    coords = extract_from_html(html)
    if coords is not None:
        log.info("Coordinates extracted from HTML: %s, %s", coords.lat, coords.lng)
    else:
        log.warning("No coordinates found for URL: %s", url)
    return Resolution(final_url, coords)
