import socket

import pytest
import requests

from CoverageChecker.errors import SourceUnavailable, UpstreamTimeout
from CoverageChecker.models import Coordinate
from CoverageChecker.resolver import fetch_page, resolve, unwrap_consent

from tests.support import FakeResponse, FakeSession

SHORT = "https://maps.app.goo.gl/abc123"
PLACE = "https://www.google.com/maps/place/Macau/@22.19,113.54,12z/data=!4m2!3m1!1s0x0:0x0!8m2!3d22.1987!4d113.5439"
PAGE = "https://maps.example.com/share/xyz"


def test_resolve_follows_redirect_and_reads_url():
    session = FakeSession({("HEAD", SHORT): FakeResponse(url=PLACE)})

    result = resolve(SHORT, session=session)

    assert result.final_url == PLACE
    assert result.coords == Coordinate(22.1987, 113.5439)
    method, _, kwargs = session.calls[0]
    assert method == "HEAD"
    assert kwargs["allow_redirects"] is True
    assert len(session.calls) == 1


def test_resolve_unwraps_consent_page():
    consent = "https://consent.google.com/ml?continue=https://www.google.com/maps/%4048.85,2.29,15z&gl=FR"
    session = FakeSession({("HEAD", SHORT): FakeResponse(url=consent)})

    result = resolve(SHORT, session=session)

    assert result.final_url == "https://www.google.com/maps/@48.85,2.29,15z"
    assert result.coords == Coordinate(48.85, 2.29)


def test_resolve_falls_back_to_page_body():
    html = '<meta property="place:location:latitude" content="37.33"><meta property="place:location:longitude" content="-122.01">'
    session = FakeSession({
        ("HEAD", PAGE): FakeResponse(url=PAGE),
        ("GET", PAGE): FakeResponse(text=html),
    })

    result = resolve(PAGE, session=session)

    assert result.final_url == PAGE
    assert result.coords == Coordinate(37.33, -122.01)
    assert [c[0] for c in session.calls] == ["HEAD", "GET"]


def test_resolve_uses_original_url_when_head_fails():
    session = FakeSession({
        ("HEAD", PAGE): requests.ConnectionError("refused"),
        ("GET", PAGE): FakeResponse(text='{"center": [1.5, 2.5]}'),
    })

    result = resolve(PAGE, session=session)

    assert result.final_url == PAGE
    assert result.coords == Coordinate(1.5, 2.5)


def test_resolve_without_coordinates():
    session = FakeSession({
        ("HEAD", PAGE): FakeResponse(url=PAGE),
        ("GET", PAGE): FakeResponse(text="<html>nothing</html>"),
    })

    result = resolve(PAGE, session=session)

    assert result.coords is None
    assert result.to_dict() == {"expandedUrl": PAGE}


def test_resolve_body_timeout():
    session = FakeSession({
        ("HEAD", PAGE): FakeResponse(url=PAGE),
        ("GET", PAGE): requests.ReadTimeout("slow"),
    })
    with pytest.raises(UpstreamTimeout):
        resolve(PAGE, session=session)


def test_resolve_unknown_host():
    dns = requests.ConnectionError(socket.gaierror(-2, "Name or service not known"))
    session = FakeSession({("HEAD", PAGE): dns, ("GET", PAGE): dns})

    with pytest.raises(SourceUnavailable) as exc:
        resolve(PAGE, session=session)

    assert exc.value.status_code == 404
    assert exc.value.message == "URL not found"


def test_resolve_refused_connection():
    refused = requests.ConnectionError(ConnectionRefusedError(111, "Connection refused"))
    session = FakeSession({("HEAD", PAGE): refused, ("GET", PAGE): refused})

    with pytest.raises(SourceUnavailable) as exc:
        resolve(PAGE, session=session)

    assert exc.value.status_code == 500
    assert exc.value.message == "Failed to process URL"


def test_dns_failure_found_through_exception_chain():
    try:
        try:
            raise socket.gaierror(-3, "Temporary failure in name resolution")
        except socket.gaierror as inner:
            raise requests.ConnectionError("Max retries exceeded") from inner
    except requests.ConnectionError as e:
        wrapped = e
    session = FakeSession({("GET", PAGE): wrapped})

    with pytest.raises(SourceUnavailable) as exc:
        fetch_page(PAGE, session=session, timeout=1, max_bytes=1024)
    assert exc.value.status_code == 404


def test_fetch_page_reads_at_most_max_bytes():
    body = "x" * 100 + '{"center": [1, 2]}'
    session = FakeSession({("GET", PAGE): FakeResponse(text=body)})

    html = fetch_page(PAGE, session=session, timeout=1, max_bytes=64)

    assert html == "x" * 64
    assert session.calls[0][2]["stream"] is True


def test_fetch_page_unknown_charset_decodes_as_utf8():
    resp = FakeResponse(text='{"center": [22.19, 113.54]} caf\u00e9')
    resp.encoding = "x-bogus-charset"
    session = FakeSession({("GET", PAGE): resp})

    html = fetch_page(PAGE, session=session, timeout=1, max_bytes=1024)

    assert html == '{"center": [22.19, 113.54]} caf\u00e9'


def test_resolve_page_with_unknown_charset():
    resp = FakeResponse(text='{"center": [22.19, 113.54]}')
    resp.encoding = "x-bogus-charset"
    session = FakeSession({("HEAD", PAGE): FakeResponse(url=PAGE), ("GET", PAGE): resp})

    assert resolve(PAGE, session=session).coords == Coordinate(22.19, 113.54)


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://consent.google.com/ml?continue=https%3A%2F%2Fmaps.google.com%2F%3Fq%3D1%2C2", "https://maps.google.com/?q=1,2"),
        ("https://consent.google.com/ml?gl=FR", "https://consent.google.com/ml?gl=FR"),
        ("https://maps.google.com/?continue=https://evil.example", "https://maps.google.com/?continue=https://evil.example"),
    ],
)
def test_unwrap_consent(url, expected):
    assert unwrap_consent(url) == expected
