# CoverageChecker/views.py

import json
import logging
import os
import time
from datetime import datetime, timezone
from urllib.parse import urlparse

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from . import app
from .errors import CoverageError
from .geocode import parse_coordinates, reverse_geocode
from .resolver import resolve

log = logging.getLogger(__name__)


def _load_operators(path):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def _uptime():
    return round(time.monotonic() - current_app.config["STARTED_AT"], 3)


def _now():
    return datetime.now(timezone.utc).isoformat()


# ---------- Operators ----------
@app.route("/api/operators", methods=["GET"])
def api_operators():
    path = current_app.config["OPERATORS_PATH"]
    cache = current_app.extensions["operators_cache"]

    if not cache.is_fresh() and not os.path.exists(path):
        log.warning("%s not found", path)
        return jsonify([])

    try:
        operators = cache.get(lambda: _load_operators(path))
    except (OSError, ValueError) as e:
        log.error("Error reading %s: %s", path, e)
        return jsonify(error="Failed to load operators data"), 500

    resp = jsonify(operators)
    resp.headers["Cache-Control"] = f"public, max-age={int(cache.ttl)}"
    return resp


# ---------- Reverse geocoding ----------
@app.route("/api/geocode", methods=["GET"])
def api_geocode():
    lat, lng = parse_coordinates(request.args.get("lat"), request.args.get("lng"))
    location = reverse_geocode(
        lat,
        lng,
        url=current_app.config["NOMINATIM_URL"],
        timeout=current_app.config["REQUEST_TIMEOUT"],
    )
    if location is None:
        return jsonify(error="Could not determine location")
    resp = jsonify(location)
    resp.headers["Cache-Control"] = "public, max-age=86400"
    return resp


# ---------- Map link expansion ----------
@app.route("/api/expand", methods=["POST"])
def api_expand():
    data = request.get_json(silent=True) or {}
    url = data.get("url") if isinstance(data, dict) else None
    if not url:
        return jsonify(error="URL is required"), 400
    if not isinstance(url, str):
        return jsonify(error="URL must be a string"), 400
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        return jsonify(error="Invalid URL format"), 400

    log.debug("Expanding URL: %s", url)
    # transport failures surface as CoverageError (504 / 404 / 500)
    result = resolve(
        url,
        timeout=current_app.config["REQUEST_TIMEOUT"],
        max_redirects=current_app.config["MAX_REDIRECTS"],
        max_body_bytes=current_app.config["MAX_BODY_BYTES"],
    )

    payload = result.to_dict()
    if result.coords is None:
        payload["error"] = "Could not find coordinates"
    return jsonify(payload)


# ---------- Health ----------
@app.route("/health", methods=["GET"])
def health():
    return jsonify(status="ok", timestamp=_now(), uptime=_uptime())


@app.route("/health/detailed", methods=["GET"])
def health_detailed():
    operators_ok = os.path.exists(current_app.config["OPERATORS_PATH"])
    status = "ok" if operators_ok else "degraded"
    body = {
        "status": status,
        "timestamp": _now(),
        "uptime": _uptime(),
        "checks": {"operatorsData": "ok" if operators_ok else "missing"},
    }
    return jsonify(body), 200 if operators_ok else 503


# ---------- Errors ----------
@app.errorhandler(CoverageError)
def handle_coverage_error(e):
    if e.status_code >= 500:
        log.error("Error processing %s %s: %s", request.method, request.path, e)
    return jsonify(error=e.message or "Internal server error"), e.status_code


@app.errorhandler(404)
def not_found(e):
    return jsonify(error="Route not found"), 404


@app.errorhandler(Exception)
def handle_unexpected(e):
    if isinstance(e, HTTPException):
        return jsonify(error=e.description), e.code
    log.exception("Error processing %s %s", request.method, request.path)
    body = {"error": "Internal server error"}
    if current_app.config["ENV"] == "development":
        body["detail"] = str(e)
    return jsonify(body), 500
