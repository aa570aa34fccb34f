# CoverageChecker/settings.py

import os
import json
import logging

from dotenv import dotenv_values, load_dotenv

log = logging.getLogger(__name__)

# Path of this package (CoverageChecker/)
MODULE_PATH = os.path.abspath(os.path.dirname(__file__))
# Project root, one level up (runserver.py, config.json, operators.json)
PROJECT_ROOT = os.path.abspath(os.path.join(MODULE_PATH, os.pardir))

DEFAULTS = {
    "ENV": "development",
    "HOST": "127.0.0.1",
    "PORT": 3000,
    "GSMA_FEED_URL": "https://www.gsma.com/wp-content/uploads/feed.csv",
    "NPERF_API_URL": "https://www.nperf.com/en/map/get-isp-list-by-country",
    "NOMINATIM_URL": "https://nominatim.openstreetmap.org/reverse",
    # seconds
    "REQUEST_TIMEOUT": 5.0,
    "API_DELAY": 0.05,
    "OPERATORS_CACHE_DURATION": 300,
    "OPERATORS_PATH": os.path.join(PROJECT_ROOT, "operators.json"),
    "MAX_REDIRECTS": 10,
    "MAX_BODY_BYTES": 1024 * 1024,
    "LOG_LEVEL": "",
}


def _find_file(fname: str) -> str:
    """
    Looks for fname in MODULE_PATH, then in PROJECT_ROOT.
    Returns the full path when found, otherwise an empty string.
    """
    for base in (MODULE_PATH, PROJECT_ROOT):
        candidate = os.path.join(base, fname)
        if os.path.isfile(candidate):
            return candidate
    return ""


def _coerce(key, raw, default):
    if isinstance(default, bool):
        return str(raw).lower() in ("1", "true", "yes", "on")
    if isinstance(default, (int, float)):
        try:
            return type(default)(raw)
        except (TypeError, ValueError):
            log.warning("Ignoring invalid value %r for %s", raw, key)
            return default
    return str(raw)


def _environment(environ, dotenv_path: str):
    """
    Process environment with the .env file underneath it. Variables that are
    already set win over the file.
    """
    path = dotenv_path or _find_file(".env")
    if environ is None:
        if path:
            load_dotenv(path, override=False)
        return os.environ
    if not path:
        return environ
    merged = {k: v for k, v in dotenv_values(path).items() if v is not None}
    merged.update(environ)
    return merged


def load_settings(config_path: str = None, environ=None, dotenv_path: str = None) -> dict:
    """
    Builds the configuration: DEFAULTS, then config.json (when present),
    then environment variables named like the keys, .env included.
    """
    settings = dict(DEFAULTS)
    environ = _environment(environ, dotenv_path)

    path = config_path or _find_file("config.json")
    if path:
        try:
            with open(path, encoding="utf-8") as f:
                file_cfg = json.load(f)
        except (OSError, ValueError) as e:
            log.warning("Could not read %s: %s", path, e)
            file_cfg = {}
        for key, value in file_cfg.items():
            if key in DEFAULTS:
                settings[key] = _coerce(key, value, DEFAULTS[key])

    for key, default in DEFAULTS.items():
        if key in environ and environ[key] != "":
            settings[key] = _coerce(key, environ[key], default)

    return settings


def log_level(settings: dict) -> int:
    """LOG_LEVEL when set, otherwise INFO in production and DEBUG elsewhere."""
    name = (settings.get("LOG_LEVEL") or "").upper()
    if name:
        level = logging.getLevelName(name)
        if isinstance(level, int):
            return level
    return logging.INFO if settings.get("ENV") == "production" else logging.DEBUG
