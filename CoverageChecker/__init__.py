import time

from flask import Flask

from .cache import TTLCache
from .log import configure_logging
from .settings import load_settings, log_level

app = Flask(__name__)
app.config.update(load_settings())
app.config["STARTED_AT"] = time.monotonic()

configure_logging(level=log_level(app.config))

# Served operators.json, reloaded from disk once the TTL runs out
app.extensions["operators_cache"] = TTLCache(ttl=app.config["OPERATORS_CACHE_DURATION"])

import CoverageChecker.views
