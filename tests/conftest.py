import pytest

from CoverageChecker import app as flask_app
from CoverageChecker.cache import TTLCache


@pytest.fixture
def app(tmp_path):
    saved = dict(flask_app.config)
    saved_cache = flask_app.extensions["operators_cache"]
    flask_app.config.update(
        TESTING=True,
        OPERATORS_PATH=str(tmp_path / "operators.json"),
        ENV="production",
    )
    flask_app.extensions["operators_cache"] = TTLCache(ttl=300)
    yield flask_app
    flask_app.config.clear()
    flask_app.config.update(saved)
    flask_app.extensions["operators_cache"] = saved_cache


@pytest.fixture
def client(app):
    return app.test_client()
