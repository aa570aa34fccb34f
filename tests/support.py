"""Stand-ins for requests' session and response objects."""

import json

import requests


class FakeResponse:
    def __init__(self, status_code=200, text="", payload=None, url="", encoding="utf-8"):
        self.status_code = status_code
        self.text = text if payload is None else json.dumps(payload)
        self.url = url
        self.encoding = encoding
        self.content = self.text.encode(encoding or "utf-8")
        self.closed = False

    def json(self):
        return json.loads(self.text)

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def iter_content(self, chunk_size=1):
        for start in range(0, len(self.content), chunk_size):
            yield self.content[start:start + chunk_size]

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.closed = True
        return False


class FakeSession:
    """
    Answers from ``routes``: {(method, url): FakeResponse | Exception | callable}.
    Every call is recorded in ``calls``.
    """

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def _answer(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        answer = self.routes.get((method, url))
        if answer is None:
            raise requests.ConnectionError(f"no route for {method} {url}")
        if callable(answer) and not isinstance(answer, FakeResponse):
            answer = answer(url, kwargs)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def get(self, url, **kwargs):
        return self._answer("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._answer("POST", url, kwargs)

    def head(self, url, **kwargs):
        return self._answer("HEAD", url, kwargs)

    def close(self):
        pass
