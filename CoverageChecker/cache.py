# CoverageChecker/cache.py

import time
from typing import Any, Callable, Optional


class TTLCache:
    """
    Holds one value for ``ttl`` seconds.

    ``clock`` returns seconds; tests pass a fake one.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self.value: Any = None
        self.fetched_at: Optional[float] = None

    def is_fresh(self) -> bool:
        if self.fetched_at is None:
            return False
        return self.clock() - self.fetched_at < self.ttl

    def get(self, loader: Callable[[], Any]) -> Any:
        """Returns the cached value, calling ``loader`` when empty or expired."""
        if not self.is_fresh():
            self.value = loader()
            self.fetched_at = self.clock()
        return self.value

    def clear(self) -> None:
        self.value = None
        self.fetched_at = None
