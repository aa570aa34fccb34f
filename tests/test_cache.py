import pytest

from CoverageChecker.cache import TTLCache


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_value_is_reused_until_ttl_expires():
    clock = FakeClock()
    cache = TTLCache(ttl=300, clock=clock)
    loads = []

    def loader():
        loads.append(clock.now)
        return len(loads)

    assert cache.get(loader) == 1
    clock.now += 299
    assert cache.get(loader) == 1
    clock.now += 1
    assert cache.get(loader) == 2
    assert loads == [1000.0, 1300.0]
    assert cache.fetched_at == 1300.0


def test_failed_load_keeps_cache_empty():
    cache = TTLCache(ttl=60, clock=FakeClock())

    def broken():
        raise OSError("disk gone")

    with pytest.raises(OSError):
        cache.get(broken)
    assert not cache.is_fresh()
    assert cache.get(lambda: "ok") == "ok"


def test_clear():
    cache = TTLCache(ttl=60, clock=FakeClock())
    cache.get(lambda: [1])
    cache.clear()
    assert cache.value is None
    assert not cache.is_fresh()
