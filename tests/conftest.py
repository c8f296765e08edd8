import pytest

from localbase import LocalClient, MemoryStorageBackend, ResponseCache


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture()
def storage():
    return MemoryStorageBackend()


@pytest.fixture()
def client(storage):
    return LocalClient(storage=storage)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def cached_client(storage, clock):
    cache = ResponseCache(max_size=50, default_ttl_minutes=1, clock=clock)
    return LocalClient(storage=storage, cache=cache, cache_ttl_minutes=1)
