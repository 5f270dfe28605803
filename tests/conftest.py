"""
Pytest configuration for the TV Program Frequency Service tests.

Defines markers and shared fixtures: an in-memory stream source standing in
for the EPG provider, and record builders.
"""
import asyncio
from datetime import date

import pytest

from app.services.bucket_store import DateBucketStore
from app.services.cache_types import AiringRecord
from app.services.epg_cache_service import EPGCacheService


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: API tests through the FastAPI app")


def make_record(
    airing_id: str,
    show_id: str,
    start_time: str,
    title: str | None = None,
    description: str = "Description",
    season: int = 1,
    episode: int | None = 1,
) -> AiringRecord:
    return AiringRecord(
        id=airing_id,
        season=season,
        episode=episode,
        show_id=show_id,
        show_title=title if title is not None else f"Show {show_id}",
        show_description=description,
        start_time=start_time,
        end_time=start_time.replace("T10:", "T11:"),
    )


class FakeSource:
    """
    In-memory stream source.

    `days` maps a day to the records streamed for it. `failures` maps a day to
    (records_before_failure, exception).
    """

    def __init__(self, days=None, failures=None, delay: float = 0.0):
        self.days: dict[date, list[AiringRecord]] = days or {}
        self.failures: dict[date, tuple[int, BaseException]] = failures or {}
        self.delay = delay
        self.calls: list[date] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def fetch(self, day: date):
        self.calls.append(day)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delay)
            failure = self.failures.get(day)
            for index, record in enumerate(self.days.get(day, [])):
                if failure and index == failure[0]:
                    raise failure[1]
                yield record
                await asyncio.sleep(0)
            if failure and failure[0] >= len(self.days.get(day, [])):
                raise failure[1]
        finally:
            self.in_flight -= 1


class ScriptedSource:
    """
    Stream source that plays one async generator function per call, in order.

    Lets a test pause a stream mid-way and interleave other requests.
    """

    def __init__(self, scripts):
        self.scripts = list(scripts)
        self.calls: list[date] = []

    def fetch(self, day: date):
        self.calls.append(day)
        return self.scripts[len(self.calls) - 1]()


@pytest.fixture
def store() -> DateBucketStore:
    return DateBucketStore()


@pytest.fixture
def source() -> FakeSource:
    return FakeSource()


@pytest.fixture
def cache_service(store, source) -> EPGCacheService:
    return EPGCacheService(store, source, max_concurrency=4)
