"""
EPG Cache Service

Answers "what aired on a day" and "which shows aired most/least often in a
range" from the day bucket store, fetching missing days from the provider.
A day whose fetch fails is rolled back so no caller ever sees it half-filled.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import aclosing
from datetime import date

from app.services.bucket_store import DateBucketStore
from app.services.cache_types import AiringRecord, Occurrence, Show
from app.services.epg_client import AiringStreamSource
from app.services.errors import (
    InvalidArgumentError,
    NotFoundError,
    UpstreamProtocolError,
)
from app.services.occurrence_aggregator import (
    SortOrder,
    merge_occurrences,
    rank_occurrences,
)
from app.utils.date_converter import DateFormatError, days_in_range, parse_to_date
from app.utils.logging_helpers import (
    log_cache_hit,
    log_fetch_end,
    log_range_summary,
    log_rollback,
    log_stale_fetch,
)


logger = logging.getLogger(__name__)


class EPGCacheService:
    """Read-through cache over the EPG provider, keyed by calendar day."""

    def __init__(
        self,
        store: DateBucketStore,
        source: AiringStreamSource,
        *,
        max_concurrency: int = 4,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self.store = store
        self.source = source
        self.max_concurrency = max_concurrency

    async def get_raw_data(self, day: date) -> list[Show]:
        """
        Get every show that aired on a day, with its airings

        Args:
            day: Calendar day

        Returns:
            Show snapshots sorted by show id

        Raises:
            NotFoundError: Provider has nothing for the day
            UpstreamUnavailableError, UpstreamProtocolError, StoreError: Fetch failed
        """
        bucket = await self._load_day(day)
        return [bucket[show_id] for show_id in sorted(bucket)]

    async def get_ordered_by_occurrences(
        self,
        start: date,
        end: date | None,
        order: str,
        limit: int,
    ) -> list[Occurrence]:
        """
        Rank shows by how many times they aired between two days

        Args:
            start: First day of the range
            end: Last day of the range, inclusive; defaults to start
            order: 'asc' or 'desc', case-insensitive
            limit: Maximum number of occurrences returned

        Returns:
            Occurrences sorted by count, ties by show id ascending

        Raises:
            InvalidArgumentError: Bad order, start after end, or non-positive limit
            NotFoundError: Provider has nothing for one of the days
        """
        sort_order = SortOrder.parse(order)
        if end is None:
            end = start
        if start > end:
            raise InvalidArgumentError("Start date cannot be after end date.")
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
            raise InvalidArgumentError(f"Limit must be a positive integer, got {limit!r}.")

        buckets = await self._load_days(days_in_range(start, end))

        occurrences = merge_occurrences(buckets)
        ranked = rank_occurrences(occurrences.values(), sort_order, limit)
        log_range_summary(logger, start, end, len(occurrences), len(ranked))
        return ranked

    async def _load_days(self, days: list[date]) -> list[dict[str, Show]]:
        """Load several days concurrently; the first failure cancels the rest."""
        semaphore = asyncio.Semaphore(self.max_concurrency)
        tasks = [asyncio.create_task(self._load_day_bounded(day, semaphore)) for day in days]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _load_day_bounded(self, day: date, semaphore: asyncio.Semaphore) -> dict[str, Show]:
        async with semaphore:
            return await self._load_day(day)

    async def _load_day(self, day: date) -> dict[str, Show]:
        # A bucket another fetch is still filling is not a cache hit
        if not self.store.is_fetching(day):
            cached = self.store.get(day)
            if cached is not None:
                log_cache_hit(logger, day)
                return cached
        return await self._fetch_day(day)

    async def _fetch_day(self, day: date) -> dict[str, Show]:
        while True:
            bucket = await self._fetch_day_once(day)
            if bucket is not None:
                return bucket

    async def _fetch_day_once(self, day: date) -> dict[str, Show] | None:
        """
        Fetch a day from the provider and fold it into the store.

        On any error the requested day's bucket, plus any bucket this fetch
        created for another day, is removed before the error propagates.

        If a concurrent fetch rolled back a bucket this one was writing to,
        the records merged before that rollback are gone. Such buckets are
        dropped too, and None is returned when the requested day is one of
        them so the caller fetches it again.
        """
        records = 0
        created: set[date] = set()
        touched = {day: self.store.begin_fetch(day)}
        try:
            try:
                async with aclosing(self.source.fetch(day)) as stream:
                    async for record in stream:
                        records += 1
                        self._fold(record, touched, created)
            except BaseException as exc:
                self.store.remove(day)
                for other in created - {day}:
                    self.store.remove(other)
                log_rollback(logger, day, exc)
                raise

            if records == 0:
                raise NotFoundError(f"No data found for the requested date: {day.isoformat()}")

            stale = sorted(d for d, started in touched.items() if self.store.generation(d) != started)
            if stale:
                for other in stale:
                    self.store.remove(other)
                log_stale_fetch(logger, day, stale)
                if day in stale:
                    return None

            bucket = self.store.get(day) or {}
        finally:
            for other in touched:
                self.store.end_fetch(other)

        log_fetch_end(logger, day, records, len(bucket))
        return bucket

    def _fold(self, record: AiringRecord, touched: dict[date, int], created: set[date]) -> None:
        try:
            bucket_day = parse_to_date(record.start_time)
        except DateFormatError as exc:
            raise UpstreamProtocolError(
                f"Airing {record.id} has an invalid start time: {record.start_time!r}",
                exc,
            ) from exc

        if bucket_day not in touched:
            touched[bucket_day] = self.store.begin_fetch(bucket_day)
        if not self.store.contains(bucket_day):
            created.add(bucket_day)
        self.store.merge(
            bucket_day,
            record.to_airing(),
            record.show_id,
            record.show_title,
            record.show_description,
        )
