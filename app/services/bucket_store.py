"""
Date Bucket Store

In-memory store of day buckets: calendar day -> (show id -> Show).
One instance is created at startup and shared by every request.
"""
import logging
import threading
from datetime import date

from app.services.cache_types import Airing, Show
from app.services.errors import StoreError


logger = logging.getLogger(__name__)


class DateBucketStore:
    """
    Owns every day bucket and the shows inside them.

    Reads return detached snapshots and never take a lock. Bucket and show
    creation are insert-if-absent operations under a short store-level lock;
    adding an airing locks only the show it belongs to, so merges for
    unrelated shows do not wait on each other.

    The store also tracks which days have a provider fetch in flight and
    counts removals per day. A fetch compares the generation it started with
    against the current one to detect that a sibling rolled the day back
    underneath it.
    """

    def __init__(self):
        self._buckets: dict[date, dict[str, Show]] = {}
        self._create_lock = threading.Lock()
        self._in_flight: dict[date, int] = {}
        self._generations: dict[date, int] = {}

    def get(self, day: date) -> dict[str, Show] | None:
        """
        Get a snapshot of the bucket for a day.

        Args:
            day: Calendar day

        Returns:
            New dict of show snapshots, or None if the day is not cached
        """
        bucket = self._buckets.get(day)
        if bucket is None:
            return None
        return {show_id: show.snapshot() for show_id, show in list(bucket.items())}

    def contains(self, day: date) -> bool:
        return day in self._buckets

    def days(self) -> list[date]:
        return sorted(self._buckets)

    def remove(self, day: date) -> bool:
        """
        Drop a day bucket unconditionally.

        Returns:
            True if a bucket was present
        """
        with self._create_lock:
            removed = self._buckets.pop(day, None) is not None
            if removed:
                self._generations[day] = self._generations.get(day, 0) + 1
        if removed:
            logger.debug("Removed bucket for %s", day.isoformat())
        return removed

    def generation(self, day: date) -> int:
        """Number of times a bucket for the day has been removed."""
        return self._generations.get(day, 0)

    def begin_fetch(self, day: date) -> int:
        """
        Register a provider fetch that will write into the day's bucket.

        Returns:
            The day's generation when the fetch started
        """
        with self._create_lock:
            self._in_flight[day] = self._in_flight.get(day, 0) + 1
            return self._generations.get(day, 0)

    def end_fetch(self, day: date) -> None:
        with self._create_lock:
            remaining = self._in_flight.get(day, 0) - 1
            if remaining > 0:
                self._in_flight[day] = remaining
            else:
                self._in_flight.pop(day, None)

    def is_fetching(self, day: date) -> bool:
        """True while at least one fetch is still writing into the day."""
        return day in self._in_flight

    def merge(
        self,
        day: date,
        airing: Airing,
        show_id: str,
        title: str,
        description: str,
    ) -> None:
        """
        Fold one airing into the bucket for a day.

        Creates the bucket and the show when they do not exist yet, then adds
        the airing to the show's airing set.

        Raises:
            StoreError: If the bucket could not be updated
        """
        try:
            bucket = self._buckets.get(day)
            if bucket is None:
                with self._create_lock:
                    bucket = self._buckets.setdefault(day, {})

            show = bucket.get(show_id)
            if show is None:
                with self._create_lock:
                    show = bucket.setdefault(
                        show_id,
                        Show(id=show_id, title=title, description=description),
                    )

            show.add_airing(airing)
        except Exception as exc:
            raise StoreError(
                f"Error storing airing {airing.id} for show {show_id} on {day.isoformat()}",
                exc,
            ) from exc

    def __len__(self) -> int:
        return len(self._buckets)
