"""
Structured logging helpers for consistent log formatting.

Provides utilities for structured, clean logging of cache activity.
"""
import logging
from datetime import date

from app.utils.date_converter import format_date_key


def log_cache_hit(logger: logging.Logger, day: date) -> None:
    """Log that a day was served from cache."""
    logger.info(f"Retrieving from cache for day: {format_date_key(day)}")


def log_fetch_start(logger: logging.Logger, day: date) -> None:
    """Log the start of a provider fetch for a day."""
    logger.info(f"Retrieving data from provider for day: {format_date_key(day)}")


def log_fetch_end(
    logger: logging.Logger,
    day: date,
    records: int,
    shows: int
) -> None:
    """
    Log a completed provider fetch.

    Args:
        logger: Logger instance
        day: Day that was fetched
        records: Number of airing records received
        shows: Number of distinct shows cached for the day
    """
    logger.info(f"Cached day {format_date_key(day)}: {records} airings, {shows} shows")


def log_rollback(logger: logging.Logger, day: date, exc: BaseException) -> None:
    """
    Log that a day bucket was discarded after a failed fetch.

    Args:
        logger: Logger instance
        day: Day whose bucket was removed
        exc: Error that caused the rollback
    """
    logger.warning(
        f"Fetch for {format_date_key(day)} failed ({type(exc).__name__}: {exc}), bucket discarded"
    )


def log_stale_fetch(logger: logging.Logger, day: date, stale: list[date]) -> None:
    """Log that a sibling rollback removed buckets this fetch was writing to."""
    logger.warning(
        f"Fetch for {format_date_key(day)} overlapped a rollback of "
        f"{', '.join(format_date_key(d) for d in stale)}, discarding its buckets"
    )


def log_range_summary(
    logger: logging.Logger,
    start: date,
    end: date,
    shows: int,
    returned: int
) -> None:
    """Log the outcome of a ranged occurrence query."""
    logger.info(
        f"Occurrences {format_date_key(start)} -> {format_date_key(end)}: "
        f"{shows} distinct shows, returning {returned}"
    )
