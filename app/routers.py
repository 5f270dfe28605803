from typing import Annotated
from fastapi import APIRouter, Depends, Query, Request
import logging

from app.config import settings
from app.dependencies import get_cache_service, get_container, ServiceContainer
from app.schemas import TvShowOccurrenceResponse, TvShowResponse
from app.services import EPGCacheService, InvalidArgumentError
from app.utils.date_converter import DateFormatError, parse_to_date


logger = logging.getLogger(__name__)

main_router = APIRouter()
shows_router = APIRouter(prefix="/api/shows", tags=["ShowsApi"])


def _parse_query_date(name: str, value: str):
    try:
        return parse_to_date(value)
    except DateFormatError as exc:
        raise InvalidArgumentError(
            f"Invalid {name} '{value}'. Expected format is yyyy-MM-dd.", exc
        ) from exc


def _next_prefetch(request: Request) -> str | None:
    scheduler = getattr(request.app.state, "scheduler", None)
    next_run = scheduler.get_next_run_time() if scheduler else None
    return next_run.isoformat() if next_run else None


@main_router.get("/")
async def root(request: Request) -> dict:
    """Root endpoint with service information"""
    return {
        "service": "TV Program Frequency Service",
        "version": "0.1.0",
        "next_scheduled_prefetch": _next_prefetch(request),
        "endpoints": {
            "aggregatedbytvshow": "/api/shows/aggregatedbytvshow?date= - Shows aired on a day",
            "orderedbyoccurrences": "/api/shows/orderedbyoccurrences?startDate=&endDate=&order=&limit= - Shows ranked by airings",
            "health": "/health - Health check"
        }
    }


@main_router.get("/health")
async def health_check(
    request: Request,
    container: Annotated[ServiceContainer, Depends(get_container)]
) -> dict:
    """Health check endpoint"""
    scheduler = getattr(request.app.state, "scheduler", None)
    return {
        "status": "ok",
        "cached_days": len(container.store),
        "scheduler_running": scheduler.running if scheduler else False,
        "next_prefetch": _next_prefetch(request)
    }


@shows_router.get("/aggregatedbytvshow", response_model=list[TvShowResponse])
async def get_raw_data(
    date: Annotated[str, Query(description="Date in yyyy-MM-dd format, e.g. 2024-10-15")],
    cache_service: Annotated[EPGCacheService, Depends(get_cache_service)]
) -> list[TvShowResponse]:
    """
    Get every show that aired on a day, with its airings

    The day is fetched from the EPG provider on first request and served
    from cache afterwards.
    """
    day = _parse_query_date("date", date)
    shows = await cache_service.get_raw_data(day)
    return [TvShowResponse.from_show(show) for show in shows]


@shows_router.get("/orderedbyoccurrences", response_model=list[TvShowOccurrenceResponse])
async def get_ordered_by_occurrences(
    cache_service: Annotated[EPGCacheService, Depends(get_cache_service)],
    start_date: Annotated[str, Query(alias="startDate", description="First day, yyyy-MM-dd")],
    end_date: Annotated[str | None, Query(alias="endDate", description="Last day, yyyy-MM-dd (defaults to startDate)")] = None,
    order: Annotated[str, Query(description="'asc' or 'desc'")] = "asc",
    limit: Annotated[int | None, Query(description="Maximum number of shows returned")] = None
) -> list[TvShowOccurrenceResponse]:
    """
    Get shows ordered by how many times they aired between two days

    If no end date is given, only the start date is considered.
    """
    start = _parse_query_date("startDate", start_date)
    end = _parse_query_date("endDate", end_date) if end_date else None
    effective_limit = limit if limit is not None else settings.default_occurrence_limit

    occurrences = await cache_service.get_ordered_by_occurrences(start, end, order, effective_limit)
    return [TvShowOccurrenceResponse.from_occurrence(occurrence) for occurrence in occurrences]
