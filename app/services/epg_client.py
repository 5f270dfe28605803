"""
EPG Provider Client

Fetches the airings of one day from the external EPG provider and yields them
as AiringRecord objects. Every failure is classified into a cache error kind
before it leaves this module.
"""
from __future__ import annotations

import json
import logging
from collections.abc import AsyncGenerator
from datetime import date
from typing import Any, Protocol

import httpx

from app.services.cache_types import AiringRecord
from app.services.errors import (
    NotFoundError,
    UpstreamProtocolError,
    UpstreamUnavailableError,
)
from app.utils.date_converter import normalize_to_utc_midnight
from app.utils.logging_helpers import log_fetch_start


logger = logging.getLogger(__name__)


class AiringStreamSource(Protocol):
    """Anything that can stream the airings of a day."""

    def fetch(self, day: date) -> AsyncGenerator[AiringRecord, None]: ...


class EPGClient:
    """
    HTTP client for the EPG provider.

    Holds a single httpx.AsyncClient for its whole lifetime; call aclose() on
    shutdown. No retries: a failed request is reported to the caller as is.
    """

    def __init__(
        self,
        base_url: str,
        domain: str,
        epg_type: str,
        *,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url
        self.domain = domain
        self.epg_type = epg_type
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings) -> EPGClient:
        return cls(
            settings.epg_base_url,
            settings.epg_domain,
            settings.epg_type,
            timeout=settings.epg_request_timeout_sec,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def build_params(self, day: date) -> dict[str, str]:
        """Query parameters for a day: a JSON 'variables' object."""
        variables = {
            "date": normalize_to_utc_midnight(day),
            "domain": self.domain,
            "type": self.epg_type,
        }
        return {"variables": json.dumps(variables, separators=(",", ":"))}

    async def fetch(self, day: date) -> AsyncGenerator[AiringRecord, None]:
        """
        Stream the airings the provider lists for a day

        Args:
            day: Calendar day to fetch

        Yields:
            One AiringRecord per provider item, in response order

        Raises:
            NotFoundError: Provider answered 404
            UpstreamUnavailableError: Provider unreachable, timed out or 5xx
            UpstreamProtocolError: Other 4xx or a response we cannot parse
        """
        log_fetch_start(logger, day)
        response = await self._request(day)

        for item in self._parse_items(response):
            yield convert_item(item)

    async def _request(self, day: date) -> httpx.Response:
        day_key = day.isoformat()
        try:
            response = await self._client.get(self.base_url, params=self.build_params(day))
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            body = e.response.text[:200] or "No additional error details"
            if status == 404:
                logger.info(f"Provider has no data for {day_key}")
                raise NotFoundError(f"No data found for the requested date: {day_key}", e) from e
            if status >= 500:
                logger.error(f"HTTP {status} (server error) from provider for {day_key}: {body}")
                raise UpstreamUnavailableError("Provider service unavailable.", e) from e
            logger.error(f"HTTP {status} (client error) from provider for {day_key}: {body}")
            raise UpstreamProtocolError(f"Client error from provider: {status}", e) from e
        except httpx.TimeoutException as e:
            logger.error(f"Provider request for {day_key} timed out: {type(e).__name__}")
            raise UpstreamUnavailableError(f"Provider request timed out for {day_key}", e) from e
        except httpx.TransportError as e:
            logger.error(f"Failed to connect to provider for {day_key}: {e}")
            raise UpstreamUnavailableError(f"Failed to connect to provider: {e}", e) from e

    @staticmethod
    def _parse_items(response: httpx.Response) -> list[Any]:
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamProtocolError(f"Error processing response: {e}", e) from e

        if not isinstance(payload, dict):
            raise UpstreamProtocolError("Error processing response: top level is not an object")

        data = payload.get("data") or {}
        items = data.get("items") if isinstance(data, dict) else None
        if items is None:
            return []
        if not isinstance(items, list):
            raise UpstreamProtocolError("Error processing response: 'items' is not a list")
        return items


def _number(node: Any) -> int | None:
    if not isinstance(node, dict):
        return None
    value = node.get("number")
    if value is None:
        return None
    return int(value)


def _required_text(node: dict, key: str) -> str:
    value = node.get(key)
    if value is None or str(value) == "":
        raise ValueError(f"missing '{key}'")
    return str(value)


def convert_item(item: Any) -> AiringRecord:
    """
    Convert one provider item to an AiringRecord

    Raises:
        UpstreamProtocolError: If the item lacks an id, a show id or its times
    """
    try:
        if not isinstance(item, dict):
            raise ValueError("item is not an object")
        show = item.get("tvShow")
        if not isinstance(show, dict):
            raise ValueError("missing 'tvShow'")

        return AiringRecord(
            id=_required_text(item, "id"),
            season=_number(item.get("season")) or 0,
            episode=_number(item.get("episode")),
            show_id=_required_text(show, "id"),
            show_title=str(show.get("title") or ""),
            show_description=str(show.get("description") or ""),
            start_time=_required_text(item, "startTime"),
            end_time=_required_text(item, "endTime"),
        )
    except (TypeError, ValueError) as e:
        raise UpstreamProtocolError(f"Error converting provider item: {e}", e) from e
