"""Fan-out fetching of every provider endpoint for one artist."""

import asyncio
import logging
from collections.abc import Sequence
from typing import Any

from reachsync.domain.dtos import DateRange, EndpointResult
from reachsync.domain.exceptions import ProviderUnavailableError
from reachsync.infrastructure.integrations.endpoint_catalog import Endpoint
from reachsync.infrastructure.integrations.provider_client import ProviderClient
from reachsync.infrastructure.observability.logger_template import log_batch_summary

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8


def count_items(payload: Any) -> int:
    """Rough size of a provider body, for logging and "did we get anything" checks.

    data.data map/list -> its length, data list -> its length,
    non-empty data object -> 1, anything else -> 0.
    """
    if not isinstance(payload, dict):
        return 0
    data = payload.get("data")
    if isinstance(data, dict):
        inner = data.get("data")
        if isinstance(inner, dict | list):
            return len(inner)
        return 1 if data else 0
    if isinstance(data, list):
        return len(data)
    return 0


class FetchOrchestrator:
    """Fetch a batch of endpoints concurrently and settle every one of them.

    Hey future me - this NEVER raises for provider trouble. Each endpoint ends up as
    an EndpointResult, ok or not, and the caller decides what partial data means.
    The semaphore caps in-flight requests per batch so one sync doesn't hammer the
    provider with 20+ parallel calls.
    """

    def __init__(
        self,
        client: ProviderClient,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.client = client
        self.max_concurrency = max_concurrency

    async def fetch_all(
        self,
        external_id: str,
        endpoints: Sequence[Endpoint],
        date_range: DateRange | None = None,
    ) -> dict[str, EndpointResult]:
        """Fetch all endpoints for one artist.

        Args:
            external_id: Provider artist id
            endpoints: Endpoints to call; keys must be unique
            date_range: Window sent as date-from/date-to to historical endpoints

        Returns:
            Mapping of endpoint key to its result, one entry per endpoint
        """
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(endpoint: Endpoint) -> EndpointResult:
            async with semaphore:
                return await self._fetch_one(external_id, endpoint, date_range)

        results = await asyncio.gather(*(run(e) for e in endpoints))
        by_key = {e.key: r for e, r in zip(endpoints, results, strict=True)}

        succeeded = sum(1 for r in by_key.values() if r.ok)
        log_batch_summary(
            logger,
            "provider_fetch",
            succeeded=succeeded,
            failed=len(by_key) - succeeded,
            external_id=external_id,
        )
        return by_key

    async def _fetch_one(
        self,
        external_id: str,
        endpoint: Endpoint,
        date_range: DateRange | None,
    ) -> EndpointResult:
        params: dict[str, str] | None = None
        if endpoint.historical and date_range is not None:
            params = {
                "date-from": date_range.start.isoformat(),
                "date-to": date_range.end.isoformat(),
            }

        try:
            payload = await self.client.get(endpoint.url_for(external_id), params=params)
        except ProviderUnavailableError as e:
            logger.debug(
                f"Endpoint {endpoint.key} unavailable: {e.reason}",
                extra={"external_id": external_id, "endpoint": endpoint.key},
            )
            return EndpointResult.failed(e.reason)
        # Last line of defence: one endpoint blowing up must not sink the batch.
        except Exception as e:
            logger.warning(
                f"Endpoint {endpoint.key} failed unexpectedly",
                extra={"external_id": external_id, "endpoint": endpoint.key},
                exc_info=True,
            )
            return EndpointResult.failed(f"unexpected_{type(e).__name__}")

        return EndpointResult(ok=True, payload=payload, item_count=count_items(payload))
