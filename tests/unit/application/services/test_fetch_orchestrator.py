"""Tests for the fetch orchestrator (fan-out with settle-all semantics)."""

import asyncio
from datetime import date
from typing import Any

import pytest

from reachsync.application.services.fetch_orchestrator import FetchOrchestrator, count_items
from reachsync.domain.dtos import DateRange
from reachsync.domain.entities import MetricType
from reachsync.infrastructure.integrations.endpoint_catalog import Endpoint, default_catalog


def _endpoints(count: int) -> list[Endpoint]:
    return [Endpoint(key=f"ep{i}", path=f"ep{i}") for i in range(count)]


class TestPartialFailure:
    """One endpoint failing never sinks the batch."""

    async def test_three_of_ten_fail(self, provider_factory: Any) -> None:
        responses = {f"/artist/a1/ep{i}": {"data": {"n": i}} for i in range(7)}
        client = provider_factory(responses)
        orchestrator = FetchOrchestrator(client)

        results = await orchestrator.fetch_all("a1", _endpoints(10))

        assert len(results) == 10
        ok = {k for k, r in results.items() if r.ok}
        failed = {k for k, r in results.items() if not r.ok}
        assert ok == {f"ep{i}" for i in range(7)}
        assert failed == {"ep7", "ep8", "ep9"}
        assert results["ep0"].payload == {"data": {"n": 0}}
        assert results["ep9"].error == "http_404"
        assert results["ep9"].payload is None

    async def test_failure_reason_is_recorded(self, provider_factory: Any) -> None:
        client = provider_factory(failures={"/artist/a1/ep0": "timeout"})
        results = await FetchOrchestrator(client).fetch_all("a1", _endpoints(1))

        assert results["ep0"].ok is False
        assert results["ep0"].error == "timeout"

    async def test_unexpected_exception_is_settled(self) -> None:
        class ExplodingClient:
            async def get(self, path: str, params: Any = None) -> Any:
                if path.endswith("ep1"):
                    raise RuntimeError("boom")
                return {"data": []}

        results = await FetchOrchestrator(ExplodingClient()).fetch_all("a1", _endpoints(2))

        assert results["ep0"].ok is True
        assert results["ep1"].ok is False
        assert results["ep1"].error == "unexpected_RuntimeError"

    async def test_missing_credentials_settles_every_endpoint(self, provider_factory: Any) -> None:
        failures = {f"/artist/a1/ep{i}": "missing_credentials" for i in range(4)}
        results = await FetchOrchestrator(provider_factory(failures=failures)).fetch_all(
            "a1", _endpoints(4)
        )

        assert all(not r.ok and r.error == "missing_credentials" for r in results.values())


class TestConcurrency:
    """Bounded fan-out."""

    async def test_in_flight_requests_never_exceed_ceiling(self) -> None:
        in_flight = 0
        peak = 0

        class SlowClient:
            async def get(self, path: str, params: Any = None) -> Any:
                nonlocal in_flight, peak
                in_flight += 1
                peak = max(peak, in_flight)
                await asyncio.sleep(0.01)
                in_flight -= 1
                return {"data": {}}

        results = await FetchOrchestrator(SlowClient(), max_concurrency=3).fetch_all(
            "a1", _endpoints(12)
        )

        assert len(results) == 12
        assert peak <= 3
        assert peak > 1

    def test_rejects_zero_concurrency(self, provider_factory: Any) -> None:
        with pytest.raises(ValueError):
            FetchOrchestrator(provider_factory(), max_concurrency=0)


class TestDateRange:
    """Historical endpoints get date-from/date-to, profile endpoints don't."""

    async def test_date_params_only_for_historical(self, provider_factory: Any) -> None:
        client = provider_factory()
        endpoints = [
            Endpoint(key="details", path="details"),
            Endpoint(
                key="spotify_fanbase",
                path="spotify/fanbase-historical",
                historical=True,
                platform="spotify",
                metric_type=MetricType.FOLLOWERS,
            ),
        ]
        window = DateRange(date(2026, 9, 19), date(2026, 10, 19))

        await FetchOrchestrator(client).fetch_all("a1", endpoints, window)

        params = dict(client.calls)
        assert params["/artist/a1/details"] is None
        assert params["/artist/a1/spotify/fanbase-historical"] == {
            "date-from": "2026-09-19",
            "date-to": "2026-10-19",
        }

    async def test_full_catalog_one_call_per_endpoint(self, fake_provider: Any) -> None:
        catalog = default_catalog()
        results = await FetchOrchestrator(fake_provider).fetch_all("ext-x", catalog)

        assert set(results) == {e.key for e in catalog}
        assert len(fake_provider.calls) == len(catalog)
        assert results["details"].ok
        assert results["tracks"].item_count == 3


class TestCountItems:
    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            ({"data": {"data": {"2026-01-01": 1, "2026-01-02": 2}}}, 2),
            ({"data": {"data": [1, 2, 3]}}, 3),
            ({"data": [1, 2]}, 2),
            ({"data": {"name": "x"}}, 1),
            ({"data": {}}, 0),
            ({"data": None}, 0),
            ([], 0),
            (None, 0),
        ],
    )
    def test_count_items(self, payload: Any, expected: int) -> None:
        assert count_items(payload) == expected
