"""End-to-end API tests: sync an artist, then read its charts."""

from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any

import pytest
from fastapi.testclient import TestClient

from reachsync.config import Settings
from reachsync.main import create_app


@pytest.fixture
def client(
    settings: Settings, fake_provider: Any, fixed_clock: Callable[[], datetime]
) -> Iterator[TestClient]:
    """App with the real service graph, a fake provider and a frozen clock."""
    app = create_app(settings)
    with TestClient(app) as test_client:
        app.state.sync_service.orchestrator.client = fake_provider
        app.state.sync_service.clock = fixed_clock
        app.state.chart_service.clock = fixed_clock
        yield test_client


class TestSyncEndpoint:
    def test_sync_success(self, client: TestClient) -> None:
        response = client.post(
            "/api/artists/sync", json={"accountId": "acc-1", "externalId": "ext-x"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["artist"] == {
            "externalId": "ext-x",
            "name": "Nova Lane",
            "imageUrl": "https://img.example/ext-x.jpg",
        }
        assert "error" not in body
        codes = {w["code"] for w in body["warnings"]}
        assert "provider_unavailable" in codes

    def test_binding_conflict_is_409(self, client: TestClient) -> None:
        client.post("/api/artists/sync", json={"accountId": "acc-1", "externalId": "ext-x"})

        response = client.post(
            "/api/artists/sync", json={"accountId": "acc-2", "externalId": "ext-x"}
        )

        assert response.status_code == 409
        body = response.json()
        assert body["success"] is False
        assert "already bound" in body["error"]

    def test_nothing_fetched_syncs_defaults_with_warnings(self, client: TestClient) -> None:
        response = client.post(
            "/api/artists/sync", json={"accountId": "acc-1", "externalId": "ext-unknown"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert "error" not in body
        assert body["artist"]["externalId"] == "ext-unknown"
        assert body["artist"]["name"] == "Unknown Artist"
        codes = {w["code"] for w in body["warnings"]}
        assert {"provider_unavailable", "schema_mismatch"} <= codes

    @pytest.mark.parametrize(
        "payload",
        [
            {"accountId": "acc-1"},
            {"externalId": "ext-x"},
            {"accountId": "", "externalId": "ext-x"},
        ],
    )
    def test_invalid_body_is_422(self, client: TestClient, payload: dict[str, str]) -> None:
        response = client.post("/api/artists/sync", json=payload)

        assert response.status_code == 422

    def test_blank_ids_are_422(self, client: TestClient) -> None:
        response = client.post(
            "/api/artists/sync", json={"accountId": "   ", "externalId": "ext-x"}
        )

        assert response.status_code == 422
        assert response.json()["success"] is False


class TestChartsEndpoint:
    def test_charts_after_sync(self, client: TestClient) -> None:
        client.post("/api/artists/sync", json={"accountId": "acc-1", "externalId": "ext-x"})

        response = client.get("/api/charts", params={"accountId": "acc-1", "timeFilter": "1m"})

        assert response.status_code == 200
        body = response.json()
        assert body["granularity"] == "day"
        assert body["timeFilter"] == "1m"
        assert body["dateRange"] == {"start": "2026-09-19", "end": "2026-10-19"}
        assert body["artistCount"] == 1
        assert body["totalDataPoints"] == 5

        reach = {p["date"]: p["value"] for p in body["charts"]["totalReach"]}
        assert reach["2026-10-18"] == 1450
        assert reach["2026-10-19"] == 1500 + 2300
        engagement = {p["date"]: p["value"] for p in body["charts"]["totalEngagement"]}
        assert engagement["2026-10-18"] == 320
        today = next(
            p for p in body["charts"]["followersByPlatform"] if p["date"] == "2026-10-19"
        )
        assert today["platforms"] == {"instagram": 2300, "spotify": 1500}
        assert today["artistNames"] == ["Nova Lane"]

    def test_charts_default_filter(self, client: TestClient) -> None:
        response = client.get("/api/charts", params={"accountId": "acc-1"})

        assert response.status_code == 200
        assert response.json()["timeFilter"] == "1m"

    def test_weekly_buckets_start_on_monday(self, client: TestClient) -> None:
        client.post("/api/artists/sync", json={"accountId": "acc-1", "externalId": "ext-x"})

        body = client.get(
            "/api/charts", params={"accountId": "acc-1", "timeFilter": "3m"}
        ).json()

        dates = [p["date"] for p in body["charts"]["totalReach"]]
        assert dates[-1] == "2026-10-19"
        assert all(datetime.fromisoformat(d).weekday() == 0 for d in dates)

    def test_unknown_filter_is_422(self, client: TestClient) -> None:
        response = client.get("/api/charts", params={"accountId": "acc-1", "timeFilter": "2y"})

        assert response.status_code == 422

    def test_account_id_required(self, client: TestClient) -> None:
        response = client.get("/api/charts")

        assert response.status_code == 422


class TestHealthEndpoint:
    def test_healthy(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] is True
        assert body["provider_configured"] is True

    def test_correlation_id_round_trip(self, client: TestClient) -> None:
        response = client.get("/health", headers={"X-Correlation-ID": "trace-42"})

        assert response.headers["X-Correlation-ID"] == "trace-42"
