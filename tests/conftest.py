"""Shared fixtures: in-memory database, settings and a fake provider."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime
from typing import Any

import pytest

from reachsync.config import Settings
from reachsync.domain.exceptions import ProviderUnavailableError
from reachsync.infrastructure.persistence.database import Database

FIXED_NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


class FakeProviderClient:
    """Stands in for ProviderClient: answers from a path -> payload dict.

    Unknown paths fail with http_404, paths in ``failures`` fail with the given reason.
    Query strings are ignored when matching.
    """

    def __init__(
        self,
        responses: dict[str, Any] | None = None,
        failures: dict[str, str] | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.failures = dict(failures or {})
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        self.calls.append((path, params))
        key = path.split("?", 1)[0]
        if key in self.failures:
            raise ProviderUnavailableError("forced failure", reason=self.failures[key], endpoint=path)
        if key not in self.responses:
            raise ProviderUnavailableError("not found", reason="http_404", endpoint=path, http_status=404)
        return self.responses[key]

    async def close(self) -> None:
        pass


def build_artist_payloads(external_id: str, name: str = "Nova Lane") -> dict[str, Any]:
    """Provider bodies for one artist, in the shapes the provider really mixes."""
    base = f"/artist/{external_id}"
    return {
        f"{base}/details": {
            "data": {
                "name": name,
                "slug": name.lower().replace(" ", "-"),
                "image": f"https://img.example/{external_id}.jpg",
                "country": {"name": "Slovenia", "code": "SI"},
                "genre": {"name": "Pop"},
                "subgenres": [{"name": "Synth Pop"}, {"name": "Dream Pop"}],
                "rank": 1200,
                "verified": True,
            }
        },
        f"{base}/links": {
            "data": [
                {"channel": "spotify", "link": f"https://open.spotify.com/artist/{external_id}"},
                {"name": "Instagram", "url": f"https://instagram.com/{external_id}"},
                {"channel": "myspace", "link": "https://myspace.com/whatever"},
            ]
        },
        f"{base}/viberate/bio": {"data": {"bio": f"{name} makes music."}},
        f"{base}/viberate/fanbase-distribution": {
            "data": {
                "spotify-followers": 1500,
                "instagram-followers": "2300",
                "youtube-followers": 0,
            }
        },
        f"{base}/viberate/ranks": {
            "data": {
                "current": {"global": 950, "country": 12},
                "previous": {"global": 1000, "country": 15},
            }
        },
        f"{base}/viberate/tracks": {
            "data": [
                {"uuid": "t-1", "name": "Glow"},
                {"uuid": "t-2", "name": "Drift"},
                {"uuid": "t-1", "name": "Glow"},
            ]
        },
        f"{base}/spotify/fanbase-historical": {
            "data": {"data": {"2026-10-17": 1400, "2026-10-18": 1450}}
        },
        f"{base}/instagram/likes-historical": {"data": {"data": {"2026-10-18": 320}}},
    }


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at an in-memory database and a configured provider."""
    return Settings(
        database={"url": "sqlite+aiosqlite:///:memory:"},
        provider={"access_key": "test-key", "base_url": "https://provider.test/api/v1"},
    )


@pytest.fixture
async def database(settings: Settings) -> AsyncGenerator[Database, None]:
    """Fresh in-memory database with all tables."""
    db = Database(settings)
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def artist_payloads() -> Callable[..., dict[str, Any]]:
    return build_artist_payloads


@pytest.fixture
def fake_provider() -> FakeProviderClient:
    """Provider knowing two artists, ext-x and ext-y."""
    return FakeProviderClient(
        {
            **build_artist_payloads("ext-x", "Nova Lane"),
            **build_artist_payloads("ext-y", "Kite Harbor"),
        }
    )


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def provider_factory() -> type[FakeProviderClient]:
    """The fake client class, for tests that need their own responses."""
    return FakeProviderClient
