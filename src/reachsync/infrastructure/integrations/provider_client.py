"""HTTP client for the external artist analytics provider."""

import logging
from typing import Any

import httpx

from reachsync.config.settings import ProviderSettings
from reachsync.domain.exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)


class ProviderClient:
    """Thin async client: one GET, decoded JSON or ProviderUnavailableError.

    Every failure mode (no key, timeout, network, non-2xx, bad JSON) is turned
    into ProviderUnavailableError with a short ``reason`` so callers can record
    it per endpoint and keep going.
    """

    def __init__(self, settings: ProviderSettings) -> None:
        self.settings = settings
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                headers={
                    "Access-Key": self.settings.access_key,
                    "Accept": "application/json",
                },
                timeout=self.settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # Hey future me, the provider wraps everything in {"data": ...} - we return the body
    # untouched (envelope included) because the normalizer's fallback chains need to see
    # both data.X and data.data.X shapes.
    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a provider path and return the decoded JSON body.

        Args:
            path: Path relative to the base URL, e.g. "/artist/abc/details"
            params: Optional query parameters

        Raises:
            ProviderUnavailableError: For any failure, with ``reason`` set
        """
        if not self.settings.is_configured:
            raise ProviderUnavailableError(
                "Provider access key is not configured",
                reason="missing_credentials",
                endpoint=path,
            )

        client = await self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.TimeoutException as e:
            raise ProviderUnavailableError(
                f"Provider request timed out: {path}", reason="timeout", endpoint=path
            ) from e
        except httpx.HTTPError as e:
            raise ProviderUnavailableError(
                f"Provider request failed: {path}: {e}",
                reason="network_error",
                endpoint=path,
            ) from e

        if not response.is_success:
            logger.debug(
                "Provider returned non-2xx",
                extra={"endpoint": path, "status_code": response.status_code},
            )
            raise ProviderUnavailableError(
                f"Provider returned HTTP {response.status_code} for {path}",
                reason=f"http_{response.status_code}",
                endpoint=path,
                http_status=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ProviderUnavailableError(
                f"Provider returned invalid JSON for {path}",
                reason="invalid_json",
                endpoint=path,
                http_status=response.status_code,
            ) from e
