"""External integrations."""

from reachsync.infrastructure.integrations.endpoint_catalog import (
    Endpoint,
    default_catalog,
    historical_endpoints,
    profile_endpoints,
)
from reachsync.infrastructure.integrations.provider_client import ProviderClient

__all__ = [
    "Endpoint",
    "ProviderClient",
    "default_catalog",
    "historical_endpoints",
    "profile_endpoints",
]
