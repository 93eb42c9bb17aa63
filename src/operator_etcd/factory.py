"""
Factory function for creating EtcdClient instances.

This module builds an EtcdClient from Settings (environment) or explicit
arguments, creating the httpx client when the caller does not inject one.
"""

import httpx

from operator_etcd.config import Settings
from operator_etcd.etcd_client import EtcdClient


def create_etcd_client(
    endpoint: str | None = None,
    http: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
) -> EtcdClient:
    """
    Create an etcd client.

    Args:
        endpoint: etcd member URL (e.g., "http://etcd:2379"). Overrides
            settings.endpoint when given.
        http: Optional pre-configured httpx client. If None, a new client
            is created with base_url=endpoint and the configured timeout.
        settings: Optional Settings. If None, Settings() is read from
            ETCD_* environment variables.

    Returns:
        EtcdClient ready for use. The caller owns the httpx client and
        must close it (e.g., `await client.http.aclose()`).

    Example:
        client = create_etcd_client("http://etcd:2379")
        try:
            response = await client.get("/", recursive=True)
        finally:
            await client.http.aclose()
    """
    if settings is None:
        settings = Settings()
    if http is None:
        http = httpx.AsyncClient(
            base_url=endpoint or settings.endpoint,
            timeout=settings.timeout_seconds,
        )

    return EtcdClient(http=http, prefix=settings.api_prefix)
