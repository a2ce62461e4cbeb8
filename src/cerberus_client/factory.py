"""Factories for ready to use Cerberus clients."""

from __future__ import annotations

import ssl
from collections.abc import Mapping
from typing import TypeVar

import httpx

from cerberus_client.auth.chain import DefaultCredentialsProviderChain
from cerberus_client.auth.credentials import CredentialsProvider
from cerberus_client.clients.cerberus_client import CerberusClient
from cerberus_client.clients.v2_client import CerberusV2Client
from cerberus_client.core.config import CerberusConfig
from cerberus_client.core.url_resolver import UrlResolver, as_url_resolver
from cerberus_client.utils.logging import get_logger
from cerberus_client.utils.retry import RetryPolicy
from cerberus_client.utils.version import CERBERUS_CLIENT_HEADER, get_client_header_value

logger = get_logger(__name__)

C = TypeVar("C", bound=CerberusClient)


def tls_context() -> ssl.SSLContext:
    """Verifying TLS context that refuses anything older than TLS 1.2."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    return context


def build_http_client(config: CerberusConfig, verify: ssl.SSLContext | bool | None = None) -> httpx.Client:
    """HTTP client with per attempt timeouts and pooled connections.

    Args:
        config: Client configuration
        verify: TLS verification setting, defaults to ``tls_context()``

    Returns:
        Configured HTTP client
    """
    return httpx.Client(
        timeout=httpx.Timeout(config.timeout),
        limits=httpx.Limits(
            max_connections=config.max_connections,
            max_keepalive_connections=config.max_keepalive_connections,
        ),
        verify=tls_context() if verify is None else verify,
    )


def default_headers(extra: Mapping[str, str] | None = None) -> dict[str, str]:
    """Headers sent with every request: the client version plus ``extra``."""
    headers = {CERBERUS_CLIENT_HEADER: get_client_header_value()}
    headers.update(extra or {})
    return headers


def _build(
    client_class: type[C],
    url: str | UrlResolver | None,
    region: str | None,
    credentials_provider: CredentialsProvider | None,
    config: CerberusConfig | None,
    http_client: httpx.Client | None,
) -> C:
    config = config or CerberusConfig.from_env()
    resolver = as_url_resolver(url or config.url)
    region = region or config.region
    http_client = http_client or build_http_client(config)
    headers = default_headers(config.default_headers)

    if credentials_provider is None:
        credentials_provider = DefaultCredentialsProviderChain(
            resolver,
            region,
            http_client=http_client,
            client_header=headers[CERBERUS_CLIENT_HEADER],
        )

    retry_policy = RetryPolicy(
        max_attempts=config.retry.max_attempts,
        base_interval=config.retry.base_interval,
        retry_on_exceptions=(httpx.TransportError,),
    )
    logger.debug("cerberus_client_created", client=client_class.__name__, region=region)
    return client_class(
        resolver,
        credentials_provider,
        http_client,
        default_headers=headers,
        retry_policy=retry_policy,
    )


def get_client(
    url: str | UrlResolver | None = None,
    region: str | None = None,
    credentials_provider: CredentialsProvider | None = None,
    config: CerberusConfig | None = None,
    http_client: httpx.Client | None = None,
) -> CerberusClient:
    """Create a Cerberus client.

    Args:
        url: Cerberus URL or resolver; defaults to ``config.url``, then the
            ``CERBERUS_ADDR`` environment variable and ``cerberus.addr`` property
        region: AWS region used for STS authentication
        credentials_provider: Token source; defaults to the default provider chain
        config: Client configuration; defaults to ``CerberusConfig.from_env()``
        http_client: HTTP client to share; one is built from ``config`` if omitted

    Returns:
        Configured client
    """
    return _build(CerberusClient, url, region, credentials_provider, config, http_client)


def get_v2_client(
    url: str | UrlResolver | None = None,
    region: str | None = None,
    credentials_provider: CredentialsProvider | None = None,
    config: CerberusConfig | None = None,
    http_client: httpx.Client | None = None,
) -> CerberusV2Client:
    """Create a Cerberus client with the v2 safe deposit box API.

    Takes the same arguments as ``get_client``.
    """
    return _build(CerberusV2Client, url, region, credentials_provider, config, http_client)
