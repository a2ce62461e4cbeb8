"""Resolution of the Cerberus base URL."""

import os
from abc import ABC, abstractmethod

import httpx

from cerberus_client.utils.logging import get_logger
from cerberus_client.utils.properties import get_property

logger = get_logger(__name__)

CERBERUS_ADDR_ENV_PROPERTY = "CERBERUS_ADDR"
CERBERUS_ADDR_SYS_PROPERTY = "cerberus.addr"


class UrlResolver(ABC):
    """Supplies the base URL of the Cerberus deployment."""

    @abstractmethod
    def resolve(self) -> str | None:
        """Return the Cerberus URL, or None if it cannot be determined."""


def is_valid_url(url: str | None) -> bool:
    """True for non-blank absolute http(s) URLs."""
    if not url or not url.strip():
        return False
    try:
        parsed = httpx.URL(url.strip())
    except (httpx.InvalidURL, TypeError, ValueError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class DefaultUrlResolver(UrlResolver):
    """Reads the URL from ``CERBERUS_ADDR``, then the ``cerberus.addr`` property."""

    def resolve(self) -> str | None:
        env_url = os.environ.get(CERBERUS_ADDR_ENV_PROPERTY)
        sys_url = get_property(CERBERUS_ADDR_SYS_PROPERTY)

        if is_valid_url(env_url):
            return env_url.strip()  # type: ignore[union-attr]
        if is_valid_url(sys_url):
            return sys_url.strip()  # type: ignore[union-attr]

        logger.warning("cerberus_url_unresolved")
        return None


class StaticUrlResolver(UrlResolver):
    """Always returns the URL it was built with."""

    def __init__(self, url: str):
        if not url or not url.strip():
            raise ValueError("Cerberus URL can not be blank.")
        self.url = url

    def resolve(self) -> str:
        return self.url


def as_url_resolver(url: "str | UrlResolver | None") -> UrlResolver:
    """Normalize a URL string or resolver into a resolver.

    None selects the default environment based resolver.
    """
    if url is None:
        return DefaultUrlResolver()
    if isinstance(url, UrlResolver):
        return url
    return StaticUrlResolver(url)
