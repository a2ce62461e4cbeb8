"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator

import httpx
import pytest
import structlog

from cerberus_client.auth.providers import StaticCredentialsProvider
from cerberus_client.clients.cerberus_client import CerberusClient
from cerberus_client.clients.v2_client import CerberusV2Client
from cerberus_client.utils import properties
from cerberus_client.utils.retry import RetryPolicy

CERBERUS_URL = "https://cerberus.example.com"
TEST_TOKEN = "test-token"

Handler = Callable[[httpx.Request], httpx.Response]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep tests independent of the host environment and of each other."""
    for name in (
        "CERBERUS_TOKEN",
        "CERBERUS_ADDR",
        "CERBERUS_REGION",
        "AWS_REGION",
        "AWS_DEFAULT_REGION",
        "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI",
        "ECS_CONTAINER_METADATA_URI",
        "ECS_CONTAINER_METADATA_URI_V4",
        "AWS_LAMBDA_FUNCTION_NAME",
    ):
        monkeypatch.delenv(name, raising=False)
    with properties._lock:
        properties._properties.clear()
    yield
    with properties._lock:
        properties._properties.clear()


@pytest.fixture(autouse=True)
def stdlib_logging() -> Iterator[None]:
    """Route structlog through stdlib logging so pytest captures it.

    Loggers are not cached, so none stays bound to a stream that a
    previous test (or a CliRunner invocation) has closed.
    """
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.KeyValueRenderer(key_order=["event"]),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def sleeps() -> list[float]:
    """Records the waits requested by a retry policy instead of sleeping."""
    return []


@pytest.fixture
def retry_policy(sleeps: list[float]) -> RetryPolicy:
    """Default request retry policy that never actually sleeps."""
    return RetryPolicy(
        max_attempts=3,
        base_interval=0.25,
        retry_on_exceptions=(httpx.TransportError,),
        sleep=sleeps.append,
    )


@pytest.fixture
def credentials_provider() -> StaticCredentialsProvider:
    """Provider that always returns the test token."""
    return StaticCredentialsProvider(TEST_TOKEN)


@pytest.fixture
def make_client(
    credentials_provider: StaticCredentialsProvider, retry_policy: RetryPolicy
) -> Callable[..., CerberusClient]:
    """Build a client whose requests are answered by ``handler``."""

    def _make(handler: Handler, client_class: type[CerberusClient] = CerberusClient, **kwargs):
        http_client = httpx.Client(transport=httpx.MockTransport(handler))
        kwargs.setdefault("retry_policy", retry_policy)
        return client_class(CERBERUS_URL, credentials_provider, http_client, **kwargs)

    return _make


@pytest.fixture
def make_v2_client(make_client: Callable[..., CerberusClient]) -> Callable[..., CerberusV2Client]:
    """Build a v2 client whose requests are answered by ``handler``."""

    def _make(handler: Handler, **kwargs):
        return make_client(handler, client_class=CerberusV2Client, **kwargs)

    return _make
