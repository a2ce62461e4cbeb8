"""Integration test fixtures and configuration.

These tests talk to a live Cerberus deployment and authenticate with the
ambient AWS credentials through the STS provider:
- CERBERUS_TEST_ADDR: Cerberus base URL
- CERBERUS_TEST_REGION: AWS region used to sign the STS request
- CERBERUS_TEST_SDB_PATH: Safe deposit box the credentials may write to, e.g. ``app/my-sdb/``
"""

import os

import boto3
import pytest
from botocore.exceptions import BotoCoreError, ClientError

from cerberus_client.auth.aws.sts import StsCredentialsProvider
from cerberus_client.clients.cerberus_client import CerberusClient
from cerberus_client.factory import get_client


@pytest.fixture
def cerberus_test_url() -> str | None:
    """Cerberus URL from environment (optional)."""
    return os.getenv("CERBERUS_TEST_ADDR")


@pytest.fixture
def cerberus_test_region() -> str:
    """AWS region for integration tests."""
    return os.getenv("CERBERUS_TEST_REGION", "us-west-2")


@pytest.fixture
def cerberus_test_sdb_path() -> str | None:
    """Writable safe deposit box path from environment (optional)."""
    path = os.getenv("CERBERUS_TEST_SDB_PATH")
    return path.rstrip("/") + "/" if path else None


@pytest.fixture
def skip_if_no_cerberus(cerberus_test_url: str | None, cerberus_test_sdb_path: str | None):
    """Skip test if no Cerberus deployment is configured."""
    if not cerberus_test_url or not cerberus_test_sdb_path:
        pytest.skip(
            "Cerberus not configured. Set CERBERUS_TEST_ADDR and CERBERUS_TEST_SDB_PATH "
            "environment variables."
        )


@pytest.fixture
def skip_if_no_aws_credentials(cerberus_test_region: str):
    """Skip test if AWS credentials are not available."""
    try:
        sts = boto3.client("sts", region_name=cerberus_test_region)
        sts.get_caller_identity()
    except (BotoCoreError, ClientError) as e:
        pytest.skip(f"AWS credentials not available: {e}")


@pytest.fixture
def sts_provider(
    skip_if_no_cerberus, skip_if_no_aws_credentials, cerberus_test_url: str, cerberus_test_region: str
) -> StsCredentialsProvider:
    """Provider authenticating as the ambient AWS identity."""
    return StsCredentialsProvider(cerberus_test_url, cerberus_test_region)


@pytest.fixture
def cerberus_client(sts_provider: StsCredentialsProvider, cerberus_test_url: str) -> CerberusClient:
    """Client against the live deployment."""
    client = get_client(cerberus_test_url, credentials_provider=sts_provider)
    yield client
    client.close()
