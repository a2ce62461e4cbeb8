"""Base class for providers that trade AWS identity for a Cerberus token."""

from __future__ import annotations

import base64
import binascii
import json
from abc import abstractmethod
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import boto3
import httpx
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from cerberus_client.auth.credentials import CredentialsProvider, TokenCredentials
from cerberus_client.core.exceptions import CerberusClientError, CerberusServerError
from cerberus_client.core.models import AuthResponse, IamPrincipalCredentials
from cerberus_client.core.url_resolver import UrlResolver, as_url_resolver
from cerberus_client.utils.logging import get_logger, log_error
from cerberus_client.utils.retry import RetryPolicy
from cerberus_client.utils.rwlock import ReadWriteLock
from cerberus_client.utils.version import CERBERUS_CLIENT_HEADER, get_client_header_value

logger = get_logger(__name__)

IAM_PRINCIPAL_AUTH_PATH = "/v2/auth/iam-principal"
IAM_ROLE_ARN_FORMAT = "arn:aws:iam::{account_id}:role/{role_name}"

# Refresh the token this many seconds before Cerberus expires it
DEFAULT_PADDING_SECONDS = 60

DEFAULT_AUTH_TIMEOUT = 30.0  # seconds


def default_auth_retry_policy() -> RetryPolicy:
    """Retry policy used for authentication calls."""
    return RetryPolicy(
        max_attempts=3,
        base_interval=0.2,
        retry_on_exceptions=(httpx.TransportError,),
    )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseAwsCredentialsProvider(CredentialsProvider):
    """Caches a Cerberus token obtained by authenticating with AWS identity.

    Readers share a read lock while the cached token is fresh. When the
    token is missing or expired, one thread takes the write lock and calls
    ``authenticate()``; threads queued behind it find a fresh token on the
    re-check and return it without authenticating again. The writer then
    downgrades to a read hold so it reads the token it just stored.

    Subclasses implement ``authenticate()`` and store the result through
    ``get_and_set_token()`` or ``_set_token()``.
    """

    def __init__(
        self,
        url_resolver: UrlResolver | str | None = None,
        http_client: httpx.Client | None = None,
        client_header: str | None = None,
        session: boto3.Session | None = None,
        retry_policy: RetryPolicy | None = None,
        clock: Callable[[], datetime] = _utcnow,
        padding_seconds: int = DEFAULT_PADDING_SECONDS,
    ):
        """Initialize the provider.

        Args:
            url_resolver: Cerberus URL or resolver for it
            http_client: HTTP client used for the auth calls
            client_header: Override for the ``X-Cerberus-Client`` header value
            session: boto3 session used for KMS and other AWS calls
            retry_policy: Retry policy for the auth calls
            clock: Returns the current time, timezone aware
            padding_seconds: Seconds before the lease ends to treat the token as expired
        """
        self.url_resolver = as_url_resolver(url_resolver)
        self.http_client = http_client or httpx.Client(timeout=DEFAULT_AUTH_TIMEOUT)
        self.client_header = client_header or get_client_header_value()
        self._session = session
        self.retry_policy = retry_policy or default_auth_retry_policy()
        self.clock = clock
        self.padding_seconds = padding_seconds

        self._lock = ReadWriteLock()
        self._credentials: TokenCredentials | None = None
        self._expires_at: datetime | None = None

    @property
    def session(self) -> boto3.Session:
        """boto3 session, created on first use."""
        if self._session is None:
            self._session = boto3.Session()
        return self._session

    @property
    def expires_at(self) -> datetime | None:
        """When the cached token must be refreshed, or None before the first authentication."""
        return self._expires_at

    def get_credentials(self) -> TokenCredentials:
        """Return the cached token, authenticating first if it is missing or expired.

        Raises:
            CerberusClientError: If authentication fails
        """
        self._lock.acquire_read()
        try:
            if self._needs_token():
                self._lock.release_read()
                self._lock.acquire_write()
                try:
                    if self._needs_token():
                        self.authenticate()
                finally:
                    self._lock.downgrade()

            credentials = self._credentials
            if credentials is None:
                raise CerberusClientError(f"{self} did not produce a Cerberus token")
            return TokenCredentials(credentials.token)
        finally:
            self._lock.release_read()

    @abstractmethod
    def authenticate(self) -> None:
        """Obtain a new token and store it with ``_set_token``.

        Called with the write lock held.
        """

    def _needs_token(self) -> bool:
        return (
            self._credentials is None
            or self._expires_at is None
            or self.clock() >= self._expires_at
        )

    def _set_token(self, auth_response: AuthResponse) -> None:
        """Cache the token from an authentication response."""
        if not auth_response.client_token:
            raise CerberusClientError("Success response from Cerberus missing token")

        lease = timedelta(seconds=auth_response.lease_duration - self.padding_seconds)
        self._credentials = TokenCredentials(auth_response.client_token)
        self._expires_at = self.clock() + lease
        logger.info(
            "cerberus_token_acquired",
            provider=str(self),
            lease_duration=auth_response.lease_duration,
            expires_at=self._expires_at.isoformat(),
        )

    def get_and_set_token(self, iam_principal_arn: str, region: str) -> None:
        """Authenticate as an IAM principal and cache the token.

        Args:
            iam_principal_arn: ARN of the IAM principal
            region: Region of the KMS key Cerberus encrypts the token with

        Raises:
            CerberusClientError: If any step of the exchange fails
        """
        encrypted_auth_data = self.get_encrypted_auth_data(iam_principal_arn, region)
        auth_response = self.decrypt_token(self.kms_client(region), encrypted_auth_data)
        self._set_token(auth_response)

    def get_and_set_token_for_role(self, account_id: str, role_name: str, region: str) -> None:
        """Authenticate as ``role_name`` in ``account_id`` and cache the token."""
        self.get_and_set_token(
            IAM_ROLE_ARN_FORMAT.format(account_id=account_id, role_name=role_name), region
        )

    def kms_client(self, region: str) -> Any:
        """KMS client for ``region``."""
        return self.session.client("kms", region_name=region)

    def resolve_url(self) -> str:
        """Cerberus base URL without a trailing slash."""
        url = self.url_resolver.resolve()
        if not url or not url.strip():
            raise CerberusClientError("Unable to find the Cerberus URL.")
        return url.strip().rstrip("/")

    def base_headers(self) -> dict[str, str]:
        """Headers sent with every authentication request."""
        return {
            CERBERUS_CLIENT_HEADER: self.client_header,
            "Accept": "application/json",
        }

    def get_encrypted_auth_data(self, iam_principal_arn: str, region: str) -> str:
        """Ask Cerberus for KMS encrypted auth data for an IAM principal.

        Returns:
            Base64 encoded ciphertext
        """
        url = self.resolve_url() + IAM_PRINCIPAL_AUTH_PATH
        body = IamPrincipalCredentials(iam_principal_arn=iam_principal_arn, region=region)
        logger.info("requesting_encrypted_auth_data", iam_principal_arn=iam_principal_arn, region=region)

        request = self.http_client.build_request(
            "POST",
            url,
            headers=self.base_headers(),
            json=body.model_dump(),
        )
        response = self.execute_with_retry(request)
        if response.status_code != 200:
            self.parse_and_raise_error_response(response)

        try:
            auth_data = response.json().get("auth_data")
        except (json.JSONDecodeError, AttributeError) as e:
            raise CerberusClientError("Unable to parse the authentication response from Cerberus") from e
        if not auth_data:
            raise CerberusClientError("Success response from IAM role authenticate endpoint missing auth data!")
        return str(auth_data)

    def decrypt_token(self, kms_client: Any, encrypted_auth_data: str) -> AuthResponse:
        """Decrypt auth data with KMS and parse the authentication response."""
        try:
            ciphertext = base64.b64decode(encrypted_auth_data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CerberusClientError("Encrypted auth data is not valid base64") from e

        try:
            result = kms_client.decrypt(CiphertextBlob=ciphertext)
        except (BotoCoreError, ClientError) as e:
            log_error(logger, e, operation="kms_decrypt")
            raise CerberusClientError("Unable to decrypt the Cerberus auth data with KMS") from e

        plaintext = result["Plaintext"]
        if isinstance(plaintext, bytes):
            plaintext = plaintext.decode("utf-8")
        try:
            return AuthResponse.model_validate_json(plaintext)
        except ValidationError as e:
            raise CerberusClientError("Unable to parse the decrypted authentication response") from e

    def execute_with_retry(self, request: httpx.Request) -> httpx.Response:
        """Send an authentication request under the retry policy.

        Raises:
            CerberusClientError: If the request cannot be sent once retries run out
        """
        try:
            return self.retry_policy.call(self.http_client.send, request)
        except httpx.TransportError as e:
            raise CerberusClientError("I/O error while communicating with Cerberus") from e

    def parse_and_raise_error_response(self, response: httpx.Response) -> None:
        """Raise ``CerberusServerError`` for a failed authentication response."""
        body = response.text
        logger.warning("cerberus_auth_failed", status_code=response.status_code, body=body)
        raise CerberusServerError(
            response.status_code, [f"Failed to authenticate. Response: {body}"]
        )
