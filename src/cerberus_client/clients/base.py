"""Request execution shared by the Cerberus clients."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from cerberus_client.auth.credentials import CredentialsProvider
from cerberus_client.core.exceptions import (
    CerberusClientError,
    CerberusServerApiError,
    CerberusServerError,
)
from cerberus_client.core.models import ApiErrorResponse, ErrorResponse
from cerberus_client.core.url_resolver import UrlResolver, as_url_resolver
from cerberus_client.utils.logging import get_logger
from cerberus_client.utils.retry import RetryPolicy

logger = get_logger(__name__)

T = TypeVar("T")

CERBERUS_TOKEN_HEADER = "X-Cerberus-Token"
JSON_MEDIA_TYPE = "application/json"

DEFAULT_LIMIT = 100
DEFAULT_OFFSET = 0

IO_ERROR_MESSAGE = "I/O error while communicating with Cerberus."
PROXY_ERROR_MESSAGE = (
    "I/O error while communicating with Cerberus. "
    "Unrecognized SSL message may be due to a web proxy e.g. AnyConnect"
)
# Seen when TLS is spoken to a plaintext endpoint, typically an intercepting proxy
PLAINTEXT_TLS_SIGNATURES = (
    "Unrecognized SSL message, plaintext connection?",
    "WRONG_VERSION_NUMBER",
    "wrong version number",
)


def default_retry_policy() -> RetryPolicy:
    """Retry policy for requests to Cerberus: 3 attempts from 250 ms."""
    return RetryPolicy(
        max_attempts=3,
        base_interval=0.25,
        retry_on_exceptions=(httpx.TransportError,),
    )


def limit_params(limit: int | None, offset: int | None) -> dict[str, str]:
    """Pagination query parameters, limit first, omitting any that are None."""
    params: dict[str, str] = {}
    if limit is not None:
        params["limit"] = str(limit)
    if offset is not None:
        params["offset"] = str(offset)
    return params


def _append_if_missing(value: str, suffix: str) -> str:
    return value if value.endswith(suffix) else value + suffix


def is_plaintext_tls_error(error: BaseException) -> bool:
    """True if ``error`` or one of its causes reports TLS spoken to a plaintext endpoint."""
    current: BaseException | None = error
    seen: set[int] = set()
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        message = str(current)
        if any(signature in message for signature in PLAINTEXT_TLS_SIGNATURES):
            return True
        current = current.__cause__ or current.__context__
    return False


def io_error(error: httpx.TransportError) -> CerberusClientError:
    """Wrap a transport failure in a ``CerberusClientError``."""
    if is_plaintext_tls_error(error):
        return CerberusClientError(PROXY_ERROR_MESSAGE)
    return CerberusClientError(IO_ERROR_MESSAGE)


class BaseCerberusClient:
    """Builds, authenticates, sends and classifies requests to Cerberus.

    Every request carries the default headers first, then the token from
    the credentials provider and ``Accept: application/json``. Requests
    with a body are sent as JSON.

    ``execute`` makes a single attempt. ``execute_with_retry`` applies the
    retry policy: server errors and transport failures are retried with
    exponential backoff, any other status is returned at once. When the
    attempts run out on a server error the last response is returned for
    the caller to classify; on a transport failure a
    ``CerberusClientError`` is raised.
    """

    def __init__(
        self,
        url: UrlResolver | str | None,
        credentials_provider: CredentialsProvider | None,
        http_client: httpx.Client | None,
        default_headers: Mapping[str, str] | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        """Initialize the client.

        Args:
            url: Cerberus base URL or a resolver for it
            credentials_provider: Supplies the token for each request
            http_client: HTTP client requests are sent with
            default_headers: Headers added to every request
            retry_policy: Policy used by ``execute_with_retry``

        Raises:
            ValueError: If the URL, credentials provider or HTTP client is missing
        """
        if url is None:
            raise ValueError("Cerberus URL cannot be None.")
        if credentials_provider is None:
            raise ValueError("Credentials provider cannot be None.")
        if http_client is None:
            raise ValueError("Http client cannot be None.")

        self.url_resolver = as_url_resolver(url)
        self.credentials_provider = credentials_provider
        self.http_client = http_client
        self.default_headers: dict[str, str] = dict(default_headers or {})
        self.retry_policy = retry_policy or default_retry_policy()

    @property
    def cerberus_url(self) -> str:
        """Resolved Cerberus base URL."""
        url = self.url_resolver.resolve()
        if not url or not url.strip():
            raise CerberusClientError("Unable to find the Cerberus URL.")
        return url.strip()

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self.http_client.close()

    def __enter__(self) -> BaseCerberusClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    # URLs

    def build_url(
        self,
        prefix: str,
        *path_segments: str,
        params: Mapping[str, str] | None = None,
    ) -> str:
        """Join the base URL, an API prefix and path segments.

        Args:
            prefix: API prefix such as ``v1/secret/``
            *path_segments: Segments appended after the prefix, separated by ``/``
            params: Query parameters, appended in order

        Returns:
            Full request URL
        """
        url = _append_if_missing(self.cerberus_url, "/") + prefix
        for segment in path_segments:
            url = _append_if_missing(url, "/") + segment
        if params:
            url += "?" + "&".join(f"{key}={value}" for key, value in params.items())
        return url

    # Requests

    def build_request(self, method: str, url: str, body: Any = None) -> httpx.Request:
        """Build an authenticated request.

        Args:
            method: HTTP method
            url: Full request URL
            body: Optional payload, a mapping or pydantic model, sent as JSON

        Returns:
            Request ready to send
        """
        headers = httpx.Headers(self.default_headers)
        headers[CERBERUS_TOKEN_HEADER] = self.credentials_provider.get_credentials().token
        headers["Accept"] = JSON_MEDIA_TYPE

        content: bytes | None = None
        if body is not None:
            headers["Content-Type"] = JSON_MEDIA_TYPE
            content = json.dumps(self._serialize(body)).encode("utf-8")

        return self.http_client.build_request(method, url, headers=headers, content=content)

    @staticmethod
    def _serialize(body: Any) -> Any:
        if isinstance(body, BaseModel):
            return body.model_dump(mode="json", exclude_none=True)
        return body

    def _send(self, method: str, url: str, body: Any = None) -> httpx.Response:
        request = self.build_request(method, url, body)
        logger.debug("cerberus_request", method=method, url=url)
        return self.http_client.send(request)

    def execute(self, method: str, url: str, body: Any = None) -> httpx.Response:
        """Send a request once.

        Raises:
            CerberusClientError: If the request cannot be sent
        """
        try:
            return self._send(method, url, body)
        except httpx.TransportError as e:
            logger.warning("cerberus_request_failed", method=method, url=url, error=str(e))
            raise io_error(e) from e

    def execute_with_retry(self, method: str, url: str, body: Any = None) -> httpx.Response:
        """Send a request under the retry policy.

        A fresh request, with a fresh token, is built for every attempt.

        Returns:
            The first non server error response, or the last response once
            attempts run out

        Raises:
            CerberusClientError: If the last attempt failed to send
        """
        try:
            return self.retry_policy.call(self._send, method, url, body)
        except httpx.TransportError as e:
            logger.warning("cerberus_request_failed", method=method, url=url, error=str(e))
            raise io_error(e) from e

    def execute_multipart(self, url: str, contents: bytes) -> httpx.Response:
        """POST ``contents`` as the ``file-content`` part named after the last path segment.

        Raises:
            CerberusClientError: If the request cannot be sent
        """
        filename = url.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
        headers = httpx.Headers(self.default_headers)
        headers[CERBERUS_TOKEN_HEADER] = self.credentials_provider.get_credentials().token
        headers["Accept"] = JSON_MEDIA_TYPE

        request = self.http_client.build_request(
            "POST",
            url,
            headers=headers,
            files={"file-content": (filename, contents, "application/octet-stream")},
        )
        try:
            return self.http_client.send(request)
        except httpx.TransportError as e:
            logger.warning("cerberus_request_failed", method="POST", url=url, error=str(e))
            raise io_error(e) from e

    # Responses

    def parse_response_body(self, response: httpx.Response, response_type: type[T]) -> T:
        """Parse a JSON response body into ``response_type``.

        Raises:
            CerberusClientError: If the body does not match the expected shape
        """
        try:
            return TypeAdapter(response_type).validate_json(response.content)
        except ValidationError as e:
            logger.error(
                "response_parse_failed",
                status_code=response.status_code,
                url=str(response.request.url),
                body=response.text,
            )
            raise CerberusClientError(
                "Error parsing the response body from Cerberus, response code: "
                f"{response.status_code}, response body: {response.text}"
            ) from e

    def parse_and_raise_error_response(self, response: httpx.Response) -> None:
        """Raise ``CerberusServerError`` built from a legacy error body.

        Raises:
            CerberusServerError: Always, when the body can be parsed
            CerberusClientError: If the error body cannot be parsed
        """
        body = response.text
        logger.debug(
            "cerberus_error_response",
            status_code=response.status_code,
            url=str(response.request.url),
            body=body,
        )
        if not body.strip():
            raise CerberusServerError(response.status_code, [])
        try:
            error_response = ErrorResponse.model_validate_json(body)
        except ValidationError as e:
            logger.error("error_response_parse_failed", status_code=response.status_code, body=body)
            raise CerberusClientError(
                "Error parsing the error response body from Cerberus, response code: "
                f"{response.status_code}, response body: {body}"
            ) from e
        raise CerberusServerError(response.status_code, error_response.errors)

    def parse_and_raise_api_error_response(self, response: httpx.Response) -> None:
        """Raise ``CerberusServerApiError`` built from a structured error body.

        Raises:
            CerberusServerApiError: Always, when the body can be parsed
            CerberusClientError: If the error body cannot be parsed
        """
        body = response.text
        logger.debug(
            "cerberus_api_error_response",
            status_code=response.status_code,
            url=str(response.request.url),
            body=body,
        )
        if not body.strip():
            raise CerberusServerApiError(response.status_code, None, [])
        try:
            error_response = ApiErrorResponse.model_validate_json(body)
        except ValidationError as e:
            logger.error("error_response_parse_failed", status_code=response.status_code, body=body)
            raise CerberusClientError(
                "Error parsing the error response body from Cerberus, response code: "
                f"{response.status_code}, response body: {body}"
            ) from e
        raise CerberusServerApiError(
            response.status_code, error_response.error_id, error_response.errors
        )
