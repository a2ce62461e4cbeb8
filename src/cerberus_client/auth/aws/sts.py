"""Provider that authenticates with a signed STS GetCallerIdentity request."""

from __future__ import annotations

from typing import Any

from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.exceptions import BotoCoreError
from pydantic import ValidationError

from cerberus_client.auth.aws.base import BaseAwsCredentialsProvider
from cerberus_client.auth.aws.debugger import AwsCredentialsDebugger
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.core.models import AuthResponse
from cerberus_client.core.url_resolver import UrlResolver
from cerberus_client.utils.logging import get_logger

logger = get_logger(__name__)

STS_IDENTITY_AUTH_PATH = "/v2/auth/sts-identity"
STS_REQUEST_BODY = "Action=GetCallerIdentity&Version=2011-06-15"
STS_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"
CHINA_REGIONS = ("cn-north-1", "cn-northwest-1")


def sts_endpoint(region: str) -> str:
    """Regional STS endpoint, on the ``.cn`` domain for China regions."""
    url = f"https://sts.{region}.amazonaws.com"
    if region in CHINA_REGIONS:
        url += ".cn"
    return url


class StsCredentialsProvider(BaseAwsCredentialsProvider):
    """Authenticates as whatever identity the ambient AWS credentials resolve to.

    The request to STS is signed locally but never sent; Cerberus replays
    the signed headers against STS to learn the caller's identity.
    """

    def __init__(
        self,
        url_resolver: UrlResolver | str | None,
        region: str | None,
        debugger: AwsCredentialsDebugger | None = None,
        **kwargs: Any,
    ):
        """Initialize the provider.

        Args:
            url_resolver: Cerberus URL or resolver for it
            region: Region whose STS endpoint the request is signed for
            debugger: Logs credential sources when Cerberus rejects them
            **kwargs: Passed to ``BaseAwsCredentialsProvider``

        Raises:
            CerberusClientError: If no region is given
        """
        super().__init__(url_resolver, **kwargs)
        if not region or not region.strip():
            raise CerberusClientError("Region is null. Please provide valid AWS region.")
        self.region = region.strip()
        self.debugger = debugger or AwsCredentialsDebugger()

    def get_signed_headers(self) -> dict[str, str]:
        """SigV4 headers for a GetCallerIdentity call against the regional endpoint."""
        url = sts_endpoint(self.region)
        try:
            credentials = self.session.get_credentials()
        except BotoCoreError as e:
            raise CerberusClientError("Unable to load AWS credentials to sign the STS request") from e
        if credentials is None:
            raise CerberusClientError("No AWS credentials found to sign the STS request")

        request = AWSRequest(
            method="POST",
            url=url,
            data=STS_REQUEST_BODY,
            headers={"Content-Type": STS_CONTENT_TYPE},
        )
        SigV4Auth(credentials.get_frozen_credentials(), "sts", self.region).add_auth(request)
        logger.info("sts_request_signed", host=url, region=self.region)

        return {name: value for name, value in request.headers.items() if name.lower() != "host"}

    def get_token(self) -> AuthResponse:
        """Exchange the signed headers for a Cerberus auth response."""
        url = self.resolve_url()
        logger.info("authenticating_with_cerberus", cerberus_url=url)

        headers = self.base_headers()
        headers.update(self.get_signed_headers())
        request = self.http_client.build_request(
            "POST", url + STS_IDENTITY_AUTH_PATH, headers=headers, content=b""
        )
        response = self.execute_with_retry(request)

        if response.status_code != 200:
            self.debugger.log_extra_debugging_if_appropriate(response.text)
            self.parse_and_raise_error_response(response)

        try:
            return AuthResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise CerberusClientError("Unable to parse the authentication response from Cerberus") from e

    def authenticate(self) -> None:
        auth_response = self.get_token()
        metadata = auth_response.metadata
        identity = metadata.get("aws_iam_principal_arn") or metadata.get("username") or "unknown"
        self._set_token(auth_response)
        logger.info("authenticated_with_cerberus", identity=identity)

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.region})"
