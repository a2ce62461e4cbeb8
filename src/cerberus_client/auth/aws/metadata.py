"""Lookups against the EC2 and ECS metadata services."""

from __future__ import annotations

import json
import os
import re
from typing import Any

import httpx

from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.utils.logging import get_logger
from cerberus_client.utils.retry import retry_on_exception

logger = get_logger(__name__)

EC2_METADATA_ENDPOINT = "http://169.254.169.254"
EC2_TOKEN_PATH = "/latest/api/token"
EC2_SECURITY_CREDENTIALS_PATH = "/latest/meta-data/iam/security-credentials/"
EC2_IAM_INFO_PATH = "/latest/meta-data/iam/info"
EC2_IDENTITY_DOCUMENT_PATH = "/latest/dynamic/instance-identity/document"

ECS_CREDENTIALS_ENDPOINT = "http://169.254.170.2"
ECS_TASK_METADATA_RELATIVE_URI = "/v2/metadata"
ECS_CONTAINER_CREDENTIALS_PATH = "AWS_CONTAINER_CREDENTIALS_RELATIVE_URI"

REGION_ENV_VARS = ("AWS_REGION", "AWS_DEFAULT_REGION")
DEFAULT_REGION = "us-west-2"

TASK_ARN_PATTERN = re.compile(r"arn:aws[a-z-]*:ecs:(?P<region>[^:]*):[^:]*:task/.*")

METADATA_TIMEOUT = 2.0  # seconds


class InstanceMetadataClient:
    """Client for the EC2 instance metadata service.

    Uses an IMDSv2 session token when the service hands one out and falls
    back to plain IMDSv1 requests otherwise.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        endpoint: str = EC2_METADATA_ENDPOINT,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.http_client = http_client or httpx.Client(timeout=METADATA_TIMEOUT)

    def _token(self) -> str | None:
        try:
            response = self.http_client.put(
                self.endpoint + EC2_TOKEN_PATH,
                headers={"X-aws-ec2-metadata-token-ttl-seconds": "21600"},
            )
        except httpx.HTTPError as e:
            logger.debug("imds_token_unavailable", error=str(e))
            return None
        return response.text if response.status_code == 200 else None

    @retry_on_exception(exceptions=(httpx.TransportError,), max_attempts=3, min_wait=0.1, max_wait=1)
    def _get(self, path: str, headers: dict[str, str]) -> httpx.Response:
        return self.http_client.get(self.endpoint + path, headers=headers)

    def get(self, path: str) -> str:
        """Read a metadata resource.

        Args:
            path: Resource path, e.g. ``/latest/meta-data/iam/info``

        Returns:
            Resource body

        Raises:
            CerberusClientError: If the resource cannot be read
        """
        token = self._token()
        headers = {"X-aws-ec2-metadata-token": token} if token else {}
        try:
            response = self._get(path, headers)
        except httpx.HTTPError as e:
            raise CerberusClientError(f"Unable to read EC2 metadata resource {path}") from e

        if response.status_code != 200:
            raise CerberusClientError(
                f"EC2 metadata resource {path} returned status {response.status_code}"
            )
        return response.text

    def get_json(self, path: str) -> dict[str, Any]:
        """Read a metadata resource holding a JSON object."""
        body = self.get(path)
        try:
            document = json.loads(body)
        except json.JSONDecodeError as e:
            raise CerberusClientError(f"EC2 metadata resource {path} is not valid JSON") from e
        if not isinstance(document, dict):
            raise CerberusClientError(f"EC2 metadata resource {path} is not a JSON object")
        return document

    def get_iam_roles(self) -> list[str]:
        """Names of the IAM roles attached to the instance profile."""
        body = self.get(EC2_SECURITY_CREDENTIALS_PATH)
        return [line.strip() for line in body.splitlines() if line.strip()]

    def get_instance_profile_arn(self) -> str | None:
        """ARN of the instance profile attached to the instance."""
        return self.get_json(EC2_IAM_INFO_PATH).get("InstanceProfileArn")

    def get_identity_document(self) -> dict[str, Any]:
        """The signed instance identity document."""
        return self.get_json(EC2_IDENTITY_DOCUMENT_PATH)

    def get_account_id(self) -> str:
        """AWS account that owns the instance."""
        account_id = self.get_identity_document().get("accountId")
        if not account_id:
            raise CerberusClientError("Instance identity document is missing the account id")
        return str(account_id)

    def get_region(self) -> str:
        """Region the instance runs in."""
        region = self.get_identity_document().get("region")
        if not region:
            raise CerberusClientError("Instance identity document is missing the region")
        return str(region)


class EcsMetadataClient:
    """Client for the ECS task credentials and task metadata endpoints."""

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        endpoint: str = ECS_CREDENTIALS_ENDPOINT,
    ):
        self.endpoint = endpoint.rstrip("/")
        self.http_client = http_client or httpx.Client(timeout=METADATA_TIMEOUT)

    def credentials_url(self) -> str:
        """URL of the task role credentials resource."""
        path = os.environ.get(ECS_CONTAINER_CREDENTIALS_PATH)
        if not path:
            raise CerberusClientError(f"The environment variable {ECS_CONTAINER_CREDENTIALS_PATH} is empty")
        return self.endpoint + path

    def _get_json(self, url: str) -> dict[str, Any]:
        try:
            response = self.http_client.get(url)
        except httpx.HTTPError as e:
            raise CerberusClientError(f"Unable to read ECS metadata from {url}") from e
        if response.status_code != 200:
            raise CerberusClientError(f"ECS metadata endpoint {url} returned status {response.status_code}")
        try:
            document = response.json()
        except json.JSONDecodeError as e:
            raise CerberusClientError(f"Unable to parse response returned from {url}") from e
        if not isinstance(document, dict):
            raise CerberusClientError(f"ECS metadata from {url} is not a JSON object")
        return document

    def get_role_arn(self) -> str:
        """ARN of the task role.

        Raises:
            CerberusClientError: If the role ARN cannot be found
        """
        role_arn = self._get_json(self.credentials_url()).get("RoleArn")
        if not role_arn:
            raise CerberusClientError("Task execution role ARN not found in task credentials.")
        return str(role_arn)

    def get_region(self) -> str:
        """Region parsed from the task ARN, falling back to the default region."""
        url = self.endpoint + ECS_TASK_METADATA_RELATIVE_URI
        try:
            task_arn = str(self._get_json(url).get("TaskARN", ""))
        except CerberusClientError as e:
            logger.warning("ecs_region_lookup_failed", error=str(e))
        else:
            match = TASK_ARN_PATTERN.match(task_arn)
            if match and match.group("region"):
                return match.group("region")
            logger.warning("ecs_task_arn_unparseable", task_arn=task_arn)

        logger.info("using_default_region", region=DEFAULT_REGION)
        return DEFAULT_REGION


def region_from_environment() -> str | None:
    """Region from ``AWS_REGION`` or ``AWS_DEFAULT_REGION``."""
    for name in REGION_ENV_VARS:
        region = os.environ.get(name, "").strip()
        if region:
            return region
    return None
