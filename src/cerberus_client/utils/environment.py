"""Detection of the AWS compute environment the client runs in."""

import os

import httpx

from cerberus_client.utils.logging import get_logger

logger = get_logger(__name__)

# Available on EC2 instances
INSTANCE_IDENTITY_DOCUMENT = "http://169.254.169.254/latest/dynamic/instance-identity/document"
IMDS_TOKEN_URL = "http://169.254.169.254/latest/api/token"
# ECS agent introspection endpoint, available inside ECS containers
ECS_METADATA_ENDPOINT = "http://localhost:51678/v1/metadata"

ECS_ENV_VARS = ("AWS_CONTAINER_CREDENTIALS_RELATIVE_URI", "ECS_CONTAINER_METADATA_URI_V4", "ECS_CONTAINER_METADATA_URI")
LAMBDA_ENV_VAR = "AWS_LAMBDA_FUNCTION_NAME"

PROBE_TIMEOUT = 0.5  # seconds


def can_get_successfully(url: str, headers: dict[str, str] | None = None) -> bool:
    """True if a GET to ``url`` answers with a 2xx status within the probe timeout."""
    try:
        with httpx.Client(timeout=PROBE_TIMEOUT) as client:
            response = client.get(url, headers=headers)
            return response.is_success
    except httpx.HTTPError as e:
        logger.debug("environment_probe_failed", url=url, error=str(e))
        return False


def _imds_token() -> str | None:
    try:
        with httpx.Client(timeout=PROBE_TIMEOUT) as client:
            response = client.put(
                IMDS_TOKEN_URL, headers={"X-aws-ec2-metadata-token-ttl-seconds": "60"}
            )
            if response.is_success:
                return response.text
    except httpx.HTTPError as e:
        logger.debug("imds_token_probe_failed", error=str(e))
    return None


def has_instance_identity() -> bool:
    """True if the EC2 instance identity document can be fetched."""
    token = _imds_token()
    headers = {"X-aws-ec2-metadata-token": token} if token else None
    return can_get_successfully(INSTANCE_IDENTITY_DOCUMENT, headers=headers)


def is_running_in_ecs() -> bool:
    """True inside an ECS task."""
    if any(os.environ.get(name) for name in ECS_ENV_VARS):
        return True
    return can_get_successfully(ECS_METADATA_ENDPOINT)


def is_running_in_ec2() -> bool:
    """True on a plain EC2 instance, not inside ECS."""
    return has_instance_identity() and not is_running_in_ecs()


def is_running_in_lambda() -> bool:
    """True inside an AWS Lambda function."""
    return bool(os.environ.get(LAMBDA_ENV_VAR))
