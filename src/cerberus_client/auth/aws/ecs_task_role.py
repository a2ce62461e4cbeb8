"""Provider for the IAM role of an ECS task."""

from __future__ import annotations

import os
from typing import Any

from cerberus_client.auth.aws.base import BaseAwsCredentialsProvider
from cerberus_client.auth.aws.metadata import ECS_CONTAINER_CREDENTIALS_PATH, EcsMetadataClient
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.core.url_resolver import UrlResolver
from cerberus_client.utils.logging import get_logger, log_error

logger = get_logger(__name__)


class EcsTaskRoleCredentialsProvider(BaseAwsCredentialsProvider):
    """Authenticates as the task role exposed by the ECS credentials endpoint."""

    def __init__(
        self,
        url_resolver: UrlResolver | str | None = None,
        metadata_client: EcsMetadataClient | None = None,
        **kwargs: Any,
    ):
        super().__init__(url_resolver, **kwargs)
        self.metadata_client = metadata_client or EcsMetadataClient()

    def should_run(self) -> bool:
        return bool(os.environ.get(ECS_CONTAINER_CREDENTIALS_PATH))

    def authenticate(self) -> None:
        role_arn = self.metadata_client.get_role_arn()
        region = self.metadata_client.get_region()

        try:
            self.get_and_set_token(role_arn, region)
        except CerberusClientError as e:
            log_error(logger, e, operation="authenticate", level="warning", iam_role=role_arn)
            raise CerberusClientError("Unable to acquire token with ECS task execution role.") from e
