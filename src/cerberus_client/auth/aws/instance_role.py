"""Provider for the IAM role attached to an EC2 instance."""

from __future__ import annotations

from typing import Any

from cerberus_client.auth.aws.base import BaseAwsCredentialsProvider
from cerberus_client.auth.aws.metadata import InstanceMetadataClient, region_from_environment
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.core.url_resolver import UrlResolver
from cerberus_client.utils.environment import is_running_in_ec2
from cerberus_client.utils.logging import get_logger, log_error

logger = get_logger(__name__)


class InstanceRoleCredentialsProvider(BaseAwsCredentialsProvider):
    """Authenticates with each role in the instance profile until one is accepted."""

    def __init__(
        self,
        url_resolver: UrlResolver | str | None = None,
        metadata_client: InstanceMetadataClient | None = None,
        **kwargs: Any,
    ):
        super().__init__(url_resolver, **kwargs)
        self.metadata_client = metadata_client or InstanceMetadataClient()

    def should_run(self) -> bool:
        return is_running_in_ec2()

    def current_region(self) -> str:
        """Region from the environment, else from the instance identity document."""
        return region_from_environment() or self.metadata_client.get_region()

    def authenticate(self) -> None:
        try:
            roles = self.metadata_client.get_iam_roles()
            account_id = self.metadata_client.get_account_id()
            region = self.current_region()
        except CerberusClientError as e:
            log_error(logger, e, operation="instance_metadata_lookup", level="warning")
            raise CerberusClientError("Unable to acquire token with EC2 instance role.") from e

        for role_name in roles:
            try:
                self.get_and_set_token_for_role(account_id, role_name, region)
                return
            except CerberusClientError as e:
                log_error(logger, e, operation="authenticate", level="warning", iam_role=role_name)

        raise CerberusClientError("Unable to acquire token with EC2 instance role.")
