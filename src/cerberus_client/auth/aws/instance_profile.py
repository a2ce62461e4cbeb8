"""Provider for the role named after the EC2 instance profile."""

from __future__ import annotations

import re
from typing import Any

from cerberus_client.auth.aws.base import BaseAwsCredentialsProvider
from cerberus_client.auth.aws.metadata import InstanceMetadataClient, region_from_environment
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.core.url_resolver import UrlResolver
from cerberus_client.utils.environment import is_running_in_ec2

INSTANCE_PROFILE_ARN_PATTERN = re.compile(r"arn:aws[a-z-]*:iam::(.*?):instance-profile/(.*)")


def parse_instance_profile_arn(instance_profile_arn: str | None) -> tuple[str, str]:
    """Split an instance profile ARN into account id and profile name.

    Raises:
        CerberusClientError: If the ARN is missing or malformed
    """
    if instance_profile_arn is None:
        raise CerberusClientError("instanceProfileArn provided was null rather than valid arn")

    match = INSTANCE_PROFILE_ARN_PATTERN.search(instance_profile_arn)
    if not match:
        raise CerberusClientError(
            "Failed to find account id and role / instance profile name from ARN: "
            f"{instance_profile_arn} using pattern {INSTANCE_PROFILE_ARN_PATTERN.pattern}"
        )
    return match.group(1), match.group(2)


class InstanceProfileCredentialsProvider(BaseAwsCredentialsProvider):
    """Authenticates as the role that shares its name with the instance profile.

    Useful when the instance profile path and role name line up, which
    is the common layout for roles created alongside their profile.
    """

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

    def authenticate(self) -> None:
        account_id, role_name = parse_instance_profile_arn(
            self.metadata_client.get_instance_profile_arn()
        )
        region = region_from_environment() or self.metadata_client.get_region()

        try:
            self.get_and_set_token_for_role(account_id, role_name, region)
        except CerberusClientError as e:
            raise CerberusClientError(
                "Failed to authenticate with Cerberus's iam auth endpoint using the following "
                f"auth info, acct id: {account_id}, roleName: {role_name}, region: {region}"
            ) from e
