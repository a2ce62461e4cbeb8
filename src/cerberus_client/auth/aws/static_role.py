"""Provider for a fixed IAM role."""

from __future__ import annotations

import re
from typing import Any

from cerberus_client.auth.aws.base import IAM_ROLE_ARN_FORMAT, BaseAwsCredentialsProvider
from cerberus_client.core.url_resolver import UrlResolver

IAM_ROLE_ARN_PATTERN = re.compile(r"arn:aws[a-z-]*:iam::(?P<account_id>\d{12}):role/?(?P<role_name>[a-zA-Z_0-9+=,.@\-_/]+)")


class StaticIamRoleCredentialsProvider(BaseAwsCredentialsProvider):
    """Authenticates as an IAM role given up front.

    The role is given either as a full ARN or as an account id and role
    name.
    """

    def __init__(
        self,
        url_resolver: UrlResolver | str | None,
        iam_principal_arn: str | None = None,
        region: str | None = None,
        *,
        account_id: str | None = None,
        role_name: str | None = None,
        **kwargs: Any,
    ):
        """Initialize the provider.

        Args:
            url_resolver: Cerberus URL or resolver for it
            iam_principal_arn: Full ARN of the role
            region: Region of the KMS key used to encrypt the token
            account_id: Account id, used with ``role_name`` instead of an ARN
            role_name: Role name, used with ``account_id`` instead of an ARN
            **kwargs: Passed to ``BaseAwsCredentialsProvider``

        Raises:
            ValueError: If neither a full ARN nor an account and role name are given
        """
        super().__init__(url_resolver, **kwargs)
        if not iam_principal_arn:
            if not account_id or not role_name:
                raise ValueError("Either an IAM principal ARN or an account id and role name is required")
            iam_principal_arn = IAM_ROLE_ARN_FORMAT.format(account_id=account_id, role_name=role_name)
        if not region or not region.strip():
            raise ValueError("Region is required")
        self.iam_principal_arn = iam_principal_arn
        self.region = region.strip()

    def authenticate(self) -> None:
        self.get_and_set_token(self.iam_principal_arn, self.region)

    def __str__(self) -> str:
        return f"{type(self).__name__}({self.iam_principal_arn})"
