"""Provider for the execution role of a Lambda function."""

from __future__ import annotations

import re
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from cerberus_client.auth.aws.base import BaseAwsCredentialsProvider
from cerberus_client.auth.aws.static_role import IAM_ROLE_ARN_PATTERN
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.core.url_resolver import UrlResolver
from cerberus_client.utils.environment import is_running_in_lambda
from cerberus_client.utils.logging import get_logger, log_error

logger = get_logger(__name__)

LAMBDA_FUNCTION_ARN_PATTERN = re.compile(
    r"arn:aws[a-z-]*:lambda:(?P<region>[^:]+):(?P<account_id>\d+):function:(?P<function_name>[^:]+):(?P<qualifier>[^:]+)"
)


class LambdaRoleCredentialsProvider(BaseAwsCredentialsProvider):
    """Authenticates as the role assigned to the invoked Lambda function."""

    def __init__(
        self,
        url_resolver: UrlResolver | str | None,
        invoked_function_arn: str,
        **kwargs: Any,
    ):
        """Initialize the provider.

        Args:
            url_resolver: Cerberus URL or resolver for it
            invoked_function_arn: Qualified ARN of the invoked function,
                e.g. ``context.invoked_function_arn`` in a handler
            **kwargs: Passed to ``BaseAwsCredentialsProvider``

        Raises:
            ValueError: If the ARN is not a qualified Lambda function ARN
        """
        super().__init__(url_resolver, **kwargs)
        match = LAMBDA_FUNCTION_ARN_PATTERN.fullmatch(invoked_function_arn or "")
        if not match:
            raise ValueError("invoked_function_arn is not a properly formatted lambda function ARN.")

        self.region = match.group("region")
        self.function_name = match.group("function_name")
        self.qualifier = match.group("qualifier")

    def should_run(self) -> bool:
        return is_running_in_lambda()

    def get_role_arn(self) -> str:
        """Execution role ARN from the function configuration."""
        lambda_client = self.session.client("lambda", region_name=self.region)
        try:
            configuration = lambda_client.get_function_configuration(
                FunctionName=self.function_name, Qualifier=self.qualifier
            )
        except (BotoCoreError, ClientError) as e:
            log_error(logger, e, operation="get_function_configuration", level="warning")
            raise CerberusClientError("Unable to acquire token with Lambda function role.") from e

        role_arn = configuration.get("Role")
        if not role_arn or not role_arn.strip():
            raise CerberusClientError("Lambda function has no assigned role, aborting Cerberus authentication.")
        return role_arn

    def authenticate(self) -> None:
        role_arn = self.get_role_arn()
        match = IAM_ROLE_ARN_PATTERN.fullmatch(role_arn)
        if not match:
            raise CerberusClientError("Lambda function assigned role is not a valid IAM role ARN.")

        role_name = match.group("role_name")
        try:
            self.get_and_set_token_for_role(match.group("account_id"), role_name, self.region)
        except CerberusClientError as e:
            log_error(logger, e, operation="authenticate", level="warning", iam_role=role_name)
            raise CerberusClientError("Unable to acquire token with Lambda function role.") from e
