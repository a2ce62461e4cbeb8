"""Credentials providers that authenticate with AWS identity."""

from cerberus_client.auth.aws.base import BaseAwsCredentialsProvider
from cerberus_client.auth.aws.ecs_task_role import EcsTaskRoleCredentialsProvider
from cerberus_client.auth.aws.instance_profile import InstanceProfileCredentialsProvider
from cerberus_client.auth.aws.instance_role import InstanceRoleCredentialsProvider
from cerberus_client.auth.aws.lambda_role import LambdaRoleCredentialsProvider
from cerberus_client.auth.aws.static_role import StaticIamRoleCredentialsProvider
from cerberus_client.auth.aws.sts import StsCredentialsProvider

__all__ = [
    "BaseAwsCredentialsProvider",
    "EcsTaskRoleCredentialsProvider",
    "InstanceProfileCredentialsProvider",
    "InstanceRoleCredentialsProvider",
    "LambdaRoleCredentialsProvider",
    "StaticIamRoleCredentialsProvider",
    "StsCredentialsProvider",
]
