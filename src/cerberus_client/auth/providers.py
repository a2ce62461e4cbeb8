"""Credentials providers backed by the process environment."""

import os

from cerberus_client.auth.credentials import CredentialsProvider, TokenCredentials
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.utils.properties import get_property

CERBERUS_TOKEN_ENV_PROPERTY = "CERBERUS_TOKEN"
CERBERUS_TOKEN_SYS_PROPERTY = "cerberus.token"


class EnvironmentCredentialsProvider(CredentialsProvider):
    """Reads the token from the ``CERBERUS_TOKEN`` environment variable."""

    def __init__(self, variable: str = CERBERUS_TOKEN_ENV_PROPERTY):
        self.variable = variable

    def get_credentials(self) -> TokenCredentials:
        token = os.environ.get(self.variable)
        if token and token.strip():
            return TokenCredentials(token)
        raise CerberusClientError("Cerberus token not found in the environment property.")


class PropertyCredentialsProvider(CredentialsProvider):
    """Reads the token from the ``cerberus.token`` process property."""

    def __init__(self, name: str = CERBERUS_TOKEN_SYS_PROPERTY):
        self.name = name

    def get_credentials(self) -> TokenCredentials:
        token = get_property(self.name)
        if token and token.strip():
            return TokenCredentials(token)
        raise CerberusClientError(f"Cerberus token not found in the process property: {self.name}")


class StaticCredentialsProvider(CredentialsProvider):
    """Always returns the token it was built with."""

    def __init__(self, token: str):
        if not token or not token.strip():
            raise ValueError("Token can not be blank.")
        self._credentials = TokenCredentials(token)

    def get_credentials(self) -> TokenCredentials:
        return self._credentials
