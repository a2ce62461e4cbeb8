"""Credentials and credentials providers."""

from cerberus_client.auth.chain import CredentialsProviderChain, DefaultCredentialsProviderChain
from cerberus_client.auth.credentials import CredentialsProvider, TokenCredentials
from cerberus_client.auth.providers import (
    EnvironmentCredentialsProvider,
    PropertyCredentialsProvider,
    StaticCredentialsProvider,
)

__all__ = [
    "CredentialsProvider",
    "CredentialsProviderChain",
    "DefaultCredentialsProviderChain",
    "EnvironmentCredentialsProvider",
    "PropertyCredentialsProvider",
    "StaticCredentialsProvider",
    "TokenCredentials",
]
