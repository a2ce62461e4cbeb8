"""Credentials value type and the provider interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class TokenCredentials:
    """Bearer token used to authenticate requests to Cerberus."""

    token: str

    def __repr__(self) -> str:
        return "TokenCredentials(token='***')"


class CredentialsProvider(ABC):
    """Source of Cerberus credentials.

    Implementations raise ``CerberusClientError`` when they cannot produce
    credentials.
    """

    @abstractmethod
    def get_credentials(self) -> TokenCredentials:
        """Return credentials for the next request.

        Raises:
            CerberusClientError: If no credentials can be produced
        """

    def should_run(self) -> bool:
        """Whether a provider chain should try this provider at all."""
        return True

    def __str__(self) -> str:
        return type(self).__name__
