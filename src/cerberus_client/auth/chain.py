"""Chain of credentials providers."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from cerberus_client.auth.credentials import CredentialsProvider, TokenCredentials
from cerberus_client.auth.providers import (
    EnvironmentCredentialsProvider,
    PropertyCredentialsProvider,
)
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.utils.logging import get_logger, log_error

if TYPE_CHECKING:
    import httpx

    from cerberus_client.core.url_resolver import UrlResolver

logger = get_logger(__name__)


class CredentialsProviderChain(CredentialsProvider):
    """Tries each provider in order until one returns a token.

    The first provider to succeed is remembered and asked directly on later
    calls. If the remembered provider fails, the chain forgets it and walks
    the full list again. Failures of individual providers never escape the
    chain; only exhaustion of every provider is reported.
    """

    def __init__(self, providers: Iterable[CredentialsProvider]):
        """Initialize the chain.

        Args:
            providers: Providers in the order they should be tried

        Raises:
            ValueError: If no providers are given
        """
        self._providers: tuple[CredentialsProvider, ...] = tuple(providers or ())
        if not self._providers:
            raise ValueError("No credentials providers specified")
        self.reuse_last_provider = True
        self.last_used_provider: CredentialsProvider | None = None

    @classmethod
    def of(cls, *providers: CredentialsProvider) -> CredentialsProviderChain:
        """Build a chain from providers given as arguments."""
        return cls(providers)

    @property
    def providers(self) -> tuple[CredentialsProvider, ...]:
        """Providers in the order they are tried."""
        return self._providers

    def get_credentials(self) -> TokenCredentials:
        """Return credentials from the first provider able to supply them.

        Raises:
            CerberusClientError: If no provider in the chain returns a token
        """
        failed: CredentialsProvider | None = None
        last_used = self.last_used_provider
        if self.reuse_last_provider and last_used is not None:
            credentials = self._try_provider(last_used)
            if credentials is not None:
                return credentials
            logger.info("last_used_provider_failed", provider=str(last_used))
            self.last_used_provider = None
            failed = last_used

        for provider in self._providers:
            if provider is failed:
                continue
            if not provider.should_run():
                logger.debug("credentials_provider_skipped", provider=str(provider))
                continue

            credentials = self._try_provider(provider)
            if credentials is not None:
                self.last_used_provider = provider
                return credentials

        raise CerberusClientError("Unable to find credentials from any provider in the specified chain!")

    def _try_provider(self, provider: CredentialsProvider) -> TokenCredentials | None:
        try:
            credentials = provider.get_credentials()
        except CerberusClientError as e:
            log_error(
                logger,
                e,
                operation="get_credentials",
                level="info",
                exc_info=False,
                provider=str(provider),
            )
            return None
        except Exception as e:
            # an unexpected failure in one provider must not break the chain
            log_error(logger, e, operation="get_credentials", level="warning", provider=str(provider))
            return None

        if credentials is not None and credentials.token and credentials.token.strip():
            logger.debug("credentials_resolved", provider=str(provider))
            return credentials
        return None


class DefaultCredentialsProviderChain(CredentialsProviderChain):
    """Default lookup order for Cerberus credentials.

    1. ``CERBERUS_TOKEN`` environment variable
    2. ``cerberus.token`` process property
    3. ECS task role (only inside ECS)
    4. EC2 instance role (only on EC2)
    5. STS identity of the ambient AWS credentials (when a region is known)
    """

    def __init__(
        self,
        url_resolver: UrlResolver | str | None = None,
        region: str | None = None,
        http_client: httpx.Client | None = None,
        client_header: str | None = None,
    ):
        """Initialize the default chain.

        Args:
            url_resolver: Cerberus URL or resolver used by the AWS providers
            region: AWS region for STS authentication
            http_client: HTTP client shared by the AWS providers
            client_header: Override for the ``X-Cerberus-Client`` header value
        """
        from cerberus_client.auth.aws.ecs_task_role import EcsTaskRoleCredentialsProvider
        from cerberus_client.auth.aws.instance_role import InstanceRoleCredentialsProvider
        from cerberus_client.auth.aws.sts import StsCredentialsProvider
        from cerberus_client.core.url_resolver import as_url_resolver

        resolver = as_url_resolver(url_resolver)
        aws_options = {"http_client": http_client, "client_header": client_header}

        providers: list[CredentialsProvider] = [
            EnvironmentCredentialsProvider(),
            PropertyCredentialsProvider(),
            EcsTaskRoleCredentialsProvider(resolver, **aws_options),
            InstanceRoleCredentialsProvider(resolver, **aws_options),
        ]
        if region:
            providers.append(StsCredentialsProvider(resolver, region, **aws_options))

        super().__init__(providers)
