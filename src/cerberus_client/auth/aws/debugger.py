"""Extra logging when Cerberus rejects the ambient AWS credentials."""

from typing import Any

import botocore.session

from cerberus_client.utils.logging import get_logger

logger = get_logger(__name__)

TOKEN_IS_EXPIRED = "The security token included in the request is expired."
TOKEN_IS_INVALID = "Invalid credentials"


class AwsCredentialsDebugger:
    """Reports which botocore credential sources hold credentials.

    Only does work when the Cerberus error message points at bad AWS
    credentials; otherwise it is a no-op.
    """

    def __init__(self, session: botocore.session.Session | None = None):
        self.session = session

    def _providers(self) -> list[Any]:
        session = self.session or botocore.session.get_session()
        resolver = session.get_component("credential_provider")
        return list(getattr(resolver, "providers", []))

    def log_extra_debugging_if_appropriate(self, cerberus_error_message: str | None) -> None:
        """Log where AWS credentials came from if the error suggests they are bad."""
        message = cerberus_error_message or ""
        if TOKEN_IS_EXPIRED not in message and TOKEN_IS_INVALID not in message:
            return

        logger.warning("bad_aws_credentials_suspected")
        first_found = False
        for provider in self._providers():
            method = getattr(provider, "METHOD", type(provider).__name__)
            try:
                credentials = provider.load()
            except Exception as e:
                # any provider failure only means that source is unusable
                logger.info("aws_credentials_source_unavailable", method=method, error=str(e))
                continue

            if credentials is None or not credentials.access_key or not credentials.secret_key:
                continue
            if not first_found:
                first_found = True
                logger.info("aws_credentials_loaded_from", method=method)
            else:
                logger.info("aws_credentials_also_available_from", method=method)
