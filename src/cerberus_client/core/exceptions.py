"""Custom exceptions for the Cerberus client."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from cerberus_client.core.models import ApiError


class CerberusClientError(Exception):
    """Base exception for all Cerberus client errors.

    Raised directly for client side conditions: bad arguments to an
    operation, I/O failures once retries are exhausted, unparseable
    response bodies and credential chain exhaustion.
    """


class ConfigurationError(CerberusClientError):
    """Configuration-related errors."""


class CerberusServerError(CerberusClientError):
    """Cerberus returned an unexpected status with a legacy error body.

    Attributes:
        code: HTTP status code
        errors: Error messages reported by the server
    """

    MESSAGE_FORMAT = "Response Code: {code}, Messages: {errors}"

    def __init__(self, code: int, errors: list[str] | None = None):
        """Initialize server error.

        Args:
            code: HTTP status code
            errors: Error messages from the response body
        """
        self.code = code
        self.errors = list(errors or [])
        super().__init__(self.MESSAGE_FORMAT.format(code=code, errors=", ".join(self.errors)))


class CerberusServerApiError(CerberusClientError):
    """Cerberus returned an unexpected status with a v2 API error body.

    Attributes:
        code: HTTP status code
        error_id: Server assigned error identifier
        errors: Structured per-field errors
    """

    MESSAGE_FORMAT = "Error ID: {error_id}, Response Code: {code}, Errors: [{errors}]"

    def __init__(
        self,
        code: int,
        error_id: str | None = None,
        errors: list[ApiError] | None = None,
    ):
        """Initialize server API error.

        Args:
            code: HTTP status code
            error_id: Error identifier assigned by Cerberus
            errors: Structured errors from the response body
        """
        self.code = code
        self.error_id = error_id
        self.errors = list(errors or [])
        super().__init__(
            self.MESSAGE_FORMAT.format(
                error_id=error_id,
                code=code,
                errors=", ".join(str(error) for error in self.errors),
            )
        )
