"""Client for the Cerberus secrets, files and administrative APIs."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from cerberus_client.clients.base import BaseCerberusClient, limit_params
from cerberus_client.core.exceptions import CerberusClientError
from cerberus_client.core.models import (
    AdminOverrideOwner,
    AuthKmsKeyMetadataResult,
    Category,
    CerberusListFilesResponse,
    CerberusListResponse,
    CerberusResponse,
    Role,
    SafeDepositBoxSummary,
    SafeDepositBoxV1,
    SDBCreated,
    SDBMetadataResult,
    SecureDataVersionsResult,
    SecureFileMetadata,
)
from cerberus_client.utils.logging import get_logger

logger = get_logger(__name__)

SECRET_PATH_PREFIX = "v1/secret/"
SECURE_FILE_PATH_PREFIX = "v1/secure-file/"
SECURE_FILES_PATH_PREFIX = "v1/secure-files/"
CATEGORY = "v1/category"
ROLE = "v1/role"
SAFE_DEPOSIT_BOX = "v1/safe-deposit-box"
METADATA = "v1/metadata"
SECRET_VERSIONS = "v1/secret-versions"
AUTH_KMS_METADATA = "v1/admin/authentication-kms-metadata"
OVERRIDE_SDB_OWNER = "v1/admin/override-sdb-owner"

CONTENT_DISPOSITION_FILENAME = re.compile(r'filename="?([^";]+)"?')


def _require(value: Any, name: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise CerberusClientError(f"{name} cannot be None or blank.")


class CerberusClient(BaseCerberusClient):
    """Client for reading and managing secrets stored in Cerberus.

    Secret paths take the form ``{category}/{sdb}/{path}``, e.g.
    ``app/my-service/db``.
    """

    # Secrets

    def list(self, path: str) -> CerberusListResponse:
        """List the keys stored directly under ``path``.

        A path with nothing under it yields an empty key list.

        Raises:
            CerberusServerError: If Cerberus answers with an unexpected status
        """
        url = self.build_url(SECRET_PATH_PREFIX, path, params={"list": "true"})
        logger.debug("list_secrets", url=url)
        response = self.execute_with_retry("GET", url)

        if response.status_code == 404:
            return CerberusListResponse()
        if response.status_code != 200:
            self.parse_and_raise_error_response(response)

        return CerberusListResponse.model_validate(
            self.parse_response_body(response, CerberusResponse).data
        )

    def read(self, path: str, version_id: str | None = None) -> CerberusResponse:
        """Read the secret map stored at ``path``.

        Args:
            path: Secret path
            version_id: Read a past version instead of the current one

        Raises:
            CerberusServerError: If Cerberus answers with anything other than 200
        """
        params = {"versionId": version_id} if version_id else None
        url = self.build_url(SECRET_PATH_PREFIX, path, params=params)
        logger.debug("read_secret", url=url)
        response = self.execute_with_retry("GET", url)

        if response.status_code != 200:
            self.parse_and_raise_error_response(response)
        return self.parse_response_body(response, CerberusResponse)

    def write(self, path: str, data: Mapping[str, Any]) -> None:
        """Replace the secret map stored at ``path``.

        Raises:
            CerberusServerError: If Cerberus answers with anything other than 204
        """
        url = self.build_url(SECRET_PATH_PREFIX, path)
        logger.debug("write_secret", url=url)
        response = self.execute_with_retry("POST", url, dict(data))

        if response.status_code != 204:
            self.parse_and_raise_error_response(response)

    def delete(self, path: str) -> None:
        """Delete the secret map stored at ``path``.

        Raises:
            CerberusServerError: If Cerberus answers with anything other than 204
        """
        url = self.build_url(SECRET_PATH_PREFIX, path)
        logger.debug("delete_secret", url=url)
        response = self.execute_with_retry("DELETE", url)

        if response.status_code != 204:
            self.parse_and_raise_error_response(response)

    # Files

    def list_files(
        self, path: str, limit: int | None = None, offset: int | None = None
    ) -> CerberusListFilesResponse:
        """List the secure files stored under ``path``."""
        url = self.build_url(SECURE_FILES_PATH_PREFIX, path, params=limit_params(limit, offset))
        logger.debug("list_files", url=url)
        response = self.execute_with_retry("GET", url)

        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, CerberusListFilesResponse)

    def read_file_as_bytes(self, path: str) -> bytes:
        """Download the contents of the secure file at ``path``."""
        url = self.build_url(SECURE_FILE_PATH_PREFIX, path)
        logger.debug("read_file", url=url)
        response = self.execute_with_retry("GET", url)

        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return response.content

    def read_file_metadata(self, path: str) -> SecureFileMetadata:
        """Read the name and size of the secure file at ``path`` without downloading it."""
        url = self.build_url(SECURE_FILE_PATH_PREFIX, path)
        logger.debug("read_file_metadata", url=url)
        response = self.execute_with_retry("HEAD", url)

        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)

        match = CONTENT_DISPOSITION_FILENAME.search(response.headers.get("Content-Disposition", ""))
        return SecureFileMetadata(
            filename=match.group(1) if match else path.rstrip("/").rsplit("/", 1)[-1],
            content_length=int(response.headers.get("Content-Length", 0)),
        )

    def write_file(self, path: str, contents: bytes) -> None:
        """Upload ``contents`` as the secure file at ``path``."""
        url = self.build_url(SECURE_FILE_PATH_PREFIX, path)
        logger.debug("write_file", url=url, size=len(contents))
        response = self.execute_multipart(url, contents)

        if response.status_code != 204:
            self.parse_and_raise_api_error_response(response)

    def delete_file(self, path: str) -> None:
        """Delete the secure file at ``path``."""
        url = self.build_url(SECURE_FILE_PATH_PREFIX, path)
        logger.debug("delete_file", url=url)
        response = self.execute_with_retry("DELETE", url)

        if response.status_code != 204:
            self.parse_and_raise_api_error_response(response)

    # Categories

    def list_categories(self) -> list[Category]:
        response = self.execute_with_retry("GET", self.build_url(CATEGORY))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, list[Category])

    def get_category(self, category_id: str) -> Category:
        _require(category_id, "category_id")
        response = self.execute_with_retry("GET", self.build_url(CATEGORY, category_id))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, Category)

    def create_category(self, category: Category) -> Category:
        _require(category, "category")
        response = self.execute_with_retry("POST", self.build_url(CATEGORY), category)
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, Category)

    def delete_category(self, category_id: str) -> None:
        """Delete a category. Deleting a category that does not exist is not an error."""
        _require(category_id, "category_id")
        response = self.execute_with_retry("DELETE", self.build_url(CATEGORY, category_id))
        if response.status_code not in (200, 404):
            self.parse_and_raise_api_error_response(response)

    # Roles

    def list_roles(self) -> list[Role]:
        response = self.execute_with_retry("GET", self.build_url(ROLE))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, list[Role])

    def get_role(self, role_id: str) -> Role:
        _require(role_id, "role_id")
        response = self.execute_with_retry("GET", self.build_url(ROLE, role_id))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, Role)

    # Safe deposit boxes

    def list_safe_deposit_boxes(self) -> list[SafeDepositBoxSummary]:
        """Safe deposit boxes the caller has access to."""
        response = self.execute_with_retry("GET", self.build_url(SAFE_DEPOSIT_BOX))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, list[SafeDepositBoxSummary])

    def get_safe_deposit_box(self, sdb_id: str) -> SafeDepositBoxV1:
        _require(sdb_id, "sdb_id")
        response = self.execute_with_retry("GET", self.build_url(SAFE_DEPOSIT_BOX, sdb_id))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, SafeDepositBoxV1)

    def create_safe_deposit_box(self, sdb: SafeDepositBoxV1) -> SDBCreated:
        """Create a safe deposit box.

        Returns:
            Id of the new box and its location from the ``Location`` header
        """
        _require(sdb, "sdb")
        response = self.execute_with_retry("POST", self.build_url(SAFE_DEPOSIT_BOX), sdb)
        if response.status_code != 201:
            self.parse_and_raise_api_error_response(response)

        created = self.parse_response_body(response, SDBCreated)
        location = response.headers.get("Location")
        if location and not created.location:
            created = created.model_copy(update={"location": location})
        return created

    def update_safe_deposit_box(self, sdb_id: str, sdb: SafeDepositBoxV1) -> None:
        _require(sdb_id, "sdb_id")
        _require(sdb, "sdb")
        response = self.execute_with_retry("PUT", self.build_url(SAFE_DEPOSIT_BOX, sdb_id), sdb)
        if response.status_code != 204:
            self.parse_and_raise_api_error_response(response)

    def delete_safe_deposit_box(self, sdb_id: str) -> None:
        _require(sdb_id, "sdb_id")
        response = self.execute_with_retry("DELETE", self.build_url(SAFE_DEPOSIT_BOX, sdb_id))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)

    # Metadata and versions

    def get_sdb_metadata(
        self,
        sdb_name: str | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> SDBMetadataResult:
        """Page through metadata for all safe deposit boxes, or the one named ``sdb_name``."""
        params: dict[str, str] = {}
        if sdb_name:
            params["sdbName"] = sdb_name
        params.update(limit_params(limit, offset))

        response = self.execute_with_retry("GET", self.build_url(METADATA, params=params))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, SDBMetadataResult)

    def get_secret_versions(
        self,
        category: str,
        sdb: str,
        path: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> SecureDataVersionsResult:
        """Page through the version history of a secret path."""
        _require(category, "category")
        _require(sdb, "sdb")
        _require(path, "path")
        url = self.build_url(SECRET_VERSIONS, category, sdb, path, params=limit_params(limit, offset))
        response = self.execute_with_retry("GET", url)
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, SecureDataVersionsResult)

    # Administration

    def get_authentication_kms_metadata(self) -> AuthKmsKeyMetadataResult:
        """KMS keys Cerberus created to encrypt authentication responses."""
        response = self.execute_with_retry("GET", self.build_url(AUTH_KMS_METADATA))
        if response.status_code != 200:
            self.parse_and_raise_api_error_response(response)
        return self.parse_response_body(response, AuthKmsKeyMetadataResult)

    def override_sdb_owner(self, sdb_name: str, owner: str) -> None:
        """Make ``owner`` the owner of the safe deposit box named ``sdb_name``."""
        _require(sdb_name, "sdb_name")
        _require(owner, "owner")
        body = AdminOverrideOwner(name=sdb_name, owner=owner)
        response = self.execute_with_retry("PUT", self.build_url(OVERRIDE_SDB_OWNER), body)
        if response.status_code != 204:
            self.parse_and_raise_api_error_response(response)
