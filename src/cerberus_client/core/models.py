"""Request and response models for the Cerberus API."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CerberusModel(BaseModel):
    """Base model for Cerberus payloads.

    Cerberus speaks snake_case JSON, so field names map directly. Unknown
    fields are ignored so newer server versions stay readable.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ApiError(CerberusModel):
    """Structured error entry returned by v2 endpoints."""

    code: int | None = None
    message: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class ErrorResponse(CerberusModel):
    """Legacy error body: ``{"errors": ["..."]}``."""

    errors: list[str] = Field(default_factory=list)


class ApiErrorResponse(CerberusModel):
    """v2 error body: ``{"error_id": "...", "errors": [{...}]}``."""

    error_id: str | None = Field(
        default=None, validation_alias=AliasChoices("error_id", "errorId")
    )
    errors: list[ApiError] = Field(default_factory=list)


class AuthResponse(CerberusModel):
    """Authentication response issued by Cerberus."""

    client_token: str | None = None
    policies: set[str] = Field(default_factory=set)
    metadata: dict[str, str] = Field(default_factory=dict)
    lease_duration: int = 0
    renewable: bool = False


class IamPrincipalCredentials(CerberusModel):
    """Request body for the IAM principal authentication endpoint."""

    iam_principal_arn: str
    region: str


class CerberusResponse(CerberusModel):
    """Secret read response."""

    data: dict[str, Any] = Field(default_factory=dict)


class CerberusListResponse(CerberusModel):
    """Keys stored under a secret path."""

    keys: list[str] = Field(default_factory=list)


class SecureFileSummary(CerberusModel):
    """Summary of a secure file stored in a safe deposit box."""

    sdbox_id: str | None = None
    path: str | None = None
    name: str | None = None
    size_in_bytes: int = 0
    created_by: str | None = None
    created_ts: datetime | None = None
    last_updated_by: str | None = None
    last_updated_ts: datetime | None = None


class CerberusListFilesResponse(CerberusModel):
    """Paginated list of secure file summaries."""

    has_next: bool = False
    next_offset: int | None = None
    limit: int = 0
    offset: int = 0
    file_count_in_result: int = 0
    total_file_count: int = 0
    secure_file_summaries: list[SecureFileSummary] = Field(default_factory=list)


class SecureFileMetadata(CerberusModel):
    """Metadata for a secure file, read from response headers."""

    filename: str | None = None
    content_length: int = 0


class Category(CerberusModel):
    """Safe deposit box category."""

    id: str | None = None
    display_name: str | None = None
    path: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None


class Role(CerberusModel):
    """Permission role (owner, write, read)."""

    id: str | None = None
    name: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None


class UserGroupPermission(CerberusModel):
    """User group to role grant on a safe deposit box."""

    id: str | None = None
    name: str | None = None
    role_id: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None


class IamRolePermission(CerberusModel):
    """IAM role to role grant on a v1 safe deposit box."""

    id: str | None = None
    account_id: str | None = None
    iam_role_name: str | None = None
    role_id: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None


class IamPrincipalPermission(CerberusModel):
    """IAM principal to role grant on a v2 safe deposit box."""

    id: str | None = None
    iam_principal_arn: str | None = None
    role_id: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None


class SafeDepositBoxSummary(CerberusModel):
    """Safe deposit box listing entry."""

    id: str | None = None
    name: str | None = None
    path: str | None = None
    category_id: str | None = None


class SafeDepositBoxV1(CerberusModel):
    """Safe deposit box as exposed by the v1 API."""

    id: str | None = None
    category_id: str | None = None
    name: str | None = None
    description: str | None = None
    path: str | None = None
    owner: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None
    user_group_permissions: list[UserGroupPermission] = Field(default_factory=list)
    iam_role_permissions: list[IamRolePermission] = Field(default_factory=list)


class SafeDepositBoxV2(CerberusModel):
    """Safe deposit box as exposed by the v2 API."""

    id: str | None = None
    category_id: str | None = None
    name: str | None = None
    description: str | None = None
    path: str | None = None
    owner: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    created_by: str | None = None
    last_updated_by: str | None = None
    user_group_permissions: list[UserGroupPermission] = Field(default_factory=list)
    iam_principal_permissions: list[IamPrincipalPermission] = Field(default_factory=list)


class SDBCreated(CerberusModel):
    """Result of creating a v1 safe deposit box."""

    id: str | None = None
    location: str | None = None


class SDBMetadata(CerberusModel):
    """Metadata for a single safe deposit box."""

    id: str | None = None
    name: str | None = None
    path: str | None = None
    category: str | None = None
    owner: str | None = None
    description: str | None = None
    created_ts: datetime | None = None
    created_by: str | None = None
    last_updated_ts: datetime | None = None
    last_updated_by: str | None = None
    user_group_permissions: dict[str, str] = Field(default_factory=dict)
    iam_role_permissions: dict[str, str] = Field(default_factory=dict)
    data: dict[str, dict[str, Any]] = Field(default_factory=dict)


class SDBMetadataResult(CerberusModel):
    """Paginated safe deposit box metadata."""

    has_next: bool = False
    next_offset: int | None = None
    limit: int = 0
    offset: int = 0
    sdb_count_in_result: int = 0
    total_sdb_count: int = Field(
        default=0, validation_alias=AliasChoices("total_sdb_count", "total_sdbcount")
    )
    safe_deposit_box_metadata: list[SDBMetadata] = Field(default_factory=list)


class SecureDataVersionSummary(CerberusModel):
    """One recorded version of a secret or file."""

    id: str | None = None
    sdbox_id: str | None = None
    path: str | None = None
    action: str | None = None
    type: str | None = None
    size_in_bytes: int = 0
    version_created_by: str | None = None
    version_created_ts: datetime | None = None
    action_principal: str | None = None
    action_ts: datetime | None = None


class SecureDataVersionsResult(CerberusModel):
    """Paginated version history for a path."""

    has_next: bool = False
    next_offset: int | None = None
    limit: int = 0
    offset: int = 0
    version_count_in_result: int = 0
    total_version_count: int = 0
    secure_data_version_summaries: list[SecureDataVersionSummary] = Field(default_factory=list)


class AuthKmsKeyMetadata(CerberusModel):
    """KMS key Cerberus uses to encrypt auth responses for a principal."""

    aws_iam_role_arn: str | None = None
    aws_kms_key_id: str | None = None
    aws_region: str | None = None
    created_ts: datetime | None = None
    last_updated_ts: datetime | None = None
    last_validated_ts: datetime | None = None


class AuthKmsKeyMetadataResult(CerberusModel):
    """Authentication KMS key metadata listing."""

    authentication_kms_key_metadata: list[AuthKmsKeyMetadata] = Field(default_factory=list)


class AdminOverrideOwner(CerberusModel):
    """Request body for overriding the owner of a safe deposit box."""

    name: str
    owner: str
