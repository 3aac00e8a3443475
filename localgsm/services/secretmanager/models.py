"""
Secret Manager Models.

Pydantic models for Google Secret Manager secrets and versions, matching the
v1 REST resource representations.

Author: LocalGSM Team
Date: 2026-10-19
"""

import base64
import binascii
import hashlib
import random
import time
import zlib
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def generate_etag() -> str:
    """Generate a fresh opaque etag.

    Returns:
        Quoted hex token
    """
    seed = f"{time.time_ns()}-{random.getrandbits(63)}"
    return f'"{hashlib.md5(seed.encode()).hexdigest()}"'


class SecretVersionState(str, Enum):
    """Lifecycle state of a secret version."""
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"
    DESTROYED = "DESTROYED"


class CustomerManagedEncryption(BaseModel):
    """Customer-managed encryption key reference."""

    kms_key_name: str = Field(alias="kmsKeyName")

    model_config = ConfigDict(populate_by_name=True)


class AutomaticReplication(BaseModel):
    """Google-managed replication policy."""

    customer_managed_encryption: Optional[CustomerManagedEncryption] = Field(
        default=None, alias="customerManagedEncryption"
    )

    model_config = ConfigDict(populate_by_name=True)


class Replica(BaseModel):
    """Single replica location of a user-managed replication policy."""

    location: str
    customer_managed_encryption: Optional[CustomerManagedEncryption] = Field(
        default=None, alias="customerManagedEncryption"
    )

    model_config = ConfigDict(populate_by_name=True)


class UserManagedReplication(BaseModel):
    """User-managed replication policy with an ordered list of replicas."""

    replicas: List[Replica] = Field(default_factory=list)


class Replication(BaseModel):
    """Replication policy of a secret.

    Exactly one of ``automatic`` or ``user_managed`` is set. An empty policy
    is treated as automatic.
    """

    automatic: Optional[AutomaticReplication] = None
    user_managed: Optional[UserManagedReplication] = Field(default=None, alias="userManaged")

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode="after")
    def check_single_policy(self) -> "Replication":
        """Ensure exactly one replication variant is present."""
        if self.automatic is not None and self.user_managed is not None:
            raise ValueError("Replication must be either automatic or userManaged, not both")
        if self.automatic is None and self.user_managed is None:
            self.automatic = AutomaticReplication()
        return self


class SecretVersionChecksum(BaseModel):
    """Integrity record of a version payload.

    Attributes:
        crc32c: CRC-32 of the payload as 8 lower-case hex digits
        sha256: SHA-256 digest of the payload as lower-case hex
    """

    crc32c: str
    sha256: str

    @classmethod
    def compute(cls, data: bytes) -> "SecretVersionChecksum":
        """Compute the integrity record for a payload."""
        return cls(
            crc32c=f"{zlib.crc32(data) & 0xFFFFFFFF:08x}",
            sha256=hashlib.sha256(data).hexdigest(),
        )


class SecretVersion(BaseModel):
    """A single immutable payload snapshot under a secret.

    The raw payload is kept on the model but never rendered in API
    responses; it is only returned through the access operation.
    """

    name: str
    create_time: datetime = Field(alias="createTime")
    state: SecretVersionState = SecretVersionState.ENABLED
    etag: str
    data: bytes = Field(default=b"", exclude=True)
    checksum: Optional[SecretVersionChecksum] = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def version_id(self) -> str:
        """Version identifier (last segment of the resource name)."""
        return self.name.rsplit("/versions/", 1)[-1]


class Secret(BaseModel):
    """Secret resource with its append-only version history.

    Attributes:
        name: Full resource name (projects/{project}/secrets/{secret})
        create_time: Creation timestamp (UTC)
        labels: User-defined labels
        replication: Replication policy
        etag: Opaque tag, refreshed whenever the version set changes
        versions: Version id -> SecretVersion (internal)
        version_count: Highest version id ever assigned (internal)
    """

    name: str
    create_time: datetime = Field(alias="createTime")
    labels: Optional[Dict[str, str]] = None
    replication: Replication = Field(default_factory=Replication)
    etag: str
    versions: Dict[str, SecretVersion] = Field(default_factory=dict, exclude=True)
    version_count: int = Field(default=0, alias="versionCount", exclude=True)

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def new(
        cls,
        project_id: str,
        secret_id: str,
        labels: Optional[Dict[str, str]] = None,
        replication: Optional[Replication] = None,
    ) -> "Secret":
        """Build a fresh secret with no versions.

        Args:
            project_id: Owning project
            secret_id: Secret identifier
            labels: Optional labels
            replication: Optional replication policy (automatic if omitted)

        Returns:
            New Secret
        """
        return cls(
            name=f"projects/{project_id}/secrets/{secret_id}",
            create_time=datetime.now(timezone.utc),
            labels=labels or None,
            replication=replication or Replication(),
            etag=generate_etag(),
        )


def new_secret_version(
    project_id: str,
    secret_id: str,
    version_id: str,
    data: bytes,
) -> SecretVersion:
    """Build an enabled version and compute its integrity record once."""
    return SecretVersion(
        name=f"projects/{project_id}/secrets/{secret_id}/versions/{version_id}",
        create_time=datetime.now(timezone.utc),
        state=SecretVersionState.ENABLED,
        etag=generate_etag(),
        data=data,
        checksum=SecretVersionChecksum.compute(data),
    )


# ========== Request / Response Models ==========

class CreateSecretData(BaseModel):
    """Secret metadata supplied on creation."""

    labels: Optional[Dict[str, str]] = None
    replication: Optional[Replication] = None


class CreateSecretRequest(BaseModel):
    """Request body to create a secret."""

    secret_id: Optional[str] = Field(default=None, alias="secretId")
    secret: Optional[CreateSecretData] = None

    model_config = ConfigDict(populate_by_name=True)


class SecretPayload(BaseModel):
    """Payload of an add-version request; ``data`` arrives base64-encoded."""

    data: bytes = b""

    @field_validator("data", mode="before")
    @classmethod
    def decode_data(cls, v):
        """Decode base64 payload data."""
        if v is None:
            return b""
        if isinstance(v, str):
            try:
                return base64.b64decode(v, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("payload.data must be base64 encoded")
        return v


class AddSecretVersionRequest(BaseModel):
    """Request body to add a secret version."""

    payload: Optional[SecretPayload] = None


class AccessedPayload(BaseModel):
    """Payload returned by the access operation."""

    data: str
    checksum: Optional[SecretVersionChecksum] = None


class AccessSecretVersionResponse(BaseModel):
    """Response of the access operation."""

    name: str
    payload: AccessedPayload

    @classmethod
    def from_version(cls, version: SecretVersion) -> "AccessSecretVersionResponse":
        """Render an accessed version with its payload base64-encoded."""
        return cls(
            name=version.name,
            payload=AccessedPayload(
                data=base64.b64encode(version.data).decode("ascii"),
                checksum=version.checksum,
            ),
        )


class ListSecretsResponse(BaseModel):
    """One page of secrets."""

    secrets: List[Secret]
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")
    total_size: int = Field(alias="totalSize")

    model_config = ConfigDict(populate_by_name=True)


class ListSecretVersionsResponse(BaseModel):
    """One page of secret versions."""

    versions: List[SecretVersion]
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")
    total_size: int = Field(alias="totalSize")

    model_config = ConfigDict(populate_by_name=True)


class ErrorDetail(BaseModel):
    """Error information of an API error envelope."""

    code: int
    message: str
    status: str


class ErrorResponse(BaseModel):
    """API error envelope following Google Cloud API conventions."""

    error: ErrorDetail

    @classmethod
    def build(cls, code: int, message: str, status: str) -> "ErrorResponse":
        """Create an error envelope."""
        return cls(error=ErrorDetail(code=code, message=message, status=status))


class HealthResponse(BaseModel):
    """Health / readiness probe response."""

    status: str
    timestamp: datetime
    version: str
