"""
Secret Manager Resource Names.

Parses resource names such as ``projects/p1/secrets/s1/versions/3`` into
typed keys. Parse failures are reported as InvalidResourceNameError, which is
distinct from the store's not-found errors.

Author: LocalGSM Team
Date: 2026-10-19
"""

import re
from typing import List, NamedTuple

from .exceptions import InvalidResourceNameError

LATEST_VERSION = "latest"

_SECRET_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,255}$")


class SecretName(NamedTuple):
    """Typed key of a secret."""

    project_id: str
    secret_id: str

    @property
    def key(self) -> str:
        """Store key ``{project}/{secret}``."""
        return f"{self.project_id}/{self.secret_id}"

    @property
    def resource_name(self) -> str:
        """Relative resource name."""
        return f"projects/{self.project_id}/secrets/{self.secret_id}"

    def version(self, version_id: str) -> "SecretVersionName":
        """Name of a version under this secret."""
        return SecretVersionName(self.project_id, self.secret_id, version_id)


class SecretVersionName(NamedTuple):
    """Typed key of a secret version."""

    project_id: str
    secret_id: str
    version_id: str

    @property
    def secret(self) -> SecretName:
        """Parent secret name."""
        return SecretName(self.project_id, self.secret_id)

    @property
    def resource_name(self) -> str:
        """Relative resource name."""
        return f"{self.secret.resource_name}/versions/{self.version_id}"


def validate_project_id(project_id: str) -> str:
    """Validate a project identifier.

    Raises:
        InvalidResourceNameError: If the id is empty or contains a separator
    """
    if not project_id or "/" in project_id:
        raise InvalidResourceNameError(project_id, "project id must be a non-empty path segment")
    return project_id


def validate_secret_id(secret_id: str) -> str:
    """Validate a secret identifier.

    Rules:
    - 1-255 characters
    - Letters, digits, underscores and hyphens only

    Raises:
        InvalidResourceNameError: If the id breaks the rules
    """
    if not secret_id or not _SECRET_ID_PATTERN.match(secret_id):
        raise InvalidResourceNameError(
            secret_id,
            "secret id must be 1-255 characters of letters, digits, '_' or '-'",
        )
    return secret_id


def _split(text: str) -> List[str]:
    """Strip API prefix and custom-method suffix, then split on '/'."""
    path = text.strip().strip("/")
    if path.startswith("v1/"):
        path = path[len("v1/"):]

    # A trailing ':method' (':access', ':addVersion') belongs to the last segment
    last_slash = path.rfind("/")
    colon = path.find(":", last_slash + 1)
    if colon != -1:
        path = path[:colon]

    return path.split("/") if path else []


def parse_secret_name(text: str) -> SecretName:
    """Parse ``projects/{project}/secrets/{secret}``.

    Args:
        text: Resource name, optionally prefixed by ``/v1/`` and suffixed by
            a custom method such as ``:addVersion``

    Returns:
        SecretName

    Raises:
        InvalidResourceNameError: If the name does not have the secret shape
    """
    parts = _split(text)
    if len(parts) != 4 or parts[0] != "projects" or parts[2] != "secrets":
        raise InvalidResourceNameError(text, "expected projects/{project}/secrets/{secret}")
    return SecretName(validate_project_id(parts[1]), validate_secret_id(parts[3]))


def parse_secret_version_name(text: str, default_latest: bool = False) -> SecretVersionName:
    """Parse ``projects/{project}/secrets/{secret}/versions/{version}``.

    Args:
        text: Resource name
        default_latest: Accept a bare secret name and resolve it to its
            ``latest`` version

    Returns:
        SecretVersionName

    Raises:
        InvalidResourceNameError: If the name does not have the version shape
    """
    parts = _split(text)
    if default_latest and len(parts) == 4:
        return parse_secret_name(text).version(LATEST_VERSION)

    if len(parts) != 6 or parts[4] != "versions" or not parts[5]:
        raise InvalidResourceNameError(
            text, "expected projects/{project}/secrets/{secret}/versions/{version}"
        )
    secret = parse_secret_name("/".join(parts[:4]))
    return secret.version(parts[5])
