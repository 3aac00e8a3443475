"""
Google Secret Manager Service Emulator.

Provides local emulation of Secret Manager secrets and versions,
matching the v1 REST API behavior for development and testing.

Author: LocalGSM Team
Date: 2026-10-19
"""

from .backend import SecretManagerBackend
from .persistence import PersistentSecretManagerBackend
from .models import (
    Secret,
    SecretVersion,
    SecretVersionState,
    SecretVersionChecksum,
    Replication,
    AutomaticReplication,
    UserManagedReplication,
    Replica,
    CustomerManagedEncryption,
)
from .exceptions import (
    SecretManagerError,
    SecretNotFoundError,
    SecretVersionNotFoundError,
    SecretAlreadyExistsError,
    InvalidArgumentError,
    InvalidResourceNameError,
    PersistenceError,
)
from .names import SecretName, SecretVersionName, parse_secret_name, parse_secret_version_name

__all__ = [
    # Backends
    "SecretManagerBackend",
    "PersistentSecretManagerBackend",
    # Models
    "Secret",
    "SecretVersion",
    "SecretVersionState",
    "SecretVersionChecksum",
    "Replication",
    "AutomaticReplication",
    "UserManagedReplication",
    "Replica",
    "CustomerManagedEncryption",
    # Exceptions
    "SecretManagerError",
    "SecretNotFoundError",
    "SecretVersionNotFoundError",
    "SecretAlreadyExistsError",
    "InvalidArgumentError",
    "InvalidResourceNameError",
    "PersistenceError",
    # Names
    "SecretName",
    "SecretVersionName",
    "parse_secret_name",
    "parse_secret_version_name",
]
