"""
Secret Manager Backend.

In-memory store for secrets and their append-only version history.
Every operation is safe under concurrent invocation from request threads:
a single reader/writer lock guards the whole secret map.

Author: LocalGSM Team
Date: 2026-10-19
"""

from functools import cmp_to_key
from typing import Callable, Dict, List, Tuple, TypeVar

from .exceptions import (
    SecretAlreadyExistsError,
    SecretNotFoundError,
    SecretVersionNotFoundError,
)
from .locking import ReadWriteLock
from .models import Secret, SecretVersion, generate_etag, new_secret_version
from .names import LATEST_VERSION, SecretName

DEFAULT_PAGE_SIZE = 100

T = TypeVar("T")


def paginate(items: List[T], page_size: int, page_token: str) -> Tuple[List[T], str]:
    """Slice a sorted list into a page using offset tokens.

    The token is the zero-based start offset as a decimal string. Absent,
    unparseable or out-of-range tokens start at 0. Offsets are invalidated
    by inserts or deletes between calls.

    Args:
        items: Fully sorted items
        page_size: Page length (non-positive means DEFAULT_PAGE_SIZE)
        page_token: Start offset token

    Returns:
        Tuple of (page items, next page token or "" when exhausted)
    """
    start = 0
    if page_token and page_token.isascii() and page_token.isdigit():
        index = int(page_token)
        if index < len(items):
            start = index

    if page_size <= 0:
        page_size = DEFAULT_PAGE_SIZE

    end = min(start + page_size, len(items))
    next_page_token = str(end) if end < len(items) else ""
    return items[start:end], next_page_token


def compare_version_ids(a: str, b: str) -> int:
    """Order version ids newest first.

    Ids are compared numerically when both parse as integers and lexically
    otherwise.
    """
    if a.isascii() and a.isdigit() and b.isascii() and b.isdigit():
        left, right = int(a), int(b)
    else:
        left, right = a, b
    return (right > left) - (right < left)


class SecretManagerBackend:
    """
    Backend for Secret Manager operations.

    Holds secrets keyed by ``{project}/{secret}``; each secret owns its
    version map and a monotonically increasing version counter.

    Attributes:
        _secrets: Dictionary mapping store keys to secrets
        _lock: Reader/writer lock guarding _secrets
    """

    persistent = False

    def __init__(self):
        """Initialize an empty store."""
        self._secrets: Dict[str, Secret] = {}
        self._lock = ReadWriteLock()

    def _commit(self, rollback: Callable[[], None]) -> None:
        """Hook run after each in-memory mutation, with the write lock held.

        Args:
            rollback: Undoes the mutation that was just applied
        """

    def _require_secret(self, project_id: str, secret_id: str) -> Secret:
        """Look up a stored secret or raise SecretNotFoundError."""
        secret = self._secrets.get(SecretName(project_id, secret_id).key)
        if secret is None:
            raise SecretNotFoundError(project_id, secret_id)
        return secret

    @staticmethod
    def _metadata_copy(secret: Secret) -> Secret:
        """Detached copy of a secret without its version payloads."""
        return secret.model_copy(update={"versions": {}}).model_copy(deep=True)

    # ========== Secret Operations ==========

    def create_secret(self, project_id: str, secret_id: str, secret: Secret) -> Secret:
        """Store a new secret.

        Args:
            project_id: Owning project
            secret_id: Secret identifier
            secret: Initial secret state

        Returns:
            Stored secret

        Raises:
            SecretAlreadyExistsError: If the key is taken
        """
        key = SecretName(project_id, secret_id).key
        with self._lock.write_locked():
            if key in self._secrets:
                raise SecretAlreadyExistsError(project_id, secret_id)

            stored = secret.model_copy(deep=True)
            self._secrets[key] = stored
            self._commit(lambda: self._secrets.pop(key, None))
            return self._metadata_copy(stored)

    def get_secret(self, project_id: str, secret_id: str) -> Secret:
        """Get secret metadata.

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        with self._lock.read_locked():
            return self._metadata_copy(self._require_secret(project_id, secret_id))

    def list_secrets(
        self,
        project_id: str,
        page_size: int,
        page_token: str = "",
    ) -> Tuple[List[Secret], str]:
        """List secrets of a project ordered by name.

        Args:
            project_id: Owning project
            page_size: Page length, already resolved by the caller
            page_token: Offset token from a previous page

        Returns:
            Tuple of (secrets, next page token)
        """
        prefix = f"{project_id}/"
        with self._lock.read_locked():
            secrets = [
                secret for key, secret in self._secrets.items()
                if key.startswith(prefix)
            ]
            secrets.sort(key=lambda s: s.name)
            page, next_page_token = paginate(secrets, page_size, page_token)
            return [self._metadata_copy(s) for s in page], next_page_token

    def delete_secret(self, project_id: str, secret_id: str) -> None:
        """Delete a secret together with all its versions.

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        key = SecretName(project_id, secret_id).key
        with self._lock.write_locked():
            secret = self._require_secret(project_id, secret_id)
            del self._secrets[key]

            def rollback():
                self._secrets[key] = secret

            self._commit(rollback)

    # ========== Version Operations ==========

    def add_secret_version(self, project_id: str, secret_id: str, data: bytes) -> SecretVersion:
        """Append a new version to a secret.

        The counter increment, checksum computation and insert happen under
        the exclusive lock, so concurrent callers never share a version id.

        Args:
            project_id: Owning project
            secret_id: Secret identifier
            data: Raw payload

        Returns:
            Created version

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        with self._lock.write_locked():
            secret = self._require_secret(project_id, secret_id)

            secret.version_count += 1
            version_id = str(secret.version_count)
            version = new_secret_version(project_id, secret_id, version_id, bytes(data))

            previous_etag = secret.etag
            secret.versions[version_id] = version
            secret.etag = generate_etag()

            def rollback():
                # The counter stays incremented: a burned id is never handed out again
                secret.versions.pop(version_id, None)
                secret.etag = previous_etag

            self._commit(rollback)
            return version.model_copy(deep=True)

    def _resolve_version(self, project_id: str, secret_id: str, version_id: str) -> SecretVersion:
        """Resolve 'latest' and look up a version (lock must be held)."""
        secret = self._require_secret(project_id, secret_id)

        if version_id == LATEST_VERSION:
            if secret.version_count == 0:
                raise SecretVersionNotFoundError(project_id, secret_id, version_id)
            version_id = str(secret.version_count)

        version = secret.versions.get(version_id)
        if version is None:
            raise SecretVersionNotFoundError(project_id, secret_id, version_id)
        return version

    def get_secret_version(self, project_id: str, secret_id: str, version_id: str) -> SecretVersion:
        """Get a version; 'latest' targets the highest id ever assigned.

        Raises:
            SecretNotFoundError: If the secret does not exist
            SecretVersionNotFoundError: If the resolved version does not exist
        """
        with self._lock.read_locked():
            return self._resolve_version(project_id, secret_id, version_id).model_copy(deep=True)

    def list_secret_versions(
        self,
        project_id: str,
        secret_id: str,
        page_size: int,
        page_token: str = "",
    ) -> Tuple[List[SecretVersion], str]:
        """List versions of a secret, newest first.

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        with self._lock.read_locked():
            secret = self._require_secret(project_id, secret_id)
            versions = sorted(
                secret.versions.values(),
                key=cmp_to_key(lambda a, b: compare_version_ids(a.version_id, b.version_id)),
            )
            page, next_page_token = paginate(versions, page_size, page_token)
            return [v.model_copy(deep=True) for v in page], next_page_token

    def delete_secret_version(self, project_id: str, secret_id: str, version_id: str) -> None:
        """Delete a single version; the secret's counter is never decremented.

        Raises:
            SecretNotFoundError: If the secret does not exist
            SecretVersionNotFoundError: If the version does not exist
        """
        with self._lock.write_locked():
            secret = self._require_secret(project_id, secret_id)
            version = secret.versions.get(version_id)
            if version is None:
                raise SecretVersionNotFoundError(project_id, secret_id, version_id)

            previous_etag = secret.etag
            del secret.versions[version_id]
            secret.etag = generate_etag()

            def rollback():
                secret.versions[version_id] = version
                secret.etag = previous_etag

            self._commit(rollback)

    def access_secret_version(self, project_id: str, secret_id: str, version_id: str) -> bytes:
        """Read the raw payload of a resolved version.

        Raises:
            SecretNotFoundError: If the secret does not exist
            SecretVersionNotFoundError: If the resolved version does not exist
        """
        with self._lock.read_locked():
            return self._resolve_version(project_id, secret_id, version_id).data

    # ========== Lifecycle ==========

    def health(self) -> dict:
        """Report store statistics.

        Returns:
            Health status dictionary
        """
        with self._lock.read_locked():
            projects = {key.split("/", 1)[0] for key in self._secrets}
            return {
                "status": "healthy",
                "projects": len(projects),
                "secrets": len(self._secrets),
                "versions": sum(len(s.versions) for s in self._secrets.values()),
                "persistent": self.persistent,
            }

    def reset(self) -> None:
        """Reset all data (for testing)."""
        with self._lock.write_locked():
            previous = self._secrets
            self._secrets = {}

            def rollback():
                self._secrets = previous

            self._commit(rollback)

    def close(self) -> None:
        """Release resources (nothing to release in memory)."""
