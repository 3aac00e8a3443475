"""
Secret Manager Snapshot Persistence.

File-backed variant of the in-memory backend. The whole secret map is
written to a single JSON document after every mutation and restored from it
at startup.

Snapshot file format:
{
    "secrets": {
        "my-project/db-password": {
            "name": "projects/my-project/secrets/db-password",
            "createTime": "2026-10-19T10:30:00Z",
            "labels": {"env": "dev"},
            "replication": {"automatic": {}},
            "etag": "\"...\"",
            "versionCount": 2,
            "versions": {
                "2": {"name": "...", "state": "ENABLED", "data": "<base64>", ...}
            }
        }
    },
    "timestamp": "2026-10-19T10:31:00Z",
    "version": "1.0.0"
}

Author: LocalGSM Team
Date: 2026-10-19
"""

import base64
import binascii
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Union

from pydantic import ValidationError

from .backend import SecretManagerBackend
from .exceptions import PersistenceError
from .models import Secret, SecretVersion

SNAPSHOT_VERSION = "1.0.0"


def _dump_version(version: SecretVersion) -> Dict[str, Any]:
    """Serialize a version including its payload."""
    data = version.model_dump(mode="json", by_alias=True, exclude_none=True)
    data["data"] = base64.b64encode(version.data).decode("ascii")
    return data


def _dump_secret(secret: Secret) -> Dict[str, Any]:
    """Serialize a secret including its version map and counter."""
    data = secret.model_dump(mode="json", by_alias=True, exclude_none=True)
    data["versionCount"] = secret.version_count
    data["versions"] = {
        version_id: _dump_version(version)
        for version_id, version in secret.versions.items()
    }
    return data


def _load_secret(data: Dict[str, Any]) -> Secret:
    """Rebuild a secret from its snapshot representation."""
    versions = {}
    for version_id, raw in (data.get("versions") or {}).items():
        payload = base64.b64decode(raw.get("data", ""), validate=True)
        version = SecretVersion.model_validate({**raw, "data": b""})
        versions[version_id] = version.model_copy(update={"data": payload})

    secret = Secret.model_validate({**data, "versions": {}})
    return secret.model_copy(update={"versions": versions})


class PersistentSecretManagerBackend(SecretManagerBackend):
    """
    Secret Manager backend with snapshot persistence.

    Every mutating operation saves synchronously while holding the write
    lock. When the save fails, the in-memory change is rolled back and the
    PersistenceError reaches the caller. A crash between the mutation and
    the rollback leaves the file stale until the next successful save.

    Attributes:
        file_path: Snapshot file location
        pretty_json: Indent the snapshot for manual inspection
    """

    persistent = True

    def __init__(self, file_path: Union[str, Path], pretty_json: bool = True):
        """Initialize persistent backend.

        Args:
            file_path: Snapshot file location
            pretty_json: Indent the snapshot file
        """
        super().__init__()
        self.file_path = Path(file_path)
        self.pretty_json = pretty_json

    def _commit(self, rollback: Callable[[], None]) -> None:
        """Save after a mutation, undoing it if the save fails."""
        try:
            self._save_locked()
        except PersistenceError:
            rollback()
            raise

    def _write_json(self, data: Dict[str, Any]) -> None:
        """
        Write the snapshot atomically.

        Uses temp file + rename:
        1. Write to temp file
        2. Flush to disk
        3. Rename temp to target
        """
        temp_path = self.file_path.with_name(self.file_path.name + ".tmp")

        try:
            self.file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2 if self.pretty_json else None)
                f.flush()
                os.fsync(f.fileno())
            temp_path.replace(self.file_path)

        except (OSError, TypeError, ValueError) as e:
            if temp_path.exists():
                temp_path.unlink()
            raise PersistenceError(f"Failed to write storage file: {e}") from e

    def _save_locked(self) -> None:
        """Serialize the full map (write lock must be held)."""
        snapshot = {
            "secrets": {key: _dump_secret(secret) for key, secret in self._secrets.items()},
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": SNAPSHOT_VERSION,
        }
        self._write_json(snapshot)

    def save(self) -> None:
        """Overwrite the snapshot file with the current state.

        Raises:
            PersistenceError: If the file cannot be written
        """
        with self._lock.write_locked():
            self._save_locked()

    def load(self) -> None:
        """Replace the in-memory state with the snapshot file contents.

        A missing file is a first run and leaves the store empty.

        Raises:
            PersistenceError: If the file exists but cannot be read or parsed
        """
        with self._lock.write_locked():
            if not self.file_path.exists():
                return

            try:
                with open(self.file_path, "r", encoding="utf-8") as f:
                    snapshot = json.load(f)
            except OSError as e:
                raise PersistenceError(f"Failed to read storage file: {e}") from e
            except json.JSONDecodeError as e:
                raise PersistenceError(f"Failed to parse storage file: {e}") from e

            if not isinstance(snapshot, dict):
                raise PersistenceError("Failed to parse storage file: expected a JSON object")

            version = snapshot.get("version")
            if version != SNAPSHOT_VERSION:
                raise PersistenceError(
                    f"Unsupported storage file version: {version} (expected {SNAPSHOT_VERSION})"
                )

            try:
                secrets = {
                    key: _load_secret(data)
                    for key, data in (snapshot.get("secrets") or {}).items()
                }
            except (ValidationError, binascii.Error, AttributeError, TypeError, ValueError) as e:
                raise PersistenceError(f"Failed to parse storage file: {e}") from e

            self._secrets = secrets

    def close(self) -> None:
        """Write a final snapshot (graceful shutdown).

        Raises:
            PersistenceError: If the file cannot be written
        """
        self.save()
