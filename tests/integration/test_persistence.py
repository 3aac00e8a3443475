"""
Integration tests for snapshot persistence across application restarts.

Author: LocalGSM Team
Date: 2026-10-19
"""

import base64
import json

import pytest
from fastapi.testclient import TestClient

from localgsm.app import create_app, create_backend, lifespan
from localgsm.core.config_manager import LocalGSMConfig, StorageConfig
from localgsm.services.secretmanager.backend import SecretManagerBackend
from localgsm.services.secretmanager.models import Secret
from localgsm.services.secretmanager.persistence import PersistentSecretManagerBackend

BASE = "/v1/projects/p1/secrets"


@pytest.fixture
def config(tmp_path):
    """Configuration with persistence enabled."""
    return LocalGSMConfig(storage={"file_path": str(tmp_path / "secrets.json")})


class TestCreateBackend:
    """Test backend selection from configuration."""

    def test_memory_by_default(self):
        """Test no storage file means an in-memory store."""
        backend = create_backend(StorageConfig())

        assert type(backend) is SecretManagerBackend

    def test_persistent_with_file(self, tmp_path):
        """Test a storage file enables persistence."""
        backend = create_backend(StorageConfig(file_path=str(tmp_path / "s.json"), pretty_json=False))

        assert isinstance(backend, PersistentSecretManagerBackend)
        assert backend.pretty_json is False


class TestRestart:
    """Test state survives a restart of the application."""

    def test_secrets_survive_restart(self, config):
        """Test secrets and versions are restored on startup."""
        with TestClient(create_app(config)) as client:
            client.post(BASE, json={"secretId": "db-password"})
            client.post(
                f"{BASE}/db-password:addVersion",
                json={"payload": {"data": base64.b64encode(b"s3cret").decode()}},
            )

        with TestClient(create_app(config)) as client:
            body = client.get(f"{BASE}/db-password/versions/latest:access").json()
            health = client.get("/_health").json()

        assert base64.b64decode(body["payload"]["data"]) == b"s3cret"
        assert health["persistent"] is True
        assert health["secrets"] == 1

    def test_corrupt_file_starts_empty(self, config):
        """Test an unreadable snapshot does not prevent startup."""
        with open(config.storage.file_path, "w") as f:
            f.write("{broken")

        with TestClient(create_app(config)) as client:
            assert client.get("/_health").json()["secrets"] == 0

    def test_shutdown_writes_snapshot(self, config):
        """Test a final snapshot is written on shutdown."""
        with TestClient(create_app(config)):
            pass

        with open(config.storage.file_path) as f:
            snapshot = json.load(f)
        assert snapshot["secrets"] == {}


class TestLifespan:
    """Test the lifespan handler directly."""

    @pytest.mark.asyncio
    async def test_lifespan_loads_and_closes(self, config):
        """Test startup loads the snapshot and shutdown saves it."""
        seed = PersistentSecretManagerBackend(config.storage.file_path)
        seed.create_secret("p1", "s1", Secret.new("p1", "s1"))

        app = create_app(config)

        async with lifespan(app):
            assert app.state.backend.get_secret("p1", "s1").name == "projects/p1/secrets/s1"
            app.state.backend.add_secret_version("p1", "s1", b"late")

        restored = PersistentSecretManagerBackend(config.storage.file_path)
        restored.load()
        assert restored.access_secret_version("p1", "s1", "latest") == b"late"
