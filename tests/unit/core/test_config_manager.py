"""
Tests for ConfigManager.
"""

import json

import pytest
import yaml
from pydantic import ValidationError

from localgsm.core.config_manager import (
    ConfigManager,
    LocalGSMConfig,
    LogLevel,
    PaginationConfig,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove GSM_* variables inherited from the environment."""
    for name in [
        "GSM_HOST", "GSM_PORT", "GSM_STORAGE_FILE", "GSM_LOG_LEVEL",
        "GSM_LOG_FORMAT", "GSM_LOG_FILE", "GSM_ENABLE_AUTH", "GSM_ENABLE_CORS",
    ]:
        monkeypatch.delenv(name, raising=False)


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        """Test loading default configuration."""
        config = ConfigManager().load()

        assert config.version == "1.0.0"
        assert config.server.host == "0.0.0.0"
        assert config.server.port == 8085
        assert config.logging.level == LogLevel.INFO
        assert config.storage.file_path is None
        assert config.auth.enabled is False
        assert config.cors.enabled is True
        assert config.pagination.default_page_size == 100
        assert config.pagination.max_page_size == 1000

    def test_load_from_yaml_file(self, tmp_path):
        """Test loading configuration from YAML file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({
            "server": {"host": "127.0.0.1", "port": 9000},
            "storage": {"file_path": "/tmp/secrets.json"},
        }))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.server.host == "127.0.0.1"
        assert config.server.port == 9000
        assert config.storage.file_path == "/tmp/secrets.json"

    def test_load_from_json_file(self, tmp_path):
        """Test loading configuration from JSON file."""
        config_file = tmp_path / "config.json"
        config_file.write_text(json.dumps({"logging": {"level": "DEBUG", "format": "text"}}))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.logging.level == LogLevel.DEBUG
        assert config.logging.format == "text"

    def test_missing_file(self):
        """Test a missing config file is reported."""
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(config_file="/nonexistent/config.yaml")

    def test_unsupported_format(self, tmp_path):
        """Test an unsupported file extension is rejected."""
        config_file = tmp_path / "config.ini"
        config_file.write_text("[server]")

        with pytest.raises(ValueError):
            ConfigManager().load(config_file=str(config_file))

    def test_env_variables(self, monkeypatch):
        """Test GSM_* environment variables are applied."""
        monkeypatch.setenv("GSM_HOST", "localhost")
        monkeypatch.setenv("GSM_PORT", "9999")
        monkeypatch.setenv("GSM_STORAGE_FILE", "/data/secrets.json")
        monkeypatch.setenv("GSM_LOG_LEVEL", "warning")
        monkeypatch.setenv("GSM_ENABLE_AUTH", "true")
        monkeypatch.setenv("GSM_ENABLE_CORS", "false")

        config = ConfigManager().load()

        assert config.server.host == "localhost"
        assert config.server.port == 9999
        assert config.storage.file_path == "/data/secrets.json"
        assert config.logging.level == LogLevel.WARNING
        assert config.auth.enabled is True
        assert config.cors.enabled is False

    def test_invalid_env_value(self, monkeypatch):
        """Test a non-numeric port in the environment is reported."""
        monkeypatch.setenv("GSM_PORT", "eighty")

        with pytest.raises(ValueError, match="GSM_PORT"):
            ConfigManager().load()

    def test_empty_yaml_file(self, tmp_path):
        """Test an empty YAML file yields defaults."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert ConfigManager().load(config_file=str(config_file)).server.port == 8085

    def test_auth_requires_exact_true(self, monkeypatch):
        """Test only 'true' enables auth and only 'false' disables CORS."""
        monkeypatch.setenv("GSM_ENABLE_AUTH", "yes")
        monkeypatch.setenv("GSM_ENABLE_CORS", "no")

        config = ConfigManager().load()

        assert config.auth.enabled is False
        assert config.cors.enabled is True

    def test_precedence(self, tmp_path, monkeypatch):
        """Test CLI overrides beat env, which beats the file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"server": {"host": "file-host", "port": 1111}}))
        monkeypatch.setenv("GSM_PORT", "2222")

        config = ConfigManager().load(
            config_file=str(config_file),
            cli_overrides={"server": {"host": "cli-host"}},
        )

        assert config.server.host == "cli-host"
        assert config.server.port == 2222

    def test_invalid_port(self):
        """Test out-of-range ports fail validation."""
        with pytest.raises(ValidationError):
            ConfigManager().load(cli_overrides={"server": {"port": 70000}})

    def test_get_config_before_load(self):
        """Test get_config requires a prior load."""
        with pytest.raises(RuntimeError):
            ConfigManager().get_config()

    def test_reload(self, tmp_path):
        """Test reload re-reads the same file."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"server": {"port": 9001}}))
        manager = ConfigManager()
        manager.load(config_file=str(config_file))

        config_file.write_text(yaml.dump({"server": {"port": 9002}}))

        assert manager.reload().server.port == 9002
        assert manager.get_config().server.port == 9002


class TestConfigModels:
    """Test configuration schema validation."""

    def test_invalid_version(self):
        """Test version must be x.y.z."""
        with pytest.raises(ValidationError):
            LocalGSMConfig(version="1.0")

    def test_page_size_bounds(self):
        """Test the default page size may not exceed the maximum."""
        with pytest.raises(ValidationError):
            PaginationConfig(default_page_size=500, max_page_size=100)
