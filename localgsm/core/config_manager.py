"""
Configuration management for LocalGSM.

Handles loading, validation, and access to configuration settings.
"""

import os
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator, ValidationError, ConfigDict

logger = logging.getLogger(__name__)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ServerConfig(BaseModel):
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = Field(default=8085, ge=1, le=65535)
    shutdown_timeout: float = Field(
        default=30.0,
        ge=0.0,
        description="Graceful shutdown timeout in seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "json"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'localgsm.services.secretmanager': 'DEBUG'}"
    )


class StorageConfig(BaseModel):
    """Secret store configuration. Setting file_path enables snapshot persistence."""
    file_path: Optional[str] = None
    pretty_json: bool = True


class AuthConfig(BaseModel):
    """Mock authentication configuration."""
    enabled: bool = False


class CorsConfig(BaseModel):
    """CORS configuration."""
    enabled: bool = True


class PaginationConfig(BaseModel):
    """List pagination limits applied before calling the store."""
    default_page_size: int = Field(default=100, ge=1)
    max_page_size: int = Field(default=1000, ge=1)

    @model_validator(mode="after")
    def check_bounds(self) -> "PaginationConfig":
        """Default page size must not exceed the maximum."""
        if self.default_page_size > self.max_page_size:
            raise ValueError("default_page_size must not exceed max_page_size")
        return self


class LocalGSMConfig(BaseModel):
    """Main LocalGSM configuration schema."""

    version: str = Field(default="1.0.0", description="Configuration version")

    server: ServerConfig = Field(default_factory=ServerConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    storage: StorageConfig = Field(default_factory=StorageConfig)

    auth: AuthConfig = Field(default_factory=AuthConfig)

    cors: CorsConfig = Field(default_factory=CorsConfig)

    pagination: PaginationConfig = Field(default_factory=PaginationConfig)

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        """Validate version format."""
        parts = v.split(".")
        if len(parts) != 3:
            raise ValueError("Version must be in format x.y.z")
        for part in parts:
            if not part.isdigit():
                raise ValueError("Version components must be numeric")
        return v

    model_config = ConfigDict(use_enum_values=True)


def _flag_true(value: str) -> bool:
    return value.lower() == "true"


def _flag_not_false(value: str) -> bool:
    return value.lower() != "false"


# Environment variable -> (config path, converter)
ENV_VARS: Dict[str, Tuple[Tuple[str, str], Callable[[str], Any]]] = {
    "GSM_HOST": (("server", "host"), str),
    "GSM_PORT": (("server", "port"), int),
    "GSM_LOG_LEVEL": (("logging", "level"), str.upper),
    "GSM_LOG_FORMAT": (("logging", "format"), str.lower),
    "GSM_LOG_FILE": (("logging", "file"), str),
    "GSM_STORAGE_FILE": (("storage", "file_path"), str),
    "GSM_ENABLE_AUTH": (("auth", "enabled"), _flag_true),
    "GSM_ENABLE_CORS": (("cors", "enabled"), _flag_not_false),
}


class ConfigManager:
    """
    Loads and validates LocalGSM configuration.

    Sources, highest precedence first:
    1. CLI arguments
    2. Environment variables (GSM_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self):
        self._config: Optional[LocalGSMConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> LocalGSMConfig:
        """
        Load and validate configuration from every source.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Nested dictionary of CLI argument overrides

        Returns:
            Validated LocalGSMConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If the config file doesn't exist
            ValueError: If the config file format or an env value is invalid
        """
        layers = []
        if config_file:
            layers.append(("file", self._load_from_file(config_file)))
            self._config_file = Path(config_file)
        layers.append(("environment", self._load_from_env()))
        layers.append(("cli", cli_overrides or {}))

        merged: Dict[str, Any] = {}
        for source, values in layers:
            if values:
                logger.debug(f"Applying {source} configuration: {sorted(values)}")
                merged = self._merge_configs(merged, values)

        try:
            self._config = LocalGSMConfig(**merged)
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        self._log_configuration()
        return self._config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Read a YAML or JSON configuration file."""
        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, "r", encoding="utf-8") as f:
            if path.suffix in (".yaml", ".yml"):
                data = yaml.safe_load(f)
            elif path.suffix == ".json":
                data = json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {file_path}")
        return data

    def _load_from_env(self) -> Dict[str, Any]:
        """Collect overrides from GSM_* environment variables."""
        config: Dict[str, Any] = {}
        for name, ((section, key), convert) in ENV_VARS.items():
            raw = os.getenv(name)
            if not raw:
                continue
            try:
                config.setdefault(section, {})[key] = convert(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {name}: {raw!r}") from e
        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = dict(base)
        for key, value in override.items():
            if isinstance(result.get(key), dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def _log_configuration(self) -> None:
        """Summarize the active configuration."""
        config = self._config
        storage = config.storage.file_path or "in-memory"
        logger.info(
            f"Configuration loaded: {config.server.host}:{config.server.port}, "
            f"storage={storage}, auth={'on' if config.auth.enabled else 'off'}, "
            f"cors={'on' if config.cors.enabled else 'off'}"
        )

    def get_config(self) -> LocalGSMConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> LocalGSMConfig:
        """Reload configuration from the same file and the current environment."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
