"""
Configuration management for exoscale-auth.

Handles loading, validation, and access to client settings. Credentials are
not part of this configuration; see exoscale_auth.auth.credentials.
"""

import os
import re
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, List
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from exoscale_auth.client.endpoints import (
    DEFAULT_DNS_BASE_URL,
    DEFAULT_V1_BASE_URL,
    DEFAULT_V2_URL_TEMPLATE,
    DEFAULT_ZONE,
    Endpoints,
)

logger = logging.getLogger(__name__)

_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([KMG]?B)?\s*$", re.IGNORECASE)
_SIZE_UNITS = {"B": 1, "KB": 1024, "MB": 1024 ** 2, "GB": 1024 ** 3}


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log record formats."""
    TEXT = "text"
    JSON = "json"


class SigningBackendType(str, Enum):
    """Supported keyed digest backends."""
    NATIVE = "native"
    OPENSSL = "openssl"


class EndpointsConfig(BaseModel):
    """API base URLs."""
    v1_base_url: str = DEFAULT_V1_BASE_URL
    v2_url_template: str = Field(
        default=DEFAULT_V2_URL_TEMPLATE,
        description="v2 base URL, '{zone}' is replaced by the request zone"
    )
    dns_base_url: str = DEFAULT_DNS_BASE_URL
    default_zone: str = DEFAULT_ZONE

    @field_validator("v2_url_template")
    @classmethod
    def validate_template(cls, v: str) -> str:
        """The v2 template must be parameterized by zone."""
        if "{zone}" not in v:
            raise ValueError("v2_url_template must contain '{zone}'")
        return v

    def to_endpoints(self) -> Endpoints:
        return Endpoints(
            v1_base_url=self.v1_base_url,
            v2_url_template=self.v2_url_template,
            dns_base_url=self.dns_base_url,
            default_zone=self.default_zone,
        )


class CredentialsConfig(BaseModel):
    """Where to look for API credentials."""
    config_paths: Optional[List[str]] = Field(
        default=None,
        description="Override the default exoscale.toml locations"
    )


class SigningConfig(BaseModel):
    """Keyed digest configuration."""
    backend: SigningBackendType = SigningBackendType.NATIVE
    openssl_binary: str = "openssl"


class HttpConfig(BaseModel):
    """HTTP transport configuration."""
    timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Request timeout in seconds"
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    file: Optional[str] = None
    rotation_size: int = Field(
        default=10 * 1024 ** 2,
        gt=0,
        description="Bytes after which the log file is rotated; accepts sizes like '10MB'"
    )
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'exoscale_auth.client': 'DEBUG'}"
    )

    @field_validator("rotation_size", mode="before")
    @classmethod
    def parse_rotation_size(cls, v: Any) -> Any:
        """Convert "512", "64KB", "10MB" or "1GB" to bytes."""
        if not isinstance(v, str):
            return v
        match = _SIZE_PATTERN.match(v)
        if not match:
            raise ValueError(f"Invalid size: {v!r}")
        number, unit = match.groups()
        return int(float(number) * _SIZE_UNITS[(unit or "B").upper()])


class ExoscaleConfig(BaseModel):
    """Main exoscale-auth configuration schema."""

    version: str = Field(default="0.1.0", description="Configuration version")

    endpoints: EndpointsConfig = Field(default_factory=EndpointsConfig)

    credentials: CredentialsConfig = Field(default_factory=CredentialsConfig)

    signing: SigningConfig = Field(default_factory=SigningConfig)

    http: HttpConfig = Field(default_factory=HttpConfig)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

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


class ConfigManager:
    """
    Manages exoscale-auth configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. CLI arguments
    2. Environment variables (EXOSCALE_AUTH_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    def __init__(self, environ: Optional[Dict[str, str]] = None):
        self._config: Optional[ExoscaleConfig] = None
        self._config_file: Optional[Path] = None
        self._environ = environ

    def load(
        self,
        config_file: Optional[str] = None,
        cli_overrides: Optional[Dict[str, Any]] = None
    ) -> ExoscaleConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            cli_overrides: Dictionary of CLI argument overrides

        Returns:
            Validated ExoscaleConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.debug("Loading exoscale-auth configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if cli_overrides:
            config_dict = self._merge_configs(config_dict, cli_overrides)
            logger.info(f"Applied {len(cli_overrides)} CLI argument overrides")

        try:
            self._config = ExoscaleConfig(**config_dict)
            logger.debug("Configuration validated successfully")
            self._log_configuration()
            return self._config
        except ValidationError as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file."""
        path = Path(file_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {file_path}")

        with open(path, 'r') as f:
            if path.suffix in ['.yaml', '.yml']:
                return yaml.safe_load(f) or {}
            elif path.suffix == '.json':
                return json.load(f)
            else:
                raise ValueError(f"Unsupported config file format: {path.suffix}")

    def _load_from_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables."""
        environ = os.environ if self._environ is None else self._environ
        config: Dict[str, Any] = {}

        if zone := environ.get("EXOSCALE_AUTH_ZONE"):
            config.setdefault("endpoints", {})["default_zone"] = zone

        if timeout := environ.get("EXOSCALE_AUTH_TIMEOUT"):
            config.setdefault("http", {})["timeout"] = float(timeout)

        if backend := environ.get("EXOSCALE_AUTH_SIGNING_BACKEND"):
            config.setdefault("signing", {})["backend"] = backend.lower()

        if log_level := environ.get("EXOSCALE_AUTH_LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := environ.get("EXOSCALE_AUTH_LOG_FILE"):
            config.setdefault("logging", {})["file"] = log_file

        return config

    def _merge_configs(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two configuration dictionaries."""
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _log_configuration(self) -> None:
        """Log the loaded configuration."""
        if not self._config:
            return

        config_dict = self._config.model_dump()
        logger.debug(f"Active configuration: {json.dumps(config_dict, indent=2)}")

    def get_config(self) -> ExoscaleConfig:
        """
        Get the loaded configuration.

        Returns:
            ExoscaleConfig instance

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> ExoscaleConfig:
        """
        Reload configuration from the same sources.

        Returns:
            Reloaded ExoscaleConfig instance
        """
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
