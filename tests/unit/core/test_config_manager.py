"""
Tests for ConfigManager.
"""

import os
import json
import tempfile

import pytest
import yaml
from pydantic import ValidationError

from exoscale_auth.client.endpoints import Endpoints
from exoscale_auth.core.config_manager import (
    ConfigManager,
    EndpointsConfig,
    ExoscaleConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    SigningBackendType,
)


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        """Test loading default configuration."""
        manager = ConfigManager(environ={})
        config = manager.load()

        assert config is not None
        assert config.version == "0.1.0"
        assert config.endpoints.default_zone == "ch-gva-2"
        assert config.http.timeout == 30.0
        assert config.logging.level == LogLevel.INFO
        assert config.signing.backend == SigningBackendType.NATIVE

    def test_load_from_yaml_file(self):
        """Test loading configuration from YAML file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml_config = {
                "version": "1.0.0",
                "endpoints": {"default_zone": "de-fra-1"},
                "logging": {"level": "DEBUG"},
            }
            yaml.dump(yaml_config, f)
            config_file = f.name

        try:
            manager = ConfigManager(environ={})
            config = manager.load(config_file=config_file)

            assert config.version == "1.0.0"
            assert config.endpoints.default_zone == "de-fra-1"
            assert config.logging.level == LogLevel.DEBUG
        finally:
            os.unlink(config_file)

    def test_load_from_json_file(self):
        """Test loading configuration from JSON file."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
            json_config = {
                "version": "2.0.0",
                "signing": {"backend": "openssl", "openssl_binary": "/opt/bin/openssl"},
            }
            json.dump(json_config, f)
            config_file = f.name

        try:
            manager = ConfigManager(environ={})
            config = manager.load(config_file=config_file)

            assert config.version == "2.0.0"
            assert config.signing.backend == SigningBackendType.OPENSSL
            assert config.signing.openssl_binary == "/opt/bin/openssl"
        finally:
            os.unlink(config_file)

    def test_load_from_env_variables(self):
        """Test loading configuration from environment variables."""
        environ = {
            "EXOSCALE_AUTH_ZONE": "at-vie-1",
            "EXOSCALE_AUTH_TIMEOUT": "5",
            "EXOSCALE_AUTH_SIGNING_BACKEND": "OPENSSL",
            "EXOSCALE_AUTH_LOG_LEVEL": "warning",
            "EXOSCALE_AUTH_LOG_FILE": "/tmp/exoscale-auth.log",
        }

        config = ConfigManager(environ=environ).load()

        assert config.endpoints.default_zone == "at-vie-1"
        assert config.http.timeout == 5.0
        assert config.signing.backend == SigningBackendType.OPENSSL
        assert config.logging.level == LogLevel.WARNING
        assert config.logging.file == "/tmp/exoscale-auth.log"

    def test_process_environment_used_by_default(self, monkeypatch):
        """Test that os.environ is read when no snapshot is given."""
        monkeypatch.setenv("EXOSCALE_AUTH_ZONE", "bg-sof-1")

        config = ConfigManager().load()

        assert config.endpoints.default_zone == "bg-sof-1"

    def test_cli_overrides(self):
        """Test CLI argument overrides."""
        manager = ConfigManager(environ={})
        cli_overrides = {
            "http": {"timeout": 12},
            "logging": {"level": "ERROR"},
        }

        config = manager.load(cli_overrides=cli_overrides)

        assert config.http.timeout == 12
        assert config.logging.level == LogLevel.ERROR

    def test_configuration_precedence(self):
        """Test configuration precedence: CLI > ENV > FILE > DEFAULTS."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.yaml', delete=False) as f:
            yaml_config = {
                "endpoints": {"default_zone": "file-zone"},
                "http": {"timeout": 1},
            }
            yaml.dump(yaml_config, f)
            config_file = f.name

        try:
            manager = ConfigManager(environ={"EXOSCALE_AUTH_ZONE": "env-zone"})
            config = manager.load(
                config_file=config_file,
                cli_overrides={"http": {"timeout": 2}},
            )

            assert config.http.timeout == 2
            assert config.endpoints.default_zone == "env-zone"
        finally:
            os.unlink(config_file)

    def test_invalid_version_format(self):
        """Test that invalid version format raises validation error."""
        manager = ConfigManager(environ={})

        with pytest.raises(ValidationError) as exc_info:
            manager.load(cli_overrides={"version": "1.0"})

        assert "Version must be in format x.y.z" in str(exc_info.value)

    def test_invalid_signing_backend(self):
        """Test that unknown signing backends are rejected."""
        manager = ConfigManager(environ={"EXOSCALE_AUTH_SIGNING_BACKEND": "hsm"})

        with pytest.raises(ValidationError):
            manager.load()

    def test_invalid_timeout(self):
        """Test that non-positive timeouts are rejected."""
        with pytest.raises(ValidationError):
            ConfigManager(environ={}).load(cli_overrides={"http": {"timeout": 0}})

    def test_file_not_found(self):
        """Test that missing config file raises FileNotFoundError."""
        manager = ConfigManager(environ={})

        with pytest.raises(FileNotFoundError):
            manager.load(config_file="/nonexistent/config.yaml")

    def test_unsupported_file_format(self):
        """Test that unsupported file format raises ValueError."""
        with tempfile.NamedTemporaryFile(mode='w', suffix='.toml', delete=False) as f:
            f.write('key = "not a config"')
            config_file = f.name

        try:
            manager = ConfigManager(environ={})
            with pytest.raises(ValueError) as exc_info:
                manager.load(config_file=config_file)

            assert "Unsupported config file format" in str(exc_info.value)
        finally:
            os.unlink(config_file)

    def test_get_config_before_load(self):
        """Test that getting config before loading raises RuntimeError."""
        manager = ConfigManager(environ={})

        with pytest.raises(RuntimeError) as exc_info:
            manager.get_config()

        assert "Configuration not loaded" in str(exc_info.value)

    def test_get_config_after_load(self):
        """Test getting config after loading."""
        manager = ConfigManager(environ={})
        config1 = manager.load()
        config2 = manager.get_config()

        assert config1 is config2

    def test_reload_configuration(self, tmp_path):
        """Test reloading configuration."""
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"http": {"timeout": 3}}))

        manager = ConfigManager(environ={})
        config1 = manager.load(config_file=str(config_file))
        assert config1.http.timeout == 3

        config_file.write_text(yaml.dump({"http": {"timeout": 4}}))

        config2 = manager.reload()
        assert config2.http.timeout == 4


class TestEndpointsConfig:
    """Test suite for EndpointsConfig model."""

    def test_defaults_match_endpoints(self):
        """Test that default configuration builds the default endpoints."""
        assert EndpointsConfig().to_endpoints() == Endpoints()

    def test_template_requires_zone(self):
        """Test that the v2 template must contain a zone placeholder."""
        with pytest.raises(ValidationError):
            EndpointsConfig(v2_url_template="https://api.example.com")

    def test_custom_endpoints(self):
        """Test custom base URLs."""
        config = ExoscaleConfig(endpoints={"v1_base_url": "http://localhost:9000"})

        endpoints = config.endpoints.to_endpoints()

        assert endpoints.v1_base_url == "http://localhost:9000"
        assert endpoints.default_zone == "ch-gva-2"

    def test_credential_paths(self):
        """Test credential path overrides."""
        config = ExoscaleConfig(credentials={"config_paths": ["~/exo.toml"]})
        assert config.credentials.config_paths == ["~/exo.toml"]


class TestLoggingConfig:
    """Test logging configuration parsing."""

    def test_defaults(self):
        config = LoggingConfig()
        assert config.format == LogFormat.TEXT
        assert config.rotation_size == 10 * 1024 ** 2

    @pytest.mark.parametrize(
        "size,expected",
        [("100B", 100), ("64kb", 64 * 1024), ("10MB", 10 * 1024 ** 2), ("1.5GB", int(1.5 * 1024 ** 3)), ("512", 512), (4096, 4096)],
    )
    def test_rotation_size(self, size, expected):
        """Test that human-readable sizes are converted to bytes."""
        assert LoggingConfig(rotation_size=size).rotation_size == expected

    @pytest.mark.parametrize("size", ["ten megabytes", "10TB", "0", ""])
    def test_invalid_rotation_size(self, size):
        with pytest.raises(ValidationError):
            LoggingConfig(rotation_size=size)

    def test_invalid_format(self):
        with pytest.raises(ValidationError):
            ConfigManager(environ={}).load(cli_overrides={"logging": {"format": "xml"}})

    def test_json_format_from_file(self, tmp_path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(yaml.dump({"logging": {"format": "json", "rotation_size": "1MB"}}))

        config = ConfigManager(environ={}).load(config_file=str(config_file))

        assert config.logging.format == LogFormat.JSON
        assert config.logging.rotation_size == 1024 ** 2
