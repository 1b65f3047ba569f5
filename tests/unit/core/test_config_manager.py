"""
Tests for ConfigManager and credential resolution.
"""

import json
import os
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from blobauth.auth.credentials import (
    AccountKey,
    FileAssertionSource,
    ManagedIdentity,
    ServicePrincipal,
)
from blobauth.auth.exceptions import ConfigurationError
from blobauth.core.config_manager import (
    BlobAuthConfig,
    ConfigManager,
    LogLevel,
    decode_account_key,
    parse_connection_string,
)

SECRET_KEY_B64 = "c2VjcmV0a2V5"  # "secretkey"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove BLOBAUTH_* variables inherited from the environment."""
    for name in list(os.environ):
        if name.startswith("BLOBAUTH_"):
            monkeypatch.delenv(name)


class TestParseConnectionString:
    """Test connection string parsing."""

    def test_single_pair(self):
        assert parse_connection_string("Key=value") == {"Key": "value"}

    def test_trailing_separator(self):
        assert parse_connection_string("Key1=hello;Key2=world;") == {
            "Key1": "hello",
            "Key2": "world",
        }

    def test_none_and_empty(self):
        assert parse_connection_string(None) == {}
        assert parse_connection_string("") == {}

    def test_value_with_equals(self):
        assert parse_connection_string("AccountKey=abc==;AccountName=acct") == {
            "AccountKey": "abc==",
            "AccountName": "acct",
        }

    def test_malformed_segment(self):
        with pytest.raises(ConfigurationError):
            parse_connection_string("AccountName=acct;garbage")


class TestDecodeAccountKey:

    def test_valid(self):
        assert decode_account_key(SECRET_KEY_B64) == b"secretkey"

    def test_invalid(self):
        with pytest.raises(ConfigurationError):
            decode_account_key("not base64!")


class TestAuthMethod:
    """Test credential resolution."""

    def test_account_key(self):
        config = BlobAuthConfig(
            storage_account_name="storage_account",
            storage_account_key=SECRET_KEY_B64,
        )
        assert config.auth_method() == AccountKey("storage_account", b"secretkey")

    def test_connection_string_key(self):
        config = BlobAuthConfig(
            storage_account_connection_string=(
                f"DefaultEndpointsProtocol=https;AccountName=storage_account;"
                f"AccountKey={SECRET_KEY_B64};EndpointSuffix=core.windows.net"
            )
        )
        assert config.auth_method() == AccountKey("storage_account", b"secretkey")

    def test_explicit_key_wins_over_connection_string(self):
        config = BlobAuthConfig(
            storage_account_name="storage_account",
            storage_account_key=SECRET_KEY_B64,
            storage_account_connection_string="AccountName=other;AccountKey=b3RoZXI=",
        )
        assert config.auth_method().key == b"secretkey"

    def test_service_principal(self):
        config = BlobAuthConfig(
            storage_account_name="storage_account",
            storage_client_id="client",
            storage_client_secret="secret",
            storage_tenant_id="tenant",
        )
        assert config.auth_method() == ServicePrincipal("client", "secret", "tenant")

    def test_service_principal_wins_over_identity(self):
        config = BlobAuthConfig(
            storage_client_id="client",
            storage_client_secret="secret",
            storage_tenant_id="tenant",
            storage_identity_token="/var/run/token",
        )
        assert isinstance(config.auth_method(), ServicePrincipal)

    def test_managed_identity(self):
        config = BlobAuthConfig(
            storage_account_name="storage_account",
            storage_client_id="client",
            storage_tenant_id="tenant",
            storage_identity_token="/var/run/token",
        )
        assert config.auth_method() == ManagedIdentity(
            client_id="client",
            tenant_id="tenant",
            identity_token_source=FileAssertionSource(Path("/var/run/token")),
        )

    def test_partial_service_principal(self):
        config = BlobAuthConfig(storage_client_secret="secret", storage_client_id="client")

        with pytest.raises(ConfigurationError, match="service principal: storage_tenant_id"):
            config.auth_method()

    def test_partial_managed_identity(self):
        config = BlobAuthConfig(storage_client_id="client", storage_tenant_id="tenant")

        with pytest.raises(ConfigurationError, match="managed identity: storage_identity_token"):
            config.auth_method()

    def test_no_credentials(self):
        with pytest.raises(ConfigurationError, match="Missing credentials settings"):
            BlobAuthConfig(storage_account_name="storage_account").auth_method()

    def test_key_without_account_name(self):
        with pytest.raises(ConfigurationError, match="Missing storage account name"):
            BlobAuthConfig(storage_account_key=SECRET_KEY_B64).auth_method()


class TestBlobAuthConfig:
    """Test config model validation and helpers."""

    def test_defaults(self):
        config = BlobAuthConfig()

        assert config.auth_url == "https://login.microsoftonline.com"
        assert config.token_expiry_margin_seconds == 10
        assert config.strict_token_errors is False
        assert config.logging.level == LogLevel.INFO

    def test_invalid_account_key(self):
        with pytest.raises(ValidationError):
            BlobAuthConfig(storage_account_key="not base64!")

    def test_invalid_connection_string(self):
        with pytest.raises(ValidationError):
            BlobAuthConfig(storage_account_connection_string="AccountName=a;AccountKey=%%%")

    def test_negative_margin(self):
        with pytest.raises(ValidationError):
            BlobAuthConfig(token_expiry_margin_seconds=-1)

    def test_api_base_url_default(self):
        config = BlobAuthConfig(storage_account_name="storage_account")
        assert config.api_base_url() == "https://storage_account.blob.core.windows.net"

    def test_api_base_url_explicit(self):
        config = BlobAuthConfig(storage_account_name="acct", api_url="http://127.0.0.1:10000/")
        assert config.api_base_url() == "http://127.0.0.1:10000"

    def test_api_base_url_from_connection_string(self):
        config = BlobAuthConfig(
            storage_account_connection_string="AccountName=acct;BlobEndpoint=http://azurite:10000/acct"
        )
        assert config.api_base_url() == "http://azurite:10000/acct"

    def test_container(self):
        assert BlobAuthConfig(default_container="media").container() == "media"

        with pytest.raises(ConfigurationError, match="default container"):
            BlobAuthConfig().container()

    def test_redacted(self):
        config = BlobAuthConfig(
            storage_account_name="acct",
            storage_account_key=SECRET_KEY_B64,
            storage_client_secret="secret",
        )
        redacted = config.redacted()

        assert redacted["storage_account_key"] == "***REDACTED***"
        assert redacted["storage_client_secret"] == "***REDACTED***"
        assert redacted["storage_account_name"] == "acct"
        assert redacted["storage_account_connection_string"] is None


class TestConfigManager:
    """Test suite for ConfigManager."""

    def test_load_defaults(self):
        config = ConfigManager().load()

        assert config.storage_account_name is None
        assert config.http_timeout == 30.0

    def test_load_from_yaml_file(self, tmp_path):
        config_file = tmp_path / "blobauth.yaml"
        config_file.write_text(
            yaml.dump(
                {
                    "storage_account_name": "storage_account",
                    "storage_account_key": SECRET_KEY_B64,
                    "logging": {"level": "DEBUG"},
                }
            )
        )

        config = ConfigManager().load(config_file=str(config_file))

        assert config.storage_account_name == "storage_account"
        assert config.logging.level == LogLevel.DEBUG

    def test_load_from_json_file(self, tmp_path):
        config_file = tmp_path / "blobauth.json"
        config_file.write_text(json.dumps({"default_container": "media"}))

        config = ConfigManager().load(config_file=str(config_file))

        assert config.default_container == "media"

    def test_empty_yaml_file(self, tmp_path):
        config_file = tmp_path / "empty.yml"
        config_file.write_text("")

        assert ConfigManager().load(config_file=str(config_file)).auth_url

    def test_missing_file(self):
        with pytest.raises(FileNotFoundError):
            ConfigManager().load(config_file="/nonexistent/blobauth.yaml")

    def test_unsupported_format(self, tmp_path):
        config_file = tmp_path / "blobauth.toml"
        config_file.write_text("")

        with pytest.raises(ValueError, match="Unsupported config file format"):
            ConfigManager().load(config_file=str(config_file))

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        config_file = tmp_path / "blobauth.yaml"
        config_file.write_text(yaml.dump({"storage_account_name": "from_file"}))
        monkeypatch.setenv("BLOBAUTH_STORAGE_ACCOUNT_NAME", "from_env")
        monkeypatch.setenv("BLOBAUTH_TOKEN_EXPIRY_MARGIN_SECONDS", "30")
        monkeypatch.setenv("BLOBAUTH_STRICT_TOKEN_ERRORS", "true")
        monkeypatch.setenv("BLOBAUTH_LOG_LEVEL", "debug")

        config = ConfigManager().load(config_file=str(config_file))

        assert config.storage_account_name == "from_env"
        assert config.token_expiry_margin_seconds == 30
        assert config.strict_token_errors is True
        assert config.logging.level == LogLevel.DEBUG

    def test_overrides_win_and_none_ignored(self, monkeypatch):
        monkeypatch.setenv("BLOBAUTH_STORAGE_ACCOUNT_NAME", "from_env")
        monkeypatch.setenv("BLOBAUTH_DEFAULT_CONTAINER", "env_container")

        config = ConfigManager().load(
            overrides={"storage_account_name": "override", "default_container": None}
        )

        assert config.storage_account_name == "override"
        assert config.default_container == "env_container"

    def test_invalid_env_value(self, monkeypatch):
        monkeypatch.setenv("BLOBAUTH_STORAGE_ACCOUNT_KEY", "not base64!")

        with pytest.raises(ValidationError):
            ConfigManager().load()

    def test_get_config_before_load(self):
        with pytest.raises(RuntimeError, match="not loaded"):
            ConfigManager().get_config()

    def test_reload(self, tmp_path):
        config_file = tmp_path / "blobauth.yaml"
        config_file.write_text(yaml.dump({"default_container": "first"}))
        manager = ConfigManager()
        manager.load(config_file=str(config_file))

        config_file.write_text(yaml.dump({"default_container": "second"}))

        assert manager.reload().default_container == "second"
        assert manager.get_config().default_container == "second"
