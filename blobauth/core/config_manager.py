"""
Configuration management for blobauth.

Handles loading, validation, and access to storage credential settings,
and resolves them to a single Credential.
"""

import base64
import binascii
import os
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional
from enum import Enum

import yaml
from pydantic import BaseModel, Field, field_validator, ValidationError, ConfigDict

from blobauth.auth.credentials import (
    AccountKey,
    Credential,
    FileAssertionSource,
    ManagedIdentity,
    ServicePrincipal,
)
from blobauth.auth.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "BLOBAUTH_"

DEFAULT_AUTH_URL = "https://login.microsoftonline.com"

SECRET_FIELDS = (
    "storage_account_key",
    "storage_account_connection_string",
    "storage_client_secret",
)


class LogLevel(str, Enum):
    """Valid log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: LogLevel = LogLevel.INFO
    format: str = "text"
    file: Optional[str] = None
    rotation_size: str = "10MB"
    rotation_count: int = 5
    module_levels: Optional[Dict[str, str]] = Field(
        default=None,
        description="Per-module log levels, e.g., {'blobauth.auth.oauth': 'DEBUG'}"
    )

    model_config = ConfigDict(use_enum_values=True)


def parse_connection_string(connection_string: Optional[str]) -> Dict[str, str]:
    """
    Parse a storage connection string to a key/value map.

    Examples:
        "Key=value" -> {"Key": "value"}
        "Key1=hello;Key2=world;" -> {"Key1": "hello", "Key2": "world"}
        None -> {}
    """
    if not connection_string:
        return {}

    result: Dict[str, str] = {}
    for part in connection_string.split(";"):
        if not part:
            continue
        key, sep, value = part.partition("=")
        if not sep:
            raise ConfigurationError(f"Malformed connection string segment: {key!r}")
        result[key] = value
    return result


def decode_account_key(key: str) -> bytes:
    """Decode a base64 account key, raising ConfigurationError if malformed."""
    try:
        return base64.b64decode(key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError("Storage account key is not valid base64") from e


class BlobAuthConfig(BaseModel):
    """Storage credential and endpoint configuration."""

    storage_account_name: Optional[str] = None
    storage_account_key: Optional[str] = Field(
        default=None,
        description="Base64 encoded account key, as shown in the Azure portal"
    )
    storage_account_connection_string: Optional[str] = None

    storage_client_id: Optional[str] = None
    storage_client_secret: Optional[str] = None
    storage_tenant_id: Optional[str] = None
    storage_identity_token: Optional[str] = Field(
        default=None,
        description="Path to the federated identity token file"
    )

    api_url: Optional[str] = None
    auth_url: str = DEFAULT_AUTH_URL
    default_container: Optional[str] = None

    token_expiry_margin_seconds: int = Field(default=10, ge=0)
    strict_token_errors: bool = False
    http_timeout: float = Field(default=30.0, gt=0.0)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("storage_account_key")
    @classmethod
    def validate_account_key(cls, v: Optional[str]) -> Optional[str]:
        """Account keys must be base64."""
        if v is not None:
            try:
                base64.b64decode(v, validate=True)
            except (binascii.Error, ValueError):
                raise ValueError("storage_account_key must be base64 encoded")
        return v

    @field_validator("storage_account_connection_string")
    @classmethod
    def validate_connection_string(cls, v: Optional[str]) -> Optional[str]:
        """Connection strings must parse and carry a base64 AccountKey if any."""
        if v is not None:
            try:
                values = parse_connection_string(v)
                if "AccountKey" in values:
                    decode_account_key(values["AccountKey"])
            except ConfigurationError as e:
                raise ValueError(e.message)
        return v

    def connection_string_value(self, key: str) -> Optional[str]:
        return parse_connection_string(self.storage_account_connection_string).get(key)

    def account_name(self) -> str:
        """Storage account name, from settings or the connection string."""
        name = self.storage_account_name or self.connection_string_value("AccountName")
        if not name:
            raise ConfigurationError("Missing storage account name")
        return name

    def api_base_url(self) -> str:
        """
        Blob endpoint URL.

        Defaults to ``https://{name}.blob.core.windows.net``.
        """
        url = (
            self.api_url
            or self.connection_string_value("BlobEndpoint")
            or f"https://{self.account_name()}.blob.core.windows.net"
        )
        return url.rstrip("/")

    def container(self) -> str:
        if not self.default_container:
            raise ConfigurationError(
                "Must specify `container` because the default container was not provided."
            )
        return self.default_container

    def auth_method(self) -> Credential:
        """
        Resolve the active credential.

        Resolution order:
        1. Explicit storage account key
        2. Account key from the connection string
        3. Service principal (client id, client secret and tenant id)
        4. Managed identity (client id, tenant id and identity token file)

        Raises:
            ConfigurationError: If credentials are missing or partially configured
        """
        if self.storage_account_key:
            return AccountKey(self.account_name(), decode_account_key(self.storage_account_key))

        conn_key = self.connection_string_value("AccountKey")
        if conn_key:
            return AccountKey(self.account_name(), decode_account_key(conn_key))

        if self.storage_client_id and self.storage_client_secret and self.storage_tenant_id:
            return ServicePrincipal(
                client_id=self.storage_client_id,
                client_secret=self.storage_client_secret,
                tenant_id=self.storage_tenant_id,
            )

        identity_settings = {
            "storage_client_id": self.storage_client_id,
            "storage_tenant_id": self.storage_tenant_id,
            "storage_identity_token": self.storage_identity_token,
        }
        present = [k for k, v in identity_settings.items() if v]
        if len(present) == len(identity_settings):
            return ManagedIdentity(
                client_id=self.storage_client_id,
                tenant_id=self.storage_tenant_id,
                identity_token_source=FileAssertionSource(Path(self.storage_identity_token)),
            )

        if self.storage_client_secret:
            missing = [k for k in ("storage_client_id", "storage_tenant_id")
                       if not identity_settings[k]]
            raise ConfigurationError(
                f"Missing values for service principal: {', '.join(missing)}"
            )

        if present:
            missing = [k for k, v in identity_settings.items() if not v]
            raise ConfigurationError(
                f"Missing values for managed identity: {', '.join(missing)}"
            )

        raise ConfigurationError(
            "Missing credentials settings. "
            "Either set storage account key with: `storage_account_key` or "
            "`storage_account_connection_string`. "
            "Or set service principal with: `storage_client_id`, "
            "`storage_client_secret` and `storage_tenant_id`. "
            "Or set managed identity with: `storage_client_id`, `storage_tenant_id` "
            "and `storage_identity_token`."
        )

    def redacted(self) -> Dict[str, Any]:
        """Configuration as a dict with secrets replaced."""
        config_dict = self.model_dump()
        for name in SECRET_FIELDS:
            if config_dict.get(name):
                config_dict[name] = "***REDACTED***"
        return config_dict


class ConfigManager:
    """
    Manages blobauth configuration loading and validation.

    Configuration precedence (highest to lowest):
    1. Explicit overrides
    2. Environment variables (BLOBAUTH_*)
    3. Configuration file (YAML/JSON)
    4. Defaults
    """

    # Environment variable suffix -> (config key, converter)
    ENV_SETTINGS = {
        "STORAGE_ACCOUNT_NAME": ("storage_account_name", str),
        "STORAGE_ACCOUNT_KEY": ("storage_account_key", str),
        "STORAGE_ACCOUNT_CONNECTION_STRING": ("storage_account_connection_string", str),
        "STORAGE_CLIENT_ID": ("storage_client_id", str),
        "STORAGE_CLIENT_SECRET": ("storage_client_secret", str),
        "STORAGE_TENANT_ID": ("storage_tenant_id", str),
        "STORAGE_IDENTITY_TOKEN": ("storage_identity_token", str),
        "API_URL": ("api_url", str),
        "AUTH_URL": ("auth_url", str),
        "DEFAULT_CONTAINER": ("default_container", str),
        "TOKEN_EXPIRY_MARGIN_SECONDS": ("token_expiry_margin_seconds", int),
        "STRICT_TOKEN_ERRORS": ("strict_token_errors", lambda v: v.lower() in ["true", "1", "yes"]),
        "HTTP_TIMEOUT": ("http_timeout", float),
    }

    def __init__(self):
        self._config: Optional[BlobAuthConfig] = None
        self._config_file: Optional[Path] = None

    def load(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None
    ) -> BlobAuthConfig:
        """
        Load and validate configuration from multiple sources.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Dictionary of explicit overrides (e.g. CLI arguments)

        Returns:
            Validated BlobAuthConfig instance

        Raises:
            ValidationError: If configuration is invalid
            FileNotFoundError: If specified config file doesn't exist
        """
        logger.info("Loading blobauth configuration")

        config_dict: Dict[str, Any] = {}

        if config_file:
            config_dict = self._load_from_file(config_file)
            self._config_file = Path(config_file)
            logger.info(f"Loaded configuration from file: {config_file}")

        env_config = self._load_from_env()
        config_dict = self._merge_configs(config_dict, env_config)
        if env_config:
            logger.info(f"Applied {len(env_config)} environment variable overrides")

        if overrides:
            overrides = {k: v for k, v in overrides.items() if v is not None}
            config_dict = self._merge_configs(config_dict, overrides)
            logger.info(f"Applied {len(overrides)} explicit overrides")

        try:
            self._config = BlobAuthConfig(**config_dict)
            logger.info("Configuration validated successfully")
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
        config: Dict[str, Any] = {}

        for suffix, (key, convert) in self.ENV_SETTINGS.items():
            if value := os.getenv(ENV_PREFIX + suffix):
                config[key] = convert(value)

        if log_level := os.getenv(ENV_PREFIX + "LOG_LEVEL"):
            config.setdefault("logging", {})["level"] = log_level.upper()
        if log_file := os.getenv(ENV_PREFIX + "LOG_FILE"):
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
        """Log the loaded configuration (with sensitive data redacted)."""
        if not self._config:
            return

        logger.debug(f"Active configuration: {json.dumps(self._config.redacted(), indent=2)}")

    def get_config(self) -> BlobAuthConfig:
        """
        Get the loaded configuration.

        Raises:
            RuntimeError: If configuration hasn't been loaded
        """
        if self._config is None:
            raise RuntimeError("Configuration not loaded. Call load() first.")
        return self._config

    def reload(self) -> BlobAuthConfig:
        """Reload configuration from the same sources."""
        config_file = str(self._config_file) if self._config_file else None
        return self.load(config_file=config_file)
