"""
Configuration for Key Vault backed configuration providers.

This module provides:
- ``KeyVaultOptions``: the read-only inputs of one provider instance
- ``KeyVaultSettings``: deployment settings loaded from environment
  variables or YAML files, converted to options once a client exists
"""

from collections.abc import Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..assembler import default_name_encoder
from ..exceptions import ConfigurationError
from ..store import SecretStoreClient

CONFIGURATION_SECTION_PREFIX_DEFAULT = "secrets"
ERROR_RELOAD_TIMES_DEFAULT = 12
ERROR_RELOAD_DELAY_DEFAULT = 5.0


class KeyVaultOptions(BaseModel):
    """Options of a single Key Vault configuration provider.

    Selective loading is used when ``vault_secrets`` or ``vault_secret_map``
    is non-empty; otherwise every enabled secret in the vault is loaded.
    ``error_reload_times`` and ``error_reload_delay`` only feed the retry
    policy wrapped around loads; a pass never retries by itself.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    client: SecretStoreClient | None = Field(default=None, description="Secret store client")
    vault_secrets: list[str] = Field(
        default_factory=list, description="Secret names to load"
    )
    vault_secret_map: dict[str, str] = Field(
        default_factory=dict, description="Secret names to load, mapped to configuration keys"
    )
    name_encoder: Callable[[str], str] | None = Field(
        default=default_name_encoder, description="Secret name to configuration key encoder"
    )
    section_prefix: str | None = Field(
        default=CONFIGURATION_SECTION_PREFIX_DEFAULT, description="Configuration section prefix"
    )
    reload_interval: timedelta | None = Field(
        default=None, description="Delay between background reloads, None disables reloading"
    )
    error_reload_times: int = Field(
        default=ERROR_RELOAD_TIMES_DEFAULT, ge=1, description="Load attempts on remote errors"
    )
    error_reload_delay: float = Field(
        default=ERROR_RELOAD_DELAY_DEFAULT, ge=0, description="Seconds between load attempts"
    )

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid provider options: {e}", error_code="INVALID_OPTIONS"
            ) from e

    @field_validator("vault_secrets", "vault_secret_map", mode="before")
    @classmethod
    def none_as_empty(cls, v, info):
        if v is None:
            return {} if info.field_name == "vault_secret_map" else []
        return v

    @field_validator("reload_interval")
    @classmethod
    def validate_reload_interval(cls, v):
        if v is not None and v <= timedelta(0):
            raise ValueError("reload_interval must be positive")
        return v

    @property
    def selective(self) -> bool:
        return bool(self.vault_secrets or self.vault_secret_map)


class KeyVaultSettings(BaseSettings):
    """Deployment settings for a Key Vault configuration provider."""

    model_config = SettingsConfigDict(
        env_prefix="KEYVAULT_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    vault_url: str | None = Field(default=None, description="Key Vault URL")
    authority_host: str | None = Field(
        default=None, description="Azure Active Directory authority host"
    )
    vault_secrets: list[str] = Field(default_factory=list)
    vault_secret_map: dict[str, str] = Field(default_factory=dict)
    section_prefix: str | None = CONFIGURATION_SECTION_PREFIX_DEFAULT
    reload_interval_seconds: float | None = Field(default=None, gt=0)
    error_reload_times: int = Field(default=ERROR_RELOAD_TIMES_DEFAULT, ge=1)
    error_reload_delay: float = Field(default=ERROR_RELOAD_DELAY_DEFAULT, ge=0)

    @classmethod
    def from_env(cls, **overrides: Any) -> "KeyVaultSettings":
        """Load settings from ``KEYVAULT_*`` environment variables."""
        try:
            return cls(**overrides)
        except ValidationError as e:
            raise ConfigurationError(f"Environment configuration validation failed: {e}")

    @classmethod
    def from_yaml(cls, file_path: str | Path) -> "KeyVaultSettings":
        """Load settings from a YAML file."""
        try:
            with open(file_path) as f:
                data = yaml.safe_load(f) or {}
            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {file_path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML configuration: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed: {e}")

    @property
    def reload_interval(self) -> timedelta | None:
        if self.reload_interval_seconds is None:
            return None
        return timedelta(seconds=self.reload_interval_seconds)

    def to_options(
        self,
        client: SecretStoreClient,
        name_encoder: Callable[[str], str] = default_name_encoder,
    ) -> KeyVaultOptions:
        return KeyVaultOptions(
            client=client,
            vault_secrets=self.vault_secrets,
            vault_secret_map=self.vault_secret_map,
            name_encoder=name_encoder,
            section_prefix=self.section_prefix,
            reload_interval=self.reload_interval,
            error_reload_times=self.error_reload_times,
            error_reload_delay=self.error_reload_delay,
        )


__all__ = [
    "CONFIGURATION_SECTION_PREFIX_DEFAULT",
    "KeyVaultOptions",
    "KeyVaultSettings",
]
