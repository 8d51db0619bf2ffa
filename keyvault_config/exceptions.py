"""
Exceptions for Key Vault backed configuration.

This module defines the exception hierarchy used throughout the package,
providing clear error types for construction, remote access and lookup
failures.
"""

from typing import Any, Dict, Optional


class KeyVaultConfigError(Exception):
    """Base exception for all keyvault_config errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary representation."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "details": self.details,
        }


class ConfigurationError(KeyVaultConfigError):
    """Raised when required provider configuration is missing or invalid."""

    pass


class RemoteUnavailableError(KeyVaultConfigError):
    """Raised when the secret store could not be listed or read."""

    pass


class SecretNotFoundError(RemoteUnavailableError):
    """Raised when the secret store reports a secret as missing."""

    pass


class UnauthorizedError(RemoteUnavailableError):
    """Raised when the secret store rejects the credential."""

    pass


class KeyNotFoundError(KeyVaultConfigError, KeyError):
    """Raised when a configuration key is absent from the published snapshot."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Configuration key not found: {key}",
            error_code="KEY_NOT_FOUND",
            details={"key": key},
        )
        self.key = key


class ProviderDisposedError(KeyVaultConfigError):
    """Raised when a disposed provider is asked to load."""

    pass
