"""Vaultload exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each ingest stage raises a specific error type for debuggability.
"""

from __future__ import annotations


class VaultError(Exception):
    """Base exception for all Vaultload failures.

    Attributes:
        stage: Ingest stage that failed, set by the ingest runner.
    """

    stage: str | None = None


class VaultConfigError(VaultError):
    """Raised for invalid runtime configuration or CLI arguments."""


class VaultSchemaError(VaultError):
    """Raised for missing required fields and unsupported schema types."""


class VaultFormatError(VaultError):
    """Raised for malformed input containers."""


class VaultTypeError(VaultError):
    """Raised when a value cannot be coerced to its field type."""


class VaultIOError(VaultError):
    """Raised when a source resource cannot be opened or read."""


class VaultStoreError(VaultError):
    """Raised for vault storage failures."""


class VaultCredentialError(VaultStoreError):
    """Raised when a vault credential does not match."""


class VaultInvariantError(VaultError):
    """Raised when an internal ingest invariant is violated."""


class VaultEmptySourceError(VaultFormatError, VaultSchemaError):
    """Raised when a foreign source yields no batches."""


class VaultDependencyError(VaultError):
    """Raised when an optional runtime dependency is missing."""
