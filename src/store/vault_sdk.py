"""Python SDK for vault operations.

This module exposes high-level APIs for creating vaults, inspecting
their schema, and running writes from any supported source.
"""

from __future__ import annotations

from pathlib import Path

import pyarrow as pa

from core.config import VaultConfig
from core.schema import TableSchema
from core.types import IngestRequest, WriteResult
from ingest.pipeline import run_write
from store.vault_store import LocalVault


class VaultClient:
    """Primary SDK entry point for vault workflows."""

    def __init__(self, config: VaultConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or VaultConfig.from_env()

    @property
    def config(self) -> VaultConfig:
        return self._config

    def create_vault(self, vault_path: str | Path, schema: TableSchema, credential: str) -> LocalVault:
        """Create an empty vault with a fixed schema.

        Raises:
            VaultStoreError: If the vault exists or cannot be created.
        """
        return LocalVault.create(Path(vault_path).expanduser(), schema, credential)

    def open_vault(self, vault_path: str | Path) -> LocalVault:
        """Open an existing vault.

        Raises:
            VaultStoreError: If the vault descriptor is missing or invalid.
        """
        return LocalVault(Path(vault_path).expanduser())

    def write(self, vault_path: str | Path, request: IngestRequest, credential: str) -> WriteResult:
        """Ingest one source into a vault.

        Args:
            vault_path: Target vault directory.
            request: Source selection.
            credential: Vault credential.

        Returns:
            Rows written.

        Raises:
            VaultError: Any failure, tagged with the failing stage.
        """
        vault = self.open_vault(vault_path)
        return run_write(request, vault, vault, credential, self._config)

    def read(self, vault_path: str | Path, credential: str) -> list[pa.RecordBatch]:
        """Load every batch written to a vault, in write order."""
        return self.open_vault(vault_path).read_batches(credential)
