"""Local vault store.

This module persists record batches as Arrow IPC files under a vault
directory. A vault is both the schema provider and the batch sink
for write runs; writes require the vault credential.
"""

from __future__ import annotations

from datetime import datetime, timezone
import os
from pathlib import Path
from typing import Any, cast

import pyarrow as pa
import pyarrow.ipc as ipc

from core.constants import BATCHES_DIR_NAME, CATALOG_FILE_NAME, VAULT_FILE_NAME
from core.errors import VaultCredentialError, VaultSchemaError, VaultStoreError
from core.logging_config import get_logger
from core.schema import TableSchema
from store.catalog_io import (
    CredentialDigest,
    append_catalog_entry,
    build_batch_file_name,
    new_catalog,
    read_json_document,
    write_json_document,
)

_LOGGER = get_logger(__name__)


class LocalVault:
    """Directory-backed vault.

    Layout::

        <root>/vault.json       schema and credential digest
        <root>/catalog.json     written batches and row totals
        <root>/batches/*.arrow  one IPC file per write
    """

    def __init__(self, root: Path) -> None:
        """Open an existing vault.

        Args:
            root: Vault directory.

        Raises:
            VaultStoreError: If the vault descriptor is missing or invalid.
        """
        self._root = root
        descriptor = read_json_document(root / VAULT_FILE_NAME, "descriptor")
        try:
            self._schema = TableSchema.from_payload(cast(dict[str, Any], descriptor["schema"]))
            self._credential = CredentialDigest.from_payload(
                cast(dict[str, Any], descriptor["credential"])
            )
        except (KeyError, TypeError, ValueError, VaultSchemaError) as error:
            raise VaultStoreError(
                f"Invalid vault descriptor at {root / VAULT_FILE_NAME}: {error}."
            ) from error

    @classmethod
    def create(cls, root: Path, schema: TableSchema, credential: str) -> "LocalVault":
        """Create a new empty vault.

        Raises:
            VaultStoreError: If a vault already exists or the directory
                cannot be written.
        """
        descriptor_path = root / VAULT_FILE_NAME
        if descriptor_path.exists():
            raise VaultStoreError(f"Vault already exists at {root}. Choose another path.")
        if not credential:
            raise VaultCredentialError("Vault credential must not be empty.")
        try:
            (root / BATCHES_DIR_NAME).mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise VaultStoreError(f"Failed to create vault directory {root}: {error}.") from error
        write_json_document(
            descriptor_path,
            {
                "created_at": datetime.now(timezone.utc).isoformat(),
                "schema": schema.to_payload(),
                "credential": CredentialDigest.create(credential).to_payload(),
            },
        )
        write_json_document(root / CATALOG_FILE_NAME, new_catalog())
        _LOGGER.info("vault_created", root=str(root), field_count=len(schema.fields))
        return cls(root)

    @property
    def root(self) -> Path:
        return self._root

    def current_schema(self) -> TableSchema:
        return self._schema

    def verify_credential(self, credential: str) -> None:
        """Check a credential against the stored digest.

        Raises:
            VaultCredentialError: If the credential does not match.
        """
        if not self._credential.matches(credential):
            raise VaultCredentialError(f"Invalid credential for vault at {self._root}.")

    def write(self, batch: pa.RecordBatch, credential: str) -> int:
        """Persist one batch.

        Args:
            batch: Schema-conformant batch.
            credential: Vault credential.

        Returns:
            Rows written.

        Raises:
            VaultCredentialError: If the credential does not match.
            VaultStoreError: If the batch schema differs or IO fails.
        """
        self.verify_credential(credential)
        arrow_schema = self._schema.to_arrow()
        if not batch.schema.equals(arrow_schema):
            raise VaultStoreError(
                f"Batch schema does not match vault schema at {self._root}: {batch.schema}."
            )
        catalog = read_json_document(self._root / CATALOG_FILE_NAME, "catalog")
        file_name = build_batch_file_name(len(catalog.get("batches", [])) + 1)
        _write_ipc_file(self._root / BATCHES_DIR_NAME / file_name, batch)
        write_json_document(
            self._root / CATALOG_FILE_NAME,
            append_catalog_entry(catalog, file_name, batch.num_rows),
        )
        _LOGGER.info("batch_written", root=str(self._root), file=file_name, rows=batch.num_rows)
        return batch.num_rows

    def read_batches(self, credential: str) -> list[pa.RecordBatch]:
        """Load all written batches in write order.

        Raises:
            VaultCredentialError: If the credential does not match.
            VaultStoreError: If a batch file cannot be read.
        """
        self.verify_credential(credential)
        catalog = read_json_document(self._root / CATALOG_FILE_NAME, "catalog")
        batches: list[pa.RecordBatch] = []
        for entry in cast(list[dict[str, Any]], catalog.get("batches", [])):
            batches.extend(_read_ipc_file(self._root / BATCHES_DIR_NAME / str(entry["file"])))
        return batches

    def row_count(self) -> int:
        catalog = read_json_document(self._root / CATALOG_FILE_NAME, "catalog")
        return int(catalog.get("total_rows", 0))


def _write_ipc_file(batch_path: Path, batch: pa.RecordBatch) -> None:
    staging_path = batch_path.with_suffix(batch_path.suffix + ".tmp")
    try:
        with pa.OSFile(str(staging_path), "wb") as sink:
            with ipc.new_file(sink, batch.schema) as writer:
                writer.write_batch(batch)
        os.replace(staging_path, batch_path)
    except OSError as error:
        raise VaultStoreError(f"Failed to write batch file {batch_path}: {error}.") from error


def _read_ipc_file(batch_path: Path) -> list[pa.RecordBatch]:
    try:
        with pa.OSFile(str(batch_path), "rb") as source:
            reader = ipc.open_file(source)
            return [reader.get_batch(index) for index in range(reader.num_record_batches)]
    except (OSError, pa.ArrowInvalid) as error:
        raise VaultStoreError(f"Failed to read batch file {batch_path}: {error}.") from error
