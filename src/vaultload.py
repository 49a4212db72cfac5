"""Public SDK surface for Vaultload.

This module provides a stable import path for library users.
It re-exports the client, schema model, and core ingest operations.
"""

from __future__ import annotations

from core.config import VaultConfig
from core.schema import FieldSpec, LogicalType, TableSchema, TimeUnit, TypeKind, load_schema_file
from core.types import IngestRequest, WriteResult
from ingest.batch_assembly import assemble_batch, concatenate_batches, create_column_builders
from ingest.blob_reader import load_blob_batch
from ingest.delimited_reader import load_delimited_batch
from ingest.foreign_reader import load_foreign_batch, read_foreign_batches
from ingest.foreign_schema import coerce_to_schema
from ingest.keyed_object_reader import load_keyed_object_batch
from store.vault_sdk import VaultClient
from store.vault_store import LocalVault

__all__ = [
    "FieldSpec",
    "IngestRequest",
    "LocalVault",
    "LogicalType",
    "TableSchema",
    "TimeUnit",
    "TypeKind",
    "VaultClient",
    "VaultConfig",
    "WriteResult",
    "assemble_batch",
    "coerce_to_schema",
    "concatenate_batches",
    "create_column_builders",
    "load_blob_batch",
    "load_delimited_batch",
    "load_foreign_batch",
    "load_keyed_object_batch",
    "load_schema_file",
    "read_foreign_batches",
]
