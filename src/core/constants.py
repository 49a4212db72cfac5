"""Core constants used across Vaultload modules.

This module centralizes non-domain-specific constants.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

VAULT_FILE_NAME = "vault.json"
CATALOG_FILE_NAME = "catalog.json"
BATCHES_DIR_NAME = "batches"
BATCH_FILE_SUFFIX = ".arrow"
DEFAULT_FOREIGN_BATCH_SIZE = 1024
DEFAULT_SAMPLE_ROWS = 5
DEFAULT_CSV_DELIMITER = ","
HASH_ALGORITHM = "sha256"
CREDENTIAL_SALT_BYTES = 16
CREDENTIAL_ITERATIONS = 200_000
PASSWORD_ENV_VAR = "VAULTLOAD_PASSWORD"
SUPPORTED_SOURCE_FORMATS = ("csv", "json", "blob", "parquet", "orc", "arrow")
FOREIGN_SOURCE_FORMATS = ("parquet", "orc", "arrow")
STAGE_SOURCE_READ = "source read"
STAGE_COERCION = "coercion"
STAGE_WRITE = "write"
