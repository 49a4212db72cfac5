"""Vault metadata persistence helpers.

This module isolates JSON IO for the vault descriptor and batch
catalog, plus credential digests. It keeps the vault store focused
on write flow.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, cast

from core.constants import (
    BATCH_FILE_SUFFIX,
    CREDENTIAL_ITERATIONS,
    CREDENTIAL_SALT_BYTES,
    HASH_ALGORITHM,
)
from core.errors import VaultStoreError


@dataclass(frozen=True)
class CredentialDigest:
    """Salted credential digest stored in the vault descriptor."""

    salt: str
    iterations: int
    digest: str

    @classmethod
    def create(cls, credential: str) -> "CredentialDigest":
        salt = os.urandom(CREDENTIAL_SALT_BYTES).hex()
        return cls(
            salt=salt,
            iterations=CREDENTIAL_ITERATIONS,
            digest=_derive(credential, salt, CREDENTIAL_ITERATIONS),
        )

    def matches(self, credential: str) -> bool:
        return hmac.compare_digest(self.digest, _derive(credential, self.salt, self.iterations))

    def to_payload(self) -> dict[str, Any]:
        return {
            "algorithm": f"pbkdf2_{HASH_ALGORITHM}",
            "salt": self.salt,
            "iterations": self.iterations,
            "digest": self.digest,
        }

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "CredentialDigest":
        return cls(
            salt=str(payload["salt"]),
            iterations=int(payload["iterations"]),
            digest=str(payload["digest"]),
        )


def build_batch_file_name(batch_index: int) -> str:
    """Return the zero-padded file name for a batch ordinal."""
    return f"{batch_index:06d}{BATCH_FILE_SUFFIX}"


def new_catalog() -> dict[str, Any]:
    return {"total_rows": 0, "batches": []}


def append_catalog_entry(catalog: dict[str, Any], file_name: str, row_count: int) -> dict[str, Any]:
    """Return a catalog with one more batch entry.

    Args:
        catalog: Current catalog payload.
        file_name: Batch file name relative to the batches directory.
        row_count: Rows in the batch.

    Returns:
        Updated catalog payload.
    """
    batches = list(cast(list[dict[str, Any]], catalog.get("batches", [])))
    batches.append(
        {
            "file": file_name,
            "rows": row_count,
            "written_at": datetime.now(timezone.utc).isoformat(),
        }
    )
    return {"total_rows": int(catalog.get("total_rows", 0)) + row_count, "batches": batches}


def write_json_document(document_path: Path, payload: dict[str, Any]) -> None:
    """Atomically replace a JSON document.

    Raises:
        VaultStoreError: If the write fails.
    """
    staging_path = document_path.with_suffix(document_path.suffix + ".tmp")
    try:
        staging_path.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        os.replace(staging_path, document_path)
    except OSError as error:
        raise VaultStoreError(
            f"Failed to write {document_path}: {error}. "
            "Check write permissions and available disk space."
        ) from error


def read_json_document(document_path: Path, label: str) -> dict[str, Any]:
    """Read and validate a JSON object document.

    Args:
        document_path: JSON file path.
        label: Human-readable document name for errors.

    Returns:
        Parsed object.

    Raises:
        VaultStoreError: If the document is missing or invalid.
    """
    if not document_path.exists():
        raise VaultStoreError(
            f"Vault {label} not found at {document_path}. "
            "Create the vault with the init command first."
        )
    try:
        payload = json.loads(document_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as error:
        raise VaultStoreError(
            f"Failed to parse vault {label} at {document_path}: {error.msg}."
        ) from error
    except OSError as error:
        raise VaultStoreError(f"Failed to read vault {label} at {document_path}: {error}.") from error
    if not isinstance(payload, dict):
        raise VaultStoreError(
            f"Failed to parse vault {label} at {document_path}: "
            "expected JSON object at top level."
        )
    return payload


def _derive(credential: str, salt: str, iterations: int) -> str:
    return hashlib.pbkdf2_hmac(
        HASH_ALGORITHM,
        credential.encode("utf-8"),
        bytes.fromhex(salt),
        iterations,
    ).hex()
