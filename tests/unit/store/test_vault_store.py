"""Unit tests for the local vault store."""

from __future__ import annotations

import json
from pathlib import Path

import pyarrow as pa
import pytest

from core.errors import VaultCredentialError, VaultStoreError
from core.schema import schema_of
from store.vault_store import LocalVault

_SCHEMA = schema_of([("id", "int64", False), ("name", "utf8", True)])


def _batch(ids: list[int]) -> pa.RecordBatch:
    return pa.RecordBatch.from_pydict(
        {"id": ids, "name": [f"n{value}" for value in ids]},
        schema=_SCHEMA.to_arrow(),
    )


def test_create_writes_descriptor_and_catalog(tmp_path: Path) -> None:
    """New vaults persist their descriptor and an empty catalog."""
    vault = LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")

    assert (vault.root / "vault.json").exists() and vault.row_count() == 0


def test_descriptor_does_not_store_plain_credential(tmp_path: Path) -> None:
    """Only a salted digest of the credential is stored."""
    LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")

    descriptor = (tmp_path / "vault" / "vault.json").read_text(encoding="utf-8")

    assert "secret" not in descriptor


def test_reopened_vault_keeps_schema(tmp_path: Path) -> None:
    """Schemas survive a reopen."""
    LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")

    reopened = LocalVault(tmp_path / "vault")

    assert reopened.current_schema() == _SCHEMA


def test_create_rejects_existing_vault(tmp_path: Path) -> None:
    """Creating over an existing vault fails."""
    LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")

    with pytest.raises(VaultStoreError, match="already exists"):
        LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")


def test_create_rejects_empty_credential(tmp_path: Path) -> None:
    """Vaults require a non-empty credential."""
    with pytest.raises(VaultCredentialError):
        LocalVault.create(tmp_path / "vault", _SCHEMA, "")


def test_open_missing_vault_raises_store_error(tmp_path: Path) -> None:
    """Opening a directory without a descriptor fails."""
    with pytest.raises(VaultStoreError, match="init"):
        LocalVault(tmp_path / "missing")


def test_write_and_read_batches_in_order(tmp_path: Path) -> None:
    """Batches are read back in write order."""
    vault = LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")
    vault.write(_batch([1, 2]), "secret")
    vault.write(_batch([3]), "secret")

    ids = [value for batch in vault.read_batches("secret") for value in batch.column(0).to_pylist()]

    assert ids == [1, 2, 3]


def test_write_updates_catalog(tmp_path: Path) -> None:
    """Catalog totals track written rows and batch files."""
    vault = LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")
    vault.write(_batch([1, 2]), "secret")

    catalog = json.loads((vault.root / "catalog.json").read_text(encoding="utf-8"))

    assert catalog["total_rows"] == 2 and catalog["batches"][0]["file"] == "000001.arrow"


def test_write_rejects_wrong_credential(tmp_path: Path) -> None:
    """Writes with a wrong credential fail and persist nothing."""
    vault = LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")

    with pytest.raises(VaultCredentialError):
        vault.write(_batch([1]), "wrong")

    assert vault.row_count() == 0


def test_write_rejects_schema_mismatch(tmp_path: Path) -> None:
    """Batches must carry the vault's arrow schema."""
    vault = LocalVault.create(tmp_path / "vault", _SCHEMA, "secret")
    foreign = pa.RecordBatch.from_pydict({"id": pa.array([1], type=pa.int32())})

    with pytest.raises(VaultStoreError, match="does not match"):
        vault.write(foreign, "secret")
