"""Unit tests for CLI command handling."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cli.main import main
from tests.fixture_paths import fixture_path


def _init_vault(vault_path: Path) -> int:
    return main(
        [
            "init",
            str(vault_path),
            "--schema",
            str(fixture_path("people_schema.json")),
            "--password",
            "secret",
        ]
    )


def test_cli_init_creates_vault(tmp_path, capsys) -> None:
    """CLI init should report the created vault."""
    exit_code = _init_vault(tmp_path / "vault")
    output = capsys.readouterr().out

    assert exit_code == 0 and "with 5 fields" in output


def test_cli_schema_prints_fields(tmp_path, capsys) -> None:
    """CLI schema should print the stored schema as JSON."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()

    exit_code = main(["schema", str(tmp_path / "vault")])
    payload = json.loads(capsys.readouterr().out)

    assert exit_code == 0 and payload["fields"][0]["name"] == "id"


def test_cli_write_csv_reports_rows(tmp_path, capsys) -> None:
    """CLI write should print the number of rows written."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()

    exit_code = main(
        [
            "write",
            str(tmp_path / "vault"),
            "--input",
            str(fixture_path("people.csv")),
            "--format",
            "csv",
            "--password",
            "secret",
        ]
    )
    output = capsys.readouterr().out

    assert exit_code == 0 and "Successfully wrote 3 rows" in output


def test_cli_write_sample_uses_env_password(tmp_path, capsys, monkeypatch) -> None:
    """CLI write should fall back to the password environment variable."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()
    monkeypatch.setenv("VAULTLOAD_PASSWORD", "secret")

    exit_code = main(["write", str(tmp_path / "vault"), "--sample"])

    assert exit_code == 0 and "Successfully wrote 5 rows" in capsys.readouterr().out


def test_cli_write_failure_reports_stage(tmp_path, capsys) -> None:
    """CLI write failures should exit non-zero and name the stage."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()

    exit_code = main(
        [
            "write",
            str(tmp_path / "vault"),
            "--input",
            str(fixture_path("bad_row.csv")),
            "--format",
            "csv",
            "--password",
            "secret",
        ]
    )
    error_output = capsys.readouterr().err

    assert exit_code == 1 and "failed during source read" in error_output


def test_cli_write_wrong_password_fails_at_write(tmp_path, capsys) -> None:
    """CLI write should report credential failures at the write stage."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()

    exit_code = main(["write", str(tmp_path / "vault"), "--sample", "--password", "wrong"])

    assert exit_code == 1 and "failed during write" in capsys.readouterr().err


def test_cli_write_without_source_fails(tmp_path, capsys) -> None:
    """CLI write should require a source selection."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()

    exit_code = main(["write", str(tmp_path / "vault"), "--password", "secret"])

    assert exit_code == 1 and "--sample" in capsys.readouterr().err


def test_cli_rejects_unknown_format(tmp_path) -> None:
    """CLI should reject formats outside the supported set."""
    with pytest.raises(SystemExit):
        main(["write", str(tmp_path), "--input", "x", "--format", "xml"])


def test_cli_write_closed_prompt_reports_missing_password(tmp_path, capsys, monkeypatch) -> None:
    """CLI write should fail cleanly when the password prompt cannot read input."""
    _init_vault(tmp_path / "vault")
    capsys.readouterr()
    monkeypatch.delenv("VAULTLOAD_PASSWORD", raising=False)

    def _closed_prompt(prompt: str) -> str:
        raise EOFError

    monkeypatch.setattr("getpass.getpass", _closed_prompt)

    exit_code = main(["write", str(tmp_path / "vault"), "--sample"])

    assert exit_code == 1 and "--password" in capsys.readouterr().err
