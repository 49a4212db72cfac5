"""CLI command for writing a source into a vault."""

from __future__ import annotations

import argparse
import getpass
import os
from pathlib import Path
from typing import Any

from core.constants import PASSWORD_ENV_VAR, SUPPORTED_SOURCE_FORMATS
from core.errors import VaultConfigError
from core.types import IngestRequest
from ingest.blob_reader import parse_blob_arguments
from store.vault_sdk import VaultClient


def add_write_command(subparsers: Any) -> None:
    """Register write subcommand."""
    parser = subparsers.add_parser("write", help="Write data from a source into a vault")
    parser.add_argument("vault", help="Vault directory")
    parser.add_argument("--input", "-i", help="Input data file")
    parser.add_argument(
        "--format",
        "-f",
        choices=SUPPORTED_SOURCE_FORMATS,
        help="Input data format",
    )
    parser.add_argument("--password", "-p", help=f"Vault password (or set {PASSWORD_ENV_VAR})")
    parser.add_argument("--sample", action="store_true", help="Generate sample data")
    parser.add_argument(
        "--blob",
        action="append",
        default=[],
        help="Blob field mapping field=file; repeatable",
    )


def run_write_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Handle write command.

    Args:
        client: SDK client.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    request = build_ingest_request(args)
    credential = resolve_credential(args.password)
    result = client.write(args.vault, request, credential)
    print(f"Successfully wrote {result.rows_written} rows to {args.vault}")
    return 0


def build_ingest_request(args: argparse.Namespace) -> IngestRequest:
    """Select the write source from CLI flags.

    Raises:
        VaultConfigError: If no usable source was given.
    """
    if args.sample:
        return IngestRequest(source_format="sample")
    if args.format == "blob":
        return IngestRequest(source_format="blob", blob_paths=parse_blob_arguments(args.blob))
    if args.input and args.format:
        return IngestRequest(source_format=args.format, input_path=Path(args.input).expanduser())
    raise VaultConfigError(
        "Either --sample, --format blob with --blob, or --input with --format must be specified."
    )


def resolve_credential(password: str | None) -> str:
    """Return the vault password from flag, environment, or prompt.

    Raises:
        VaultConfigError: If the prompt cannot read a password.
    """
    if password:
        return password
    env_password = os.getenv(PASSWORD_ENV_VAR)
    if env_password:
        return env_password
    try:
        return getpass.getpass("Enter password: ")
    except (EOFError, KeyboardInterrupt) as error:
        raise VaultConfigError(
            f"No password was entered. Pass --password or set {PASSWORD_ENV_VAR}."
        ) from error
