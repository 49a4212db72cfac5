"""CLI commands for creating and inspecting vaults."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import Any

from cli.write_command import resolve_credential
from core.schema import load_schema_file
from store.vault_sdk import VaultClient


def add_init_command(subparsers: Any) -> None:
    """Register init subcommand."""
    parser = subparsers.add_parser("init", help="Create an empty vault from a schema file")
    parser.add_argument("vault", help="Vault directory to create")
    parser.add_argument("--schema", required=True, help="JSON schema document")
    parser.add_argument("--password", "-p", help="Vault password")


def add_schema_command(subparsers: Any) -> None:
    """Register schema subcommand."""
    parser = subparsers.add_parser("schema", help="Print the vault schema as JSON")
    parser.add_argument("vault", help="Vault directory")


def run_init_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Create a vault and print its path."""
    schema = load_schema_file(Path(args.schema).expanduser())
    vault = client.create_vault(args.vault, schema, resolve_credential(args.password))
    print(f"Created vault at {vault.root} with {len(schema.fields)} fields")
    return 0


def run_schema_command(client: VaultClient, args: argparse.Namespace) -> int:
    """Print the vault schema document."""
    schema = client.open_vault(args.vault).current_schema()
    print(json.dumps(schema.to_payload(), indent=2))
    return 0
