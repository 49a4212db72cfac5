"""Vaultload CLI entry points.
This module exposes vault creation, inspection, and write commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from cli.init_command import (
    add_init_command,
    add_schema_command,
    run_init_command,
    run_schema_command,
)
from cli.write_command import add_write_command, run_write_command
from core.errors import VaultError
from store.vault_sdk import VaultClient


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="vaultload", description="Vaultload CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)
    add_init_command(subparsers)
    add_schema_command(subparsers)
    add_write_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the Vaultload CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        client = VaultClient()
        if args.command == "init":
            return run_init_command(client, args)
        if args.command == "schema":
            return run_schema_command(client, args)
        if args.command == "write":
            return run_write_command(client, args)
    except VaultError as error:
        stage = f" during {error.stage}" if error.stage else ""
        print(f"vaultload {args.command} failed{stage}: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2
