"""Vault storage layer.

This module persists schema-conformant batches under a vault
directory and exposes the SDK client used by the CLI.
"""
