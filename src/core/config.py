"""Runtime configuration model for Vaultload.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_CSV_DELIMITER,
    DEFAULT_FOREIGN_BATCH_SIZE,
    DEFAULT_SAMPLE_ROWS,
)
from core.errors import VaultConfigError

_TRUE_VALUES = ("1", "true", "yes", "on")
_FALSE_VALUES = ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class VaultConfig:
    """Validated runtime configuration.

    Attributes:
        foreign_batch_size: Rows per batch when reading foreign columnar files.
        sample_rows: Number of rows produced by the sample source.
        csv_delimiter: Single-character delimiter for textual rows.
        strict_blobs: Reject absent blob mappings for non-nullable fields.
    """

    foreign_batch_size: int = DEFAULT_FOREIGN_BATCH_SIZE
    sample_rows: int = DEFAULT_SAMPLE_ROWS
    csv_delimiter: str = DEFAULT_CSV_DELIMITER
    strict_blobs: bool = False

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            VaultConfigError: If environment values are invalid.
        """
        return cls(
            foreign_batch_size=_parse_positive_int(
                "VAULTLOAD_FOREIGN_BATCH_SIZE",
                os.getenv("VAULTLOAD_FOREIGN_BATCH_SIZE", str(DEFAULT_FOREIGN_BATCH_SIZE)),
            ),
            sample_rows=_parse_positive_int(
                "VAULTLOAD_SAMPLE_ROWS",
                os.getenv("VAULTLOAD_SAMPLE_ROWS", str(DEFAULT_SAMPLE_ROWS)),
            ),
            csv_delimiter=_parse_delimiter(
                os.getenv("VAULTLOAD_CSV_DELIMITER", DEFAULT_CSV_DELIMITER)
            ),
            strict_blobs=_parse_bool(
                "VAULTLOAD_STRICT_BLOBS",
                os.getenv("VAULTLOAD_STRICT_BLOBS", ""),
            ),
        )


def _parse_positive_int(name: str, raw_value: str) -> int:
    """Parse a positive integer environment value.

    Args:
        name: Environment variable name for error context.
        raw_value: Raw string from environment.

    Returns:
        Parsed integer.

    Raises:
        VaultConfigError: If value is not a positive integer.
    """
    try:
        value = int(raw_value)
    except ValueError as error:
        raise VaultConfigError(
            f"Invalid {name} value: expected integer, got '{raw_value}'. "
            f"Set {name} to a positive number."
        ) from error
    if value <= 0:
        raise VaultConfigError(
            f"Invalid {name} value: expected positive integer, got {value}."
        )
    return value


def _parse_delimiter(raw_value: str) -> str:
    """Validate the textual row delimiter."""
    if len(raw_value) != 1 or raw_value in ('"', "\n", "\r"):
        raise VaultConfigError(
            f"Invalid VAULTLOAD_CSV_DELIMITER value: '{raw_value}'. "
            "Use a single character other than quote or newline."
        )
    return raw_value


def _parse_bool(name: str, raw_value: str) -> bool:
    """Parse a boolean flag environment value.

    Raises:
        VaultConfigError: If value is not a recognized flag literal.
    """
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise VaultConfigError(
        f"Invalid {name} value: '{raw_value}'. Use one of {_TRUE_VALUES + _FALSE_VALUES[:-1]}."
    )
