"""Delimited text row source.

This module reads header-prefixed delimited files and coerces every
data row against the vault schema.
"""

from __future__ import annotations

import csv
from pathlib import Path

import pyarrow as pa

from core.constants import DEFAULT_CSV_DELIMITER
from core.errors import VaultFormatError, VaultIOError
from core.schema import SCALAR_KINDS, TableSchema
from core.types import SourcePosition
from ingest.batch_assembly import assemble_batch, create_column_builders
from ingest.value_coercion import coerce_text_value


def load_delimited_batch(
    source_path: Path,
    schema: TableSchema,
    delimiter: str = DEFAULT_CSV_DELIMITER,
) -> pa.RecordBatch:
    """Load a delimited file into one schema-conformant batch.

    The first row is a header and is skipped. Row numbers in errors
    count the header as row 1.

    Args:
        source_path: Delimited text file.
        schema: Target schema.
        delimiter: Field delimiter character.

    Returns:
        Record batch with one row per data row.

    Raises:
        VaultIOError: If the file cannot be opened or read.
        VaultFormatError: If the header is missing or a row has the
            wrong number of fields.
        VaultSchemaError: For unsupported field types or missing values.
        VaultTypeError: For unparsable literals.
    """
    builders = create_column_builders(schema, SCALAR_KINDS)
    expected_fields = len(schema.fields)
    try:
        with source_path.open("r", encoding="utf-8", newline="") as handle:
            reader = csv.reader(handle, delimiter=delimiter)
            if next(reader, None) is None:
                raise VaultFormatError(
                    f"Failed to read header row from {source_path}: file is empty."
                )
            for row_number, row in enumerate(reader, 2):
                if not row:
                    continue
                if len(row) != expected_fields:
                    raise VaultFormatError(
                        f"{source_path}: row {row_number}: "
                        f"expected {expected_fields}, got {len(row)} fields."
                    )
                for builder, raw in zip(builders, row):
                    position = SourcePosition(row_number, builder.field.name)
                    builder.append(coerce_text_value(raw, builder.field, position))
    except csv.Error as error:
        raise VaultFormatError(f"Failed to parse {source_path}: {error}.") from error
    except UnicodeDecodeError as error:
        raise VaultFormatError(
            f"Failed to decode {source_path} as UTF-8 at byte {error.start}."
        ) from error
    except OSError as error:
        raise VaultIOError(f"Failed to read source file {source_path}: {error}.") from error
    return assemble_batch(schema, builders)
