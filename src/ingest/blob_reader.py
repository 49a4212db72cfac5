"""Named blob source.

This module loads whole files into a single vault row, one file per
mapped field.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Mapping

import pyarrow as pa

from core.errors import VaultIOError
from core.logging_config import get_logger
from core.schema import TableSchema
from core.types import SourcePosition
from ingest.batch_assembly import assemble_batch, create_column_builders
from ingest.value_coercion import coerce_blob_value

_LOGGER = get_logger(__name__)


def parse_blob_arguments(arguments: Iterable[str]) -> dict[str, Path]:
    """Parse ``field=path`` arguments into a blob mapping.

    Entries without ``=`` are skipped with a warning.

    Args:
        arguments: Raw CLI values.

    Returns:
        Field name to path mapping; later entries win.
    """
    blob_paths: dict[str, Path] = {}
    for argument in arguments:
        field_name, separator, raw_path = argument.partition("=")
        if not separator:
            _LOGGER.warning("blob_argument_skipped", argument=argument)
            continue
        blob_paths[field_name] = Path(raw_path).expanduser()
    return blob_paths


def load_blob_batch(
    blob_paths: Mapping[str, Path],
    schema: TableSchema,
    strict: bool = False,
) -> pa.RecordBatch:
    """Load mapped files into a one-row batch.

    Fields absent from the mapping become null. Unless ``strict`` is
    set, this happens even for non-nullable fields.

    Args:
        blob_paths: Field name to file path mapping.
        schema: Target schema.
        strict: Reject absent mappings for non-nullable fields.

    Returns:
        One-row record batch.

    Raises:
        VaultIOError: If a mapped file cannot be read.
        VaultTypeError: If a mapped field is neither binary nor string.
        VaultSchemaError: In strict mode, for unmapped required fields.
    """
    unknown_fields = sorted(set(blob_paths) - set(schema.names))
    if unknown_fields:
        _LOGGER.warning("blob_fields_ignored", fields=unknown_fields)
    builders = create_column_builders(schema)
    for builder in builders:
        field_spec = builder.field
        blob_path = blob_paths.get(field_spec.name)
        if blob_path is None:
            if not field_spec.nullable:
                _LOGGER.warning("blob_field_missing", field=field_spec.name, strict=strict)
            builder.append_null(enforce_nullability=strict)
            continue
        data = _read_blob(field_spec.name, Path(blob_path))
        builder.append_value(coerce_blob_value(data, field_spec, SourcePosition(1, field_spec.name)))
    return assemble_batch(schema, builders)


def _read_blob(field_name: str, blob_path: Path) -> bytes:
    try:
        return blob_path.read_bytes()
    except OSError as error:
        raise VaultIOError(
            f"Failed to read blob for field '{field_name}' at {blob_path}: {error}."
        ) from error
