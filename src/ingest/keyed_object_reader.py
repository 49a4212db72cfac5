"""Keyed JSON object source.

This module reads either a top-level JSON array of objects or a
stream of concatenated (newline-delimited) objects, then coerces
each object against the vault schema by field name.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pyarrow as pa

from core.errors import VaultFormatError, VaultIOError
from core.schema import SCALAR_KINDS, TableSchema
from core.types import SourcePosition
from ingest.batch_assembly import assemble_batch, create_column_builders
from ingest.value_coercion import coerce_dynamic_value

_DECODER = json.JSONDecoder()


def load_keyed_object_batch(source_path: Path, schema: TableSchema) -> pa.RecordBatch:
    """Load JSON objects into one schema-conformant batch.

    Args:
        source_path: JSON or newline-delimited JSON file.
        schema: Target schema.

    Returns:
        Record batch with one row per object.

    Raises:
        VaultIOError: If the file cannot be read.
        VaultFormatError: If neither JSON layout decodes.
        VaultSchemaError: For unsupported field types or missing values.
        VaultTypeError: For values that cannot be coerced.
    """
    builders = create_column_builders(schema, SCALAR_KINDS)
    text = _read_text(source_path)
    records = decode_keyed_objects(text, str(source_path))
    for row_number, record in enumerate(records, 1):
        for builder in builders:
            position = SourcePosition(row_number, builder.field.name)
            builder.append(coerce_dynamic_value(record.get(builder.field.name), builder.field, position))
    return assemble_batch(schema, builders)


def decode_keyed_objects(text: str, source_name: str) -> list[dict[str, Any]]:
    """Decode keyed objects, probing the array layout first.

    Args:
        text: Full document text.
        source_name: Source label for error messages.

    Returns:
        Objects in document order.

    Raises:
        VaultFormatError: If the stream layout fails to decode as well.
    """
    records = _probe_object_array(text)
    if records is not None:
        return records
    return _decode_object_stream(text, source_name)


def _probe_object_array(text: str) -> list[dict[str, Any]] | None:
    """Return the objects of a top-level array, or ``None`` if not that layout."""
    try:
        payload = json.loads(text)
    except ValueError:
        return None
    if isinstance(payload, list) and all(isinstance(item, dict) for item in payload):
        return payload
    return None


def _decode_object_stream(text: str, source_name: str) -> list[dict[str, Any]]:
    """Decode a sequence of whitespace-separated JSON objects from the start."""
    records: list[dict[str, Any]] = []
    index = _skip_whitespace(text, 0)
    while index < len(text):
        try:
            payload, index = _DECODER.raw_decode(text, index)
        except json.JSONDecodeError as error:
            raise VaultFormatError(
                f"Failed to decode JSON record at {source_name}:{error.lineno}:{error.colno}: "
                f"{error.msg}. Provide an array of objects or one object per line."
            ) from error
        except ValueError as error:
            raise VaultFormatError(
                f"Failed to decode JSON record {len(records) + 1} in {source_name}: {error}."
            ) from error
        if not isinstance(payload, dict):
            raise VaultFormatError(
                f"Invalid JSON record {len(records) + 1} in {source_name}: "
                f"expected an object, got {type(payload).__name__}."
            )
        records.append(payload)
        index = _skip_whitespace(text, index)
    return records


def _skip_whitespace(text: str, index: int) -> int:
    while index < len(text) and text[index] in " \t\r\n":
        index += 1
    return index


def _read_text(source_path: Path) -> str:
    try:
        return source_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as error:
        raise VaultFormatError(
            f"Failed to decode {source_path} as UTF-8 at byte {error.start}."
        ) from error
    except OSError as error:
        raise VaultIOError(f"Failed to read source file {source_path}: {error}.") from error
