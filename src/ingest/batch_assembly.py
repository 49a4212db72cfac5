"""Batch assembly and concatenation.

This module turns finished column builders into one record batch
and merges same-schema batches column by column.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import pyarrow as pa

from core.errors import VaultInvariantError, VaultSchemaError
from core.schema import TableSchema, TypeKind
from ingest.column_builder import ALL_KINDS, ColumnBuilder, create_column_builder


def create_column_builders(
    schema: TableSchema,
    supported_kinds: Iterable[TypeKind] = ALL_KINDS,
) -> list[ColumnBuilder]:
    """Create one builder per schema field, in field order.

    Raises:
        VaultSchemaError: If any field type is unsupported by the source.
    """
    kinds = frozenset(supported_kinds)
    return [create_column_builder(field_spec, kinds) for field_spec in schema.fields]


def assemble_batch(schema: TableSchema, builders: Sequence[ColumnBuilder]) -> pa.RecordBatch:
    """Finalize builders into one record batch.

    Args:
        schema: Target schema.
        builders: One builder per field, in field order.

    Returns:
        Record batch whose row count is the shared column length.

    Raises:
        VaultInvariantError: If builders do not line up with the schema
            or columns differ in length.
    """
    if len(builders) != len(schema.fields):
        raise VaultInvariantError(
            f"Expected {len(schema.fields)} column builders, got {len(builders)}."
        )
    columns = [builder.finalize() for builder in builders]
    row_count = len(columns[0]) if columns else 0
    for field_spec, column in zip(schema.fields, columns):
        if len(column) != row_count:
            raise VaultInvariantError(
                f"Column '{field_spec.name}' has {len(column)} values, expected {row_count}."
            )
    return pa.RecordBatch.from_arrays(columns, schema=schema.to_arrow())


def concatenate_batches(schema: TableSchema, batches: Sequence[pa.RecordBatch]) -> pa.RecordBatch:
    """Append same-schema batches into one batch in input order.

    Args:
        schema: Target schema every batch already conforms to.
        batches: Non-empty batch sequence.

    Returns:
        Single batch with the summed row count.

    Raises:
        VaultSchemaError: If no batches are given or a batch schema differs.
    """
    if not batches:
        raise VaultSchemaError("Cannot concatenate an empty batch sequence.")
    arrow_schema = schema.to_arrow()
    for index, batch in enumerate(batches):
        if not batch.schema.equals(arrow_schema):
            raise VaultSchemaError(
                f"Batch {index} does not match the target schema: {batch.schema}. "
                "Coerce foreign batches before concatenation."
            )
    columns = [
        pa.concat_arrays([batch.column(position) for batch in batches])
        for position in range(len(schema.fields))
    ]
    result = pa.RecordBatch.from_arrays(columns, schema=arrow_schema)
    expected_rows = sum(batch.num_rows for batch in batches)
    if result.num_rows != expected_rows:
        raise VaultInvariantError(
            f"Concatenated batch has {result.num_rows} rows, expected {expected_rows}."
        )
    return result
