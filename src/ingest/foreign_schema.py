"""Foreign batch schema coercion.

This module re-derives a schema-conformant batch from a batch whose
arrow schema differs from the vault schema, matching columns by name.
"""

from __future__ import annotations

import pyarrow as pa
import pyarrow.compute as pc

from core.errors import VaultSchemaError
from core.schema import FieldSpec, TableSchema, TypeKind
from core.types import SourcePosition
from ingest.column_builder import ColumnBuilder
from ingest.value_coercion import coerce_dynamic_value, missing_value


def coerce_to_schema(
    schema: TableSchema,
    foreign_batch: pa.RecordBatch,
    row_offset: int = 0,
) -> pa.RecordBatch:
    """Rebuild a foreign batch so it obeys the target schema.

    Columns are taken by field name in target order. Columns with an
    identical arrow type are reused, with empty strings treated as
    missing values like every other source; timestamps of another unit are
    cast with truncation; everything else is coerced value by value.

    Args:
        schema: Target schema.
        foreign_batch: Batch with an arbitrary schema.
        row_offset: Rows preceding this batch in its source, for errors.

    Returns:
        Record batch with the target arrow schema.

    Raises:
        VaultSchemaError: If a required field is missing or holds nulls.
        VaultTypeError: If a value cannot be coerced.
    """
    columns = []
    for field_spec in schema.fields:
        index = foreign_batch.schema.get_field_index(field_spec.name)
        if index < 0:
            columns.append(_missing_column(field_spec, foreign_batch.num_rows, row_offset))
        else:
            columns.append(_coerce_column(field_spec, foreign_batch.column(index), row_offset))
    return pa.RecordBatch.from_arrays(columns, schema=schema.to_arrow())


def _missing_column(field_spec: FieldSpec, num_rows: int, row_offset: int) -> pa.Array:
    missing_value(field_spec, SourcePosition(row_offset + 1, field_spec.name))
    return pa.nulls(num_rows, type=field_spec.logical_type.to_arrow())


def _coerce_column(field_spec: FieldSpec, column: pa.Array, row_offset: int) -> pa.Array:
    target_type = field_spec.logical_type.to_arrow()
    if pa.types.is_dictionary(column.type):
        column = column.dictionary_decode()
    if column.type.equals(target_type):
        if field_spec.kind is TypeKind.UTF8:
            column = _blank_strings_to_null(field_spec, column, row_offset)
        return _checked_nulls(field_spec, column, row_offset)
    if field_spec.kind is TypeKind.TIMESTAMP and pa.types.is_timestamp(column.type):
        return _checked_nulls(field_spec, column.cast(target_type, safe=False), row_offset)
    builder = ColumnBuilder(field_spec)
    for row_number, value in enumerate(column.to_pylist(), row_offset + 1):
        position = SourcePosition(row_number, field_spec.name)
        builder.append(coerce_dynamic_value(value, field_spec, position))
    return builder.finalize()


def _blank_strings_to_null(field_spec: FieldSpec, column: pa.Array, row_offset: int) -> pa.Array:
    blank = pc.fill_null(pc.equal(column, ""), False)
    if not pc.any(blank).as_py():
        return column
    if not field_spec.nullable:
        first_blank = blank.to_pylist().index(True)
        missing_value(field_spec, SourcePosition(row_offset + first_blank + 1, field_spec.name))
    return pc.if_else(blank, pa.scalar(None, type=column.type), column)


def _checked_nulls(field_spec: FieldSpec, column: pa.Array, row_offset: int) -> pa.Array:
    if field_spec.nullable or column.null_count == 0:
        return column
    first_null = column.is_null().to_pylist().index(True)
    raise VaultSchemaError(
        f"row {row_offset + first_null + 1}, field '{field_spec.name}': "
        f"missing value for non-nullable field '{field_spec.name}'."
    )
