"""Sample batch generation.

This module produces deterministic demo rows that satisfy any
vault schema, for smoke-testing a vault without input files.
"""

from __future__ import annotations

import pyarrow as pa

from core.constants import DEFAULT_SAMPLE_ROWS
from core.schema import FieldSpec, TableSchema, TimeUnit, TypeKind
from ingest.batch_assembly import assemble_batch, create_column_builders

_SAMPLE_EPOCH_SECONDS = 1_704_067_200
_UNITS_PER_SECOND = {
    TimeUnit.SECOND: 1,
    TimeUnit.MILLISECOND: 1_000,
    TimeUnit.MICROSECOND: 1_000_000,
    TimeUnit.NANOSECOND: 1_000_000_000,
}


def generate_sample_batch(schema: TableSchema, num_rows: int = DEFAULT_SAMPLE_ROWS) -> pa.RecordBatch:
    """Build ``num_rows`` sample rows for every schema field."""
    builders = create_column_builders(schema)
    for row_index in range(num_rows):
        for builder in builders:
            builder.append_value(_sample_value(builder.field, row_index))
    return assemble_batch(schema, builders)


def _sample_value(field_spec: FieldSpec, row_index: int) -> object:
    kind = field_spec.kind
    if kind is TypeKind.INT64:
        return row_index + 1
    if kind is TypeKind.INT32:
        return 20 + row_index
    if kind is TypeKind.FLOAT64:
        return row_index * 1.5
    if kind is TypeKind.UTF8:
        return _sample_text(field_spec.name, row_index + 1)
    if kind is TypeKind.TIMESTAMP:
        unit = field_spec.logical_type.unit or TimeUnit.SECOND
        return (_SAMPLE_EPOCH_SECONDS + row_index * 60) * _UNITS_PER_SECOND[unit]
    return _sample_text(field_spec.name, row_index + 1).encode("utf-8")


def _sample_text(field_name: str, ordinal: int) -> str:
    if field_name == "name":
        return f"User{ordinal}"
    if field_name == "email":
        return f"user{ordinal}@example.com"
    return f"sample_{field_name}_{ordinal}"
