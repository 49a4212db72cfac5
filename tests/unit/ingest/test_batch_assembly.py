"""Unit tests for batch assembly and concatenation."""

from __future__ import annotations

import pyarrow as pa
import pytest

from core.errors import VaultInvariantError, VaultSchemaError
from core.schema import schema_of
from ingest.batch_assembly import assemble_batch, concatenate_batches, create_column_builders

_SCHEMA = schema_of([("id", "int64", False), ("label", "utf8", True)])


def _batch(ids: list[int], labels: list[str | None]) -> pa.RecordBatch:
    return pa.RecordBatch.from_arrays(
        [pa.array(ids, type=pa.int64()), pa.array(labels, type=pa.string())],
        schema=_SCHEMA.to_arrow(),
    )


def test_assemble_batch_uses_shared_row_count() -> None:
    """Assembled batches take their row count from the columns."""
    builders = create_column_builders(_SCHEMA)
    for row_id in (1, 2, 3):
        builders[0].append_value(row_id)
        builders[1].append_null()

    batch = assemble_batch(_SCHEMA, builders)

    assert batch.num_rows == 3


def test_assemble_batch_matches_schema() -> None:
    """Assembled batches carry the target arrow schema."""
    builders = create_column_builders(_SCHEMA)

    batch = assemble_batch(_SCHEMA, builders)

    assert batch.schema.equals(_SCHEMA.to_arrow())


def test_assemble_batch_rejects_ragged_columns() -> None:
    """Unequal column lengths indicate a source bug."""
    builders = create_column_builders(_SCHEMA)
    builders[0].append_value(1)

    with pytest.raises(VaultInvariantError):
        assemble_batch(_SCHEMA, builders)


def test_concatenate_preserves_order_and_nulls() -> None:
    """Concatenation appends rows in input order, keeping nulls."""
    first = _batch([1, 2], ["a", None])
    second = _batch([3], [None])

    merged = concatenate_batches(_SCHEMA, [first, second])

    assert merged.to_pydict() == {"id": [1, 2, 3], "label": ["a", None, None]}


def test_concatenate_is_associative() -> None:
    """Grouping of concatenations does not change the result."""
    a, b, c, d = (_batch([index], [str(index)]) for index in range(4))

    left = concatenate_batches(_SCHEMA, [concatenate_batches(_SCHEMA, [a, b, c]), d])
    right = concatenate_batches(_SCHEMA, [a, concatenate_batches(_SCHEMA, [b, c, d])])

    assert left.equals(right)


def test_concatenate_rejects_empty_input() -> None:
    """At least one batch is required."""
    with pytest.raises(VaultSchemaError):
        concatenate_batches(_SCHEMA, [])


def test_concatenate_rejects_foreign_schema() -> None:
    """Batches must already match the target schema."""
    foreign = pa.RecordBatch.from_pydict({"id": pa.array([1], type=pa.int32())})

    with pytest.raises(VaultSchemaError):
        concatenate_batches(_SCHEMA, [foreign])
