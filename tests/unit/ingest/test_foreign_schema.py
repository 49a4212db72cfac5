"""Unit tests for foreign batch schema coercion."""

from __future__ import annotations

import pyarrow as pa
import pytest

from core.errors import VaultSchemaError, VaultTypeError
from core.schema import schema_of
from ingest.foreign_schema import coerce_to_schema

_SCHEMA = schema_of(
    [("id", "int64", False), ("label", "utf8", True), ("seen_at", "timestamp[us]", True)]
)


def test_reorders_and_widens_columns() -> None:
    """Columns are matched by name and widened to target types."""
    foreign = pa.RecordBatch.from_pydict(
        {
            "label": pa.array(["a", "b"], type=pa.large_string()),
            "id": pa.array([1, 2], type=pa.int32()),
            "seen_at": pa.array([1, 2], type=pa.timestamp("us")),
        }
    )

    batch = coerce_to_schema(_SCHEMA, foreign)

    assert batch.schema.equals(_SCHEMA.to_arrow())


def test_missing_nullable_field_becomes_nulls() -> None:
    """Target fields absent from the foreign batch become null columns."""
    foreign = pa.RecordBatch.from_pydict({"id": pa.array([1, 2], type=pa.int64())})

    batch = coerce_to_schema(_SCHEMA, foreign)

    assert batch.column(1).null_count == 2


def test_missing_required_field_raises_schema_error() -> None:
    """Required fields must exist in the foreign batch."""
    foreign = pa.RecordBatch.from_pydict({"label": pa.array(["a"])})

    with pytest.raises(VaultSchemaError):
        coerce_to_schema(_SCHEMA, foreign)


def test_nulls_in_required_field_raise_schema_error() -> None:
    """Nulls in a required foreign column violate the schema."""
    foreign = pa.RecordBatch.from_pydict({"id": pa.array([1, None], type=pa.int64())})

    with pytest.raises(VaultSchemaError, match="row 2"):
        coerce_to_schema(_SCHEMA, foreign)


def test_timestamp_unit_is_truncated() -> None:
    """Finer timestamp units are truncated to the target unit."""
    foreign = pa.RecordBatch.from_pydict(
        {
            "id": pa.array([1], type=pa.int64()),
            "seen_at": pa.array([1704067201000001999], type=pa.timestamp("ns")),
        }
    )

    batch = coerce_to_schema(_SCHEMA, foreign)

    assert batch.column(2).cast(pa.int64()).to_pylist() == [1704067201000001]


def test_dictionary_strings_are_decoded() -> None:
    """Dictionary-encoded columns are decoded before coercion."""
    foreign = pa.RecordBatch.from_pydict(
        {
            "id": pa.array([1, 2], type=pa.int64()),
            "label": pa.array(["x", "x"]).dictionary_encode(),
        }
    )

    batch = coerce_to_schema(_SCHEMA, foreign)

    assert batch.column(1).to_pylist() == ["x", "x"]


def test_text_numbers_are_parsed() -> None:
    """Foreign string columns holding numbers are parsed."""
    foreign = pa.RecordBatch.from_pydict({"id": pa.array(["10", "20"])})

    batch = coerce_to_schema(_SCHEMA, foreign)

    assert batch.column(0).to_pylist() == [10, 20]


def test_uncoercible_values_report_global_row() -> None:
    """Row numbers in errors include the batch offset."""
    foreign = pa.RecordBatch.from_pydict({"id": pa.array(["1", "x"])})

    with pytest.raises(VaultTypeError, match="row 12"):
        coerce_to_schema(_SCHEMA, foreign, row_offset=10)
