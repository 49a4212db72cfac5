"""Unit tests for the keyed JSON object source."""

from __future__ import annotations

from pathlib import Path
import sys

import pytest

from core.errors import VaultFormatError, VaultSchemaError, VaultTypeError
from core.schema import load_schema_file, schema_of
from ingest.keyed_object_reader import decode_keyed_objects, load_keyed_object_batch
from tests.fixture_paths import fixture_path

_ID_AGE = schema_of([("id", "int64", False), ("age", "int32", True)])


def _write(tmp_path: Path, text: str) -> Path:
    source_path = tmp_path / "input.json"
    source_path.write_text(text, encoding="utf-8")
    return source_path


def test_single_object_missing_nullable_key(tmp_path: Path) -> None:
    """Absent nullable keys become nulls."""
    batch = load_keyed_object_batch(_write(tmp_path, '{"id": 5}'), _ID_AGE)

    assert batch.to_pydict() == {"id": [5], "age": [None]}


def test_array_and_stream_layouts_agree() -> None:
    """Array and newline-delimited layouts produce the same batch."""
    schema = load_schema_file(fixture_path("people_schema.json"))

    from_array = load_keyed_object_batch(fixture_path("people.json"), schema)
    from_stream = load_keyed_object_batch(fixture_path("people.ndjson"), schema)

    assert from_array.equals(from_stream)


def test_numeric_text_is_parsed() -> None:
    """Numbers given as strings are parsed."""
    schema = load_schema_file(fixture_path("people_schema.json"))

    batch = load_keyed_object_batch(fixture_path("people.json"), schema)

    assert batch.column(3).to_pylist() == [91.5, 88.0, None]


def test_missing_required_key_raises_schema_error(tmp_path: Path) -> None:
    """Records without a required key fail deterministically."""
    with pytest.raises(VaultSchemaError, match="row 2"):
        load_keyed_object_batch(_write(tmp_path, '{"id": 1}\n{"age": 3}\n'), _ID_AGE)


def test_null_required_key_raises_schema_error(tmp_path: Path) -> None:
    """Explicit nulls follow the same rule as absent keys."""
    with pytest.raises(VaultSchemaError):
        load_keyed_object_batch(_write(tmp_path, '[{"id": null}]'), _ID_AGE)


def test_wrong_dynamic_type_raises_type_error(tmp_path: Path) -> None:
    """Values of an incompatible JSON type fail."""
    with pytest.raises(VaultTypeError):
        load_keyed_object_batch(_write(tmp_path, '[{"id": [1]}]'), _ID_AGE)


def test_undecodable_stream_raises_format_error(tmp_path: Path) -> None:
    """Input that is neither layout is a format error."""
    with pytest.raises(VaultFormatError):
        load_keyed_object_batch(_write(tmp_path, '{"id": 1}\n{"id": '), _ID_AGE)


def test_array_of_scalars_raises_format_error() -> None:
    """Top-level arrays must contain objects."""
    with pytest.raises(VaultFormatError):
        decode_keyed_objects("[1, 2]", "inline")


def test_decode_stream_accepts_concatenated_objects() -> None:
    """Objects need not be separated by newlines."""
    records = decode_keyed_objects('{"id": 1}{"id": 2}', "inline")

    assert records == [{"id": 1}, {"id": 2}]


def test_empty_document_yields_no_rows(tmp_path: Path) -> None:
    """Whitespace-only input produces an empty batch."""
    batch = load_keyed_object_batch(_write(tmp_path, "\n"), _ID_AGE)

    assert batch.num_rows == 0


def test_oversized_integer_for_float_raises_type_error(tmp_path: Path) -> None:
    """JSON integers beyond float64 range raise a type error."""
    schema = schema_of([("x", "float64", True)])
    source_path = _write(tmp_path, '[{"x": 1' + "0" * 400 + "}]")

    with pytest.raises(VaultTypeError):
        load_keyed_object_batch(source_path, schema)


@pytest.mark.skipif(
    not getattr(sys, "get_int_max_str_digits", lambda: 0)(),
    reason="interpreter has no integer digit limit",
)
def test_integer_past_digit_limit_raises_format_error(tmp_path: Path) -> None:
    """Integers the JSON decoder refuses to parse raise a format error."""
    digits = sys.get_int_max_str_digits() + 1
    source_path = _write(tmp_path, '[{"id": 1' + "0" * digits + "}]")

    with pytest.raises(VaultFormatError):
        load_keyed_object_batch(source_path, _ID_AGE)


def test_binary_field_is_unsupported(tmp_path: Path) -> None:
    """Keyed objects cannot fill binary fields."""
    schema = schema_of([("payload", "binary", True)])

    with pytest.raises(VaultSchemaError):
        load_keyed_object_batch(_write(tmp_path, '{"payload": "x"}'), schema)
