"""Value coercion rules for schema-driven ingest.

This module maps loosely-typed source values onto the logical type
of a target field. There is one coercion function per pair of
logical type and source representation (text, dynamic JSON value,
raw bytes); each returns the typed value, ``None`` for a null, or
raises a classified error.
"""

from __future__ import annotations

import calendar
from datetime import datetime
import json
import re
from typing import Callable

from core.errors import VaultSchemaError, VaultTypeError
from core.schema import FieldSpec, TimeUnit, TypeKind
from core.types import SourcePosition

_INT_LITERAL = re.compile(r"[+-]?[0-9]+")
_WIRE_TIMESTAMP = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})(?:\.(\d{1,9}))?(Z|[+-]\d{2}:\d{2})"
)
_INT_BOUNDS = {
    TypeKind.INT32: (-(2**31), 2**31 - 1),
    TypeKind.INT64: (-(2**63), 2**63 - 1),
}
_NANOS_PER_UNIT = {
    TimeUnit.SECOND: 1_000_000_000,
    TimeUnit.MILLISECOND: 1_000_000,
    TimeUnit.MICROSECOND: 1_000,
    TimeUnit.NANOSECOND: 1,
}

TextCoercer = Callable[[str, FieldSpec, SourcePosition], object]
DynamicCoercer = Callable[[object, FieldSpec, SourcePosition], object]


def coerce_text_value(raw: str, field_spec: FieldSpec, position: SourcePosition) -> object | None:
    """Coerce one textual literal into the field's logical type.

    Args:
        raw: Literal read from a delimited row.
        field_spec: Target field.
        position: Source position for error reporting.

    Returns:
        Typed value, or ``None`` for an empty literal in a nullable field.

    Raises:
        VaultSchemaError: If the literal is empty and the field is required.
        VaultTypeError: If the literal cannot be parsed.
    """
    if raw == "":
        return missing_value(field_spec, position)
    return _TEXT_COERCERS[field_spec.kind](raw, field_spec, position)


def coerce_dynamic_value(
    raw: object,
    field_spec: FieldSpec,
    position: SourcePosition,
) -> object | None:
    """Coerce one dynamically-typed value (decoded JSON, foreign cell).

    Args:
        raw: Decoded value; ``None`` marks an absent or null key.
        field_spec: Target field.
        position: Source position for error reporting.

    Returns:
        Typed value, or ``None`` for an absent value in a nullable field.

    Raises:
        VaultSchemaError: If the value is absent and the field is required.
        VaultTypeError: If the value has an incompatible type or literal.
    """
    if raw is None or raw == "":
        return missing_value(field_spec, position)
    return _DYNAMIC_COERCERS[field_spec.kind](raw, field_spec, position)


def coerce_blob_value(data: bytes, field_spec: FieldSpec, position: SourcePosition) -> object:
    """Coerce raw file bytes for the blob source.

    Raises:
        VaultTypeError: If the field is neither binary nor string, or the
            bytes are not valid UTF-8 for a string field.
    """
    if field_spec.kind in (TypeKind.BINARY, TypeKind.LARGE_BINARY):
        return bytes(data)
    if field_spec.kind is TypeKind.UTF8:
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as error:
            raise VaultTypeError(
                f"{position.describe()}: blob content is not valid UTF-8 text "
                f"({error.reason} at byte {error.start}). Declare the field as binary."
            ) from error
    raise VaultTypeError(
        f"{position.describe()}: blob content cannot be stored in a "
        f"{field_spec.logical_type.describe()} field."
    )


def missing_value(field_spec: FieldSpec, position: SourcePosition) -> None:
    """Apply the nullability rule for an absent value.

    Raises:
        VaultSchemaError: If the field is not nullable.
    """
    if field_spec.nullable:
        return None
    raise VaultSchemaError(
        f"{position.describe()}: missing value for non-nullable field '{field_spec.name}'."
    )


def parse_wire_timestamp(literal: str, unit: TimeUnit, position: SourcePosition) -> int:
    """Parse an RFC 3339 timestamp and project it to an epoch integer.

    Fractional digits below the target unit are truncated toward
    negative infinity, matching epoch projection of the instant.

    Args:
        literal: Timestamp literal such as ``2024-01-01T00:00:01Z``.
        unit: Target resolution.
        position: Source position for error reporting.

    Returns:
        Integer count of ``unit`` since the Unix epoch.

    Raises:
        VaultTypeError: If the literal is not a valid wire timestamp or
            falls outside the int64 range of the unit.
    """
    match = _WIRE_TIMESTAMP.fullmatch(literal)
    if match is None:
        raise _invalid_literal(position, "timestamp", literal)
    year, month, day, hour, minute, second = (int(part) for part in match.group(1, 2, 3, 4, 5, 6))
    try:
        wall_clock = datetime(year, month, day, hour, minute, second)
    except ValueError as error:
        raise _invalid_literal(position, "timestamp", literal) from error
    epoch_seconds = calendar.timegm(wall_clock.timetuple()) - _offset_seconds(match.group(8))
    fraction = (match.group(7) or "").ljust(9, "0")
    epoch_nanos = epoch_seconds * 1_000_000_000 + int(fraction)
    epoch_value = epoch_nanos // _NANOS_PER_UNIT[unit]
    lower, upper = _INT_BOUNDS[TypeKind.INT64]
    if not lower <= epoch_value <= upper:
        raise VaultTypeError(
            f"{position.describe()}: timestamp {literal} is out of range for unit {unit.value}."
        )
    return epoch_value


def _text_to_int(raw: str, field_spec: FieldSpec, position: SourcePosition) -> int:
    if _INT_LITERAL.fullmatch(raw) is None:
        raise _invalid_literal(position, field_spec.logical_type.describe(), raw)
    return _checked_int(int(raw), field_spec, position, raw)


def _text_to_float(raw: str, field_spec: FieldSpec, position: SourcePosition) -> float:
    if "_" in raw or raw != raw.strip():
        raise _invalid_literal(position, "float64", raw)
    try:
        return float(raw)
    except ValueError as error:
        raise _invalid_literal(position, "float64", raw) from error


def _text_to_string(raw: str, field_spec: FieldSpec, position: SourcePosition) -> str:
    return raw


def _text_to_timestamp(raw: str, field_spec: FieldSpec, position: SourcePosition) -> int:
    unit = field_spec.logical_type.unit
    if unit is None:
        raise VaultSchemaError(f"Field '{field_spec.name}' has a timestamp type without a unit.")
    return parse_wire_timestamp(raw, unit, position)


def _text_to_binary(raw: str, field_spec: FieldSpec, position: SourcePosition) -> bytes:
    raise VaultTypeError(
        f"{position.describe()}: binary fields accept raw bytes only, got text "
        f"'{raw}'. Load binary content with the blob source."
    )


def _dynamic_to_int(raw: object, field_spec: FieldSpec, position: SourcePosition) -> int:
    if isinstance(raw, str):
        return _text_to_int(raw, field_spec, position)
    if isinstance(raw, bool):
        raise _unexpected_type(position, field_spec, raw)
    if isinstance(raw, int):
        return _checked_int(raw, field_spec, position, raw)
    if isinstance(raw, float):
        if not raw.is_integer():
            raise _invalid_literal(position, field_spec.logical_type.describe(), raw)
        return _checked_int(int(raw), field_spec, position, raw)
    raise _unexpected_type(position, field_spec, raw)


def _dynamic_to_float(raw: object, field_spec: FieldSpec, position: SourcePosition) -> float:
    if isinstance(raw, str):
        return _text_to_float(raw, field_spec, position)
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        raise _unexpected_type(position, field_spec, raw)
    try:
        return float(raw)
    except OverflowError as error:
        raise VaultTypeError(
            f"{position.describe()}: value is too large for float64 ({len(str(raw))} digits)."
        ) from error


def _dynamic_to_string(raw: object, field_spec: FieldSpec, position: SourcePosition) -> str:
    if isinstance(raw, str):
        return raw
    if isinstance(raw, (dict, list, bool)):
        return json.dumps(raw, sort_keys=True)
    if isinstance(raw, (bytes, bytearray)):
        return bytes(raw).decode("utf-8", errors="replace")
    return str(raw)


def _dynamic_to_timestamp(raw: object, field_spec: FieldSpec, position: SourcePosition) -> int:
    if not isinstance(raw, str):
        raise _unexpected_type(position, field_spec, raw)
    return _text_to_timestamp(raw, field_spec, position)


def _dynamic_to_binary(raw: object, field_spec: FieldSpec, position: SourcePosition) -> bytes:
    if isinstance(raw, (bytes, bytearray, memoryview)):
        return bytes(raw)
    raise _unexpected_type(position, field_spec, raw)


def _checked_int(value: int, field_spec: FieldSpec, position: SourcePosition, raw: object) -> int:
    lower, upper = _INT_BOUNDS[field_spec.kind]
    if not lower <= value <= upper:
        raise VaultTypeError(
            f"{position.describe()}: value {raw!r} is out of range for "
            f"{field_spec.logical_type.describe()}."
        )
    return value


def _offset_seconds(designator: str) -> int:
    if designator == "Z":
        return 0
    sign = -1 if designator[0] == "-" else 1
    hours, minutes = designator[1:].split(":")
    return sign * (int(hours) * 3600 + int(minutes) * 60)


def _invalid_literal(position: SourcePosition, type_name: str, literal: object) -> VaultTypeError:
    return VaultTypeError(f"{position.describe()}: invalid {type_name}: {literal}")


def _unexpected_type(position: SourcePosition, field_spec: FieldSpec, raw: object) -> VaultTypeError:
    return VaultTypeError(
        f"{position.describe()}: expected {field_spec.logical_type.describe()}, "
        f"got {type(raw).__name__} {raw!r}"
    )


_TEXT_COERCERS: dict[TypeKind, TextCoercer] = {
    TypeKind.INT32: _text_to_int,
    TypeKind.INT64: _text_to_int,
    TypeKind.FLOAT64: _text_to_float,
    TypeKind.UTF8: _text_to_string,
    TypeKind.TIMESTAMP: _text_to_timestamp,
    TypeKind.BINARY: _text_to_binary,
    TypeKind.LARGE_BINARY: _text_to_binary,
}

_DYNAMIC_COERCERS: dict[TypeKind, DynamicCoercer] = {
    TypeKind.INT32: _dynamic_to_int,
    TypeKind.INT64: _dynamic_to_int,
    TypeKind.FLOAT64: _dynamic_to_float,
    TypeKind.UTF8: _dynamic_to_string,
    TypeKind.TIMESTAMP: _dynamic_to_timestamp,
    TypeKind.BINARY: _dynamic_to_binary,
    TypeKind.LARGE_BINARY: _dynamic_to_binary,
}
