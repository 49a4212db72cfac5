"""Logical schema model for vault batches.

This module defines the closed set of logical column types and the
ordered field contract every produced batch must satisfy. Schemas
convert to and from pyarrow schemas and JSON schema documents.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import json
from pathlib import Path
from typing import Any, Iterable, Mapping

import pyarrow as pa

from core.errors import VaultIOError, VaultSchemaError


class TypeKind(str, Enum):
    """Closed set of supported logical column kinds."""

    INT32 = "int32"
    INT64 = "int64"
    FLOAT64 = "float64"
    UTF8 = "utf8"
    BINARY = "binary"
    LARGE_BINARY = "large_binary"
    TIMESTAMP = "timestamp"


class TimeUnit(str, Enum):
    """Timestamp resolution, valued by the arrow unit code."""

    SECOND = "s"
    MILLISECOND = "ms"
    MICROSECOND = "us"
    NANOSECOND = "ns"


SCALAR_KINDS = frozenset(
    {TypeKind.INT32, TypeKind.INT64, TypeKind.FLOAT64, TypeKind.UTF8, TypeKind.TIMESTAMP}
)

_TYPE_ALIASES = {
    "int32": TypeKind.INT32,
    "int64": TypeKind.INT64,
    "float64": TypeKind.FLOAT64,
    "double": TypeKind.FLOAT64,
    "utf8": TypeKind.UTF8,
    "string": TypeKind.UTF8,
    "binary": TypeKind.BINARY,
    "large_binary": TypeKind.LARGE_BINARY,
}


@dataclass(frozen=True)
class LogicalType:
    """Tagged logical type.

    Attributes:
        kind: Logical type variant.
        unit: Timestamp unit; set only for ``TypeKind.TIMESTAMP``.
    """

    kind: TypeKind
    unit: TimeUnit | None = None

    def __post_init__(self) -> None:
        if self.kind is TypeKind.TIMESTAMP and self.unit is None:
            raise VaultSchemaError("Timestamp types require a unit (s, ms, us, ns).")
        if self.kind is not TypeKind.TIMESTAMP and self.unit is not None:
            raise VaultSchemaError(f"Type {self.kind.value} does not take a unit.")

    @classmethod
    def parse(cls, type_name: str) -> "LogicalType":
        """Parse a type string such as ``int64`` or ``timestamp[us]``.

        Raises:
            VaultSchemaError: If the type name is unknown.
        """
        normalized = type_name.strip().lower()
        if normalized.startswith("timestamp[") and normalized.endswith("]"):
            return cls(TypeKind.TIMESTAMP, _parse_unit(normalized[len("timestamp[") : -1]))
        kind = _TYPE_ALIASES.get(normalized)
        if kind is None:
            raise VaultSchemaError(
                f"Unsupported logical type '{type_name}'. Supported types: "
                "int32, int64, float64, utf8, binary, large_binary, timestamp[s|ms|us|ns]."
            )
        return cls(kind)

    @classmethod
    def from_arrow(cls, arrow_type: pa.DataType) -> "LogicalType":
        """Map an arrow data type onto the closed logical type set.

        Raises:
            VaultSchemaError: If the arrow type has no logical counterpart.
        """
        if pa.types.is_int32(arrow_type):
            return cls(TypeKind.INT32)
        if pa.types.is_int64(arrow_type):
            return cls(TypeKind.INT64)
        if pa.types.is_float64(arrow_type):
            return cls(TypeKind.FLOAT64)
        if pa.types.is_string(arrow_type):
            return cls(TypeKind.UTF8)
        if pa.types.is_binary(arrow_type):
            return cls(TypeKind.BINARY)
        if pa.types.is_large_binary(arrow_type):
            return cls(TypeKind.LARGE_BINARY)
        if pa.types.is_timestamp(arrow_type):
            return cls(TypeKind.TIMESTAMP, _parse_unit(arrow_type.unit))
        raise VaultSchemaError(
            f"Unsupported arrow type '{arrow_type}' in vault schema. "
            "Declare the field with one of the supported logical types."
        )

    def to_arrow(self) -> pa.DataType:
        """Return the arrow data type for this logical type."""
        if self.kind is TypeKind.INT32:
            return pa.int32()
        if self.kind is TypeKind.INT64:
            return pa.int64()
        if self.kind is TypeKind.FLOAT64:
            return pa.float64()
        if self.kind is TypeKind.UTF8:
            return pa.string()
        if self.kind is TypeKind.BINARY:
            return pa.binary()
        if self.kind is TypeKind.LARGE_BINARY:
            return pa.large_binary()
        return pa.timestamp(_require_unit(self).value)

    def describe(self) -> str:
        """Return the canonical type string."""
        if self.kind is TypeKind.TIMESTAMP:
            return f"timestamp[{_require_unit(self).value}]"
        return self.kind.value


@dataclass(frozen=True)
class FieldSpec:
    """One named, typed column of a schema."""

    name: str
    logical_type: LogicalType
    nullable: bool = True

    @property
    def kind(self) -> TypeKind:
        return self.logical_type.kind

    def to_arrow(self) -> pa.Field:
        return pa.field(self.name, self.logical_type.to_arrow(), nullable=self.nullable)


@dataclass(frozen=True)
class TableSchema:
    """Ordered field contract for vault batches.

    Attributes:
        fields: Fields in column order; names are unique.
    """

    fields: tuple[FieldSpec, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for field_spec in self.fields:
            if field_spec.name in seen:
                raise VaultSchemaError(
                    f"Duplicate field name '{field_spec.name}' in schema. "
                    "Field names must be unique."
                )
            seen.add(field_spec.name)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(field_spec.name for field_spec in self.fields)

    def to_arrow(self) -> pa.Schema:
        return pa.schema([field_spec.to_arrow() for field_spec in self.fields])

    @classmethod
    def from_arrow(cls, arrow_schema: pa.Schema) -> "TableSchema":
        """Build a schema from an arrow schema.

        Raises:
            VaultSchemaError: If any field type is unsupported.
        """
        return cls(
            fields=tuple(
                FieldSpec(
                    name=arrow_field.name,
                    logical_type=LogicalType.from_arrow(arrow_field.type),
                    nullable=arrow_field.nullable,
                )
                for arrow_field in arrow_schema
            )
        )

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TableSchema":
        """Build a schema from a decoded JSON schema document.

        Raises:
            VaultSchemaError: If the document shape or a type is invalid.
        """
        raw_fields = payload.get("fields")
        if not isinstance(raw_fields, list) or not raw_fields:
            raise VaultSchemaError(
                "Invalid schema document: expected a non-empty 'fields' list."
            )
        return cls(fields=tuple(_field_from_payload(item) for item in raw_fields))

    def to_payload(self) -> dict[str, Any]:
        """Serialize the schema to a JSON-safe document."""
        return {
            "fields": [
                {
                    "name": field_spec.name,
                    "type": field_spec.logical_type.describe(),
                    "nullable": field_spec.nullable,
                }
                for field_spec in self.fields
            ]
        }


def load_schema_file(schema_path: Path) -> TableSchema:
    """Load a JSON schema document from disk.

    Args:
        schema_path: Path to a schema JSON file.

    Returns:
        Parsed table schema.

    Raises:
        VaultIOError: If the file cannot be read.
        VaultSchemaError: If the document is not a valid schema.
    """
    try:
        text = schema_path.read_text(encoding="utf-8")
    except OSError as error:
        raise VaultIOError(f"Failed to read schema file {schema_path}: {error}.") from error
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as error:
        raise VaultSchemaError(
            f"Failed to parse schema file {schema_path}:{error.lineno}: {error.msg}."
        ) from error
    if not isinstance(payload, dict):
        raise VaultSchemaError(f"Invalid schema file {schema_path}: expected a JSON object.")
    return TableSchema.from_payload(payload)


def schema_of(fields: Iterable[tuple[str, str, bool]]) -> TableSchema:
    """Build a schema from ``(name, type_name, nullable)`` triples."""
    return TableSchema(
        fields=tuple(
            FieldSpec(name=name, logical_type=LogicalType.parse(type_name), nullable=nullable)
            for name, type_name, nullable in fields
        )
    )


def _field_from_payload(item: object) -> FieldSpec:
    if not isinstance(item, dict):
        raise VaultSchemaError("Invalid schema field: expected a JSON object per field.")
    name = item.get("name")
    type_name = item.get("type")
    nullable = item.get("nullable", True)
    if not isinstance(name, str) or not name:
        raise VaultSchemaError("Invalid schema field: 'name' must be a non-empty string.")
    if not isinstance(type_name, str):
        raise VaultSchemaError(f"Invalid schema field '{name}': 'type' must be a string.")
    if not isinstance(nullable, bool):
        raise VaultSchemaError(f"Invalid schema field '{name}': 'nullable' must be a boolean.")
    return FieldSpec(name=name, logical_type=LogicalType.parse(type_name), nullable=nullable)


def _parse_unit(raw_unit: str) -> TimeUnit:
    try:
        return TimeUnit(raw_unit)
    except ValueError as error:
        raise VaultSchemaError(
            f"Unknown timestamp unit '{raw_unit}'. Use one of s, ms, us, ns."
        ) from error


def _require_unit(logical_type: LogicalType) -> TimeUnit:
    if logical_type.unit is None:
        raise VaultSchemaError("Timestamp types require a unit (s, ms, us, ns).")
    return logical_type.unit
