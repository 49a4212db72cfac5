"""Typed single-use column builders.

This module accumulates values for exactly one schema field and
finalizes them into an immutable pyarrow array.
"""

from __future__ import annotations

from typing import Callable, Iterable

import pyarrow as pa

from core.errors import VaultInvariantError, VaultSchemaError, VaultTypeError
from core.schema import FieldSpec, TypeKind

ALL_KINDS = frozenset(TypeKind)


def _is_integer(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_VALUE_CHECKS: dict[TypeKind, Callable[[object], bool]] = {
    TypeKind.INT32: lambda value: _is_integer(value) and -(2**31) <= value < 2**31,
    TypeKind.INT64: lambda value: _is_integer(value) and -(2**63) <= value < 2**63,
    TypeKind.FLOAT64: lambda value: isinstance(value, float),
    TypeKind.UTF8: lambda value: isinstance(value, str),
    TypeKind.BINARY: lambda value: isinstance(value, bytes),
    TypeKind.LARGE_BINARY: lambda value: isinstance(value, bytes),
    TypeKind.TIMESTAMP: lambda value: _is_integer(value) and -(2**63) <= value < 2**63,
}


class ColumnBuilder:
    """Append-only accumulator for one field.

    A builder is owned by the ingest call that created it. After
    ``finalize`` it rejects every further operation.
    """

    def __init__(self, field_spec: FieldSpec) -> None:
        self._field = field_spec
        self._check = _VALUE_CHECKS[field_spec.kind]
        self._values: list[object] = []
        self._finalized = False

    @property
    def field(self) -> FieldSpec:
        return self._field

    def __len__(self) -> int:
        return len(self._values)

    def append_value(self, value: object) -> None:
        """Append one typed value.

        Raises:
            VaultTypeError: If the value does not match the builder type.
            VaultInvariantError: If the builder was already finalized.
        """
        self._ensure_open()
        if not self._check(value):
            raise VaultTypeError(
                f"Column '{self._field.name}' expects "
                f"{self._field.logical_type.describe()} values, got {type(value).__name__} {value!r}."
            )
        self._values.append(value)

    def append_null(self, *, enforce_nullability: bool = True) -> None:
        """Append a null marker.

        Args:
            enforce_nullability: Reject nulls for non-nullable fields.

        Raises:
            VaultSchemaError: If the field is not nullable and enforcement is on.
            VaultInvariantError: If the builder was already finalized.
        """
        self._ensure_open()
        if enforce_nullability and not self._field.nullable:
            raise VaultSchemaError(
                f"Cannot append null to non-nullable field '{self._field.name}'."
            )
        self._values.append(None)

    def append(self, value: object | None) -> None:
        """Append a coerced value, routing ``None`` to ``append_null``."""
        if value is None:
            self.append_null()
        else:
            self.append_value(value)

    def finalize(self) -> pa.Array:
        """Produce the immutable column and close the builder.

        Raises:
            VaultInvariantError: If the builder was already finalized.
        """
        self._ensure_open()
        self._finalized = True
        values, self._values = self._values, []
        return pa.array(values, type=self._field.logical_type.to_arrow())

    def _ensure_open(self) -> None:
        if self._finalized:
            raise VaultInvariantError(
                f"Column builder for '{self._field.name}' was already finalized."
            )


def create_column_builder(
    field_spec: FieldSpec,
    supported_kinds: Iterable[TypeKind] = ALL_KINDS,
) -> ColumnBuilder:
    """Create a builder for one field.

    Args:
        field_spec: Target field.
        supported_kinds: Logical kinds the calling source can produce.

    Returns:
        Empty builder for the field.

    Raises:
        VaultSchemaError: If the field type is not supported by the source.
    """
    if field_spec.kind not in frozenset(supported_kinds):
        raise VaultSchemaError(
            f"Unsupported type {field_spec.logical_type.describe()} for field "
            f"'{field_spec.name}' in this source format."
        )
    return ColumnBuilder(field_spec)
