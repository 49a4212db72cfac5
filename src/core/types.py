"""Shared typed models.

This module defines immutable request models and the narrow
collaborator protocols used by ingest, store, and CLI layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Protocol

import pyarrow as pa

from core.schema import TableSchema


@dataclass(frozen=True)
class SourcePosition:
    """Location of one value inside a source.

    Attributes:
        row_index: Row number as reported to users.
        field_name: Target field name.
    """

    row_index: int
    field_name: str

    def describe(self) -> str:
        return f"row {self.row_index}, field '{self.field_name}'"


@dataclass(frozen=True)
class IngestRequest:
    """One write run request.

    Attributes:
        source_format: One of the supported source formats, or ``sample``.
        input_path: Input file for file-based formats.
        blob_paths: Field name to file path mapping for the blob format.
    """

    source_format: str
    input_path: Path | None = None
    blob_paths: Mapping[str, Path] = field(default_factory=dict)


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a successful write run."""

    rows_written: int
    source_format: str


class SchemaProvider(Protocol):
    """Storage collaborator that owns the target schema."""

    def current_schema(self) -> TableSchema:
        """Return the authoritative schema for this run."""
        ...


class BatchSink(Protocol):
    """Storage collaborator that persists finished batches."""

    def write(self, batch: pa.RecordBatch, credential: str) -> int:
        """Persist one batch and return the number of rows written."""
        ...
