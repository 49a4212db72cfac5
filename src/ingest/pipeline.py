"""Write-run orchestration.

This module selects one source for a run, produces a single
schema-conformant batch, and hands it to the batch sink exactly once.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

import pyarrow as pa

from core.config import VaultConfig
from core.constants import (
    FOREIGN_SOURCE_FORMATS,
    STAGE_COERCION,
    STAGE_SOURCE_READ,
    STAGE_WRITE,
)
from core.errors import VaultConfigError, VaultError, VaultFormatError, VaultIOError
from core.logging_config import get_logger
from core.schema import TableSchema
from core.types import BatchSink, IngestRequest, SchemaProvider, WriteResult
from ingest.blob_reader import load_blob_batch
from ingest.delimited_reader import load_delimited_batch
from ingest.foreign_reader import load_foreign_batch, read_foreign_batches
from ingest.keyed_object_reader import load_keyed_object_batch
from ingest.sample_data import generate_sample_batch

_LOGGER = get_logger(__name__)


class WriteRunner:
    """Single-use runner for one source-to-sink write."""

    def __init__(
        self,
        request: IngestRequest,
        provider: SchemaProvider,
        sink: BatchSink,
        config: VaultConfig,
    ) -> None:
        self._request = request
        self._provider = provider
        self._sink = sink
        self._config = config

    def run(self, credential: str) -> WriteResult:
        """Build the batch for the request and write it.

        Raises:
            VaultError: Any failure, tagged with the failing stage.
        """
        schema = self._provider.current_schema()
        _LOGGER.info(
            "ingest_started",
            source_format=self._request.source_format,
            input_path=str(self._request.input_path) if self._request.input_path else None,
            field_count=len(schema.fields),
        )
        with _stage(None):
            batch = self._load_batch(schema)
        with _stage(STAGE_WRITE):
            rows_written = self._sink.write(batch, credential)
        _LOGGER.info(
            "ingest_completed",
            source_format=self._request.source_format,
            rows_written=rows_written,
        )
        return WriteResult(rows_written=rows_written, source_format=self._request.source_format)

    def _load_batch(self, schema: TableSchema) -> pa.RecordBatch:
        source_format = self._request.source_format
        if source_format == "sample":
            return generate_sample_batch(schema, self._config.sample_rows)
        if source_format == "blob":
            if not self._request.blob_paths:
                raise VaultConfigError("Blob format requires at least one --blob field=path mapping.")
            return load_blob_batch(self._request.blob_paths, schema, self._config.strict_blobs)
        input_path = self._request.input_path
        if input_path is None:
            raise VaultConfigError(
                f"Format '{source_format}' requires an input file. Pass --input."
            )
        if source_format == "csv":
            return load_delimited_batch(input_path, schema, self._config.csv_delimiter)
        if source_format == "json":
            return load_keyed_object_batch(input_path, schema)
        if source_format in FOREIGN_SOURCE_FORMATS:
            batches = read_foreign_batches(input_path, source_format, self._config.foreign_batch_size)
            return load_foreign_batch(batches, schema)
        raise VaultConfigError(
            f"Unsupported source format '{source_format}'. "
            "Use csv, json, blob, parquet, orc, arrow, or sample."
        )


def run_write(
    request: IngestRequest,
    provider: SchemaProvider,
    sink: BatchSink,
    credential: str,
    config: VaultConfig,
) -> WriteResult:
    """Run one write from source to sink.

    Args:
        request: Source selection.
        provider: Schema provider for the target vault.
        sink: Batch sink for the target vault.
        credential: Credential passed through to the sink.
        config: Runtime configuration.

    Returns:
        Number of rows written and the source format.

    Raises:
        VaultError: Any failure; nothing is written unless the whole
            batch was built.
    """
    runner = WriteRunner(request, provider, sink, config)
    return runner.run(credential)


@contextmanager
def _stage(stage: str | None) -> Iterator[None]:
    """Tag escaping vault errors with the stage that raised them."""
    try:
        yield
    except VaultError as error:
        if error.stage is None:
            error.stage = stage or _stage_for(error)
        raise


def _stage_for(error: VaultError) -> str:
    if isinstance(error, (VaultConfigError, VaultIOError, VaultFormatError)):
        return STAGE_SOURCE_READ
    return STAGE_COERCION
