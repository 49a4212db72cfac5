"""Foreign columnar batch source.

This module reads batches produced by external columnar formats
(Parquet, ORC, Arrow IPC), normalizes each batch to the vault schema,
and concatenates them in source order.
"""

from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import tempfile
from typing import Any, Iterable, Iterator

import pyarrow as pa
import pyarrow.ipc as ipc
import pyarrow.parquet as pq

from core.constants import DEFAULT_FOREIGN_BATCH_SIZE
from core.errors import (
    VaultConfigError,
    VaultDependencyError,
    VaultEmptySourceError,
    VaultFormatError,
    VaultIOError,
)
from core.logging_config import get_logger
from core.schema import TableSchema
from ingest.batch_assembly import concatenate_batches
from ingest.foreign_schema import coerce_to_schema

_LOGGER = get_logger(__name__)


def load_foreign_batch(batches: Iterable[pa.RecordBatch], schema: TableSchema) -> pa.RecordBatch:
    """Normalize and concatenate externally produced batches.

    Args:
        batches: Foreign batches in source order.
        schema: Target schema.

    Returns:
        One batch with the target schema.

    Raises:
        VaultEmptySourceError: If the source yields no batches.
        VaultSchemaError: If a batch cannot be mapped onto the schema.
        VaultTypeError: If a foreign value cannot be coerced.
    """
    arrow_schema = schema.to_arrow()
    conformant: list[pa.RecordBatch] = []
    row_offset = 0
    for batch in batches:
        if not batch.schema.equals(arrow_schema):
            _LOGGER.debug(
                "foreign_batch_coerced",
                batch_index=len(conformant),
                num_rows=batch.num_rows,
            )
        conformant.append(coerce_to_schema(schema, batch, row_offset))
        row_offset += batch.num_rows
    if not conformant:
        raise VaultEmptySourceError(
            "Foreign source produced no batches; the file is empty or conversion failed."
        )
    return concatenate_batches(schema, conformant)


def read_foreign_batches(
    source_path: Path,
    source_format: str,
    batch_size: int = DEFAULT_FOREIGN_BATCH_SIZE,
) -> Iterator[pa.RecordBatch]:
    """Yield record batches from a foreign columnar file.

    Args:
        source_path: Input file.
        source_format: ``parquet``, ``orc``, or ``arrow``.
        batch_size: Maximum rows per batch for Parquet reads.

    Yields:
        Record batches in file order.

    Raises:
        VaultConfigError: For unknown formats.
        VaultIOError: If the file cannot be read.
        VaultFormatError: If the file is not valid for its format.
    """
    if source_format == "parquet":
        yield from _parquet_batches(source_path, batch_size)
    elif source_format == "orc":
        yield from _orc_batches(source_path, batch_size)
    elif source_format == "arrow":
        yield from _ipc_batches(source_path)
    else:
        raise VaultConfigError(
            f"Unsupported foreign format '{source_format}'. Use parquet, orc, or arrow."
        )


def convert_orc_to_parquet(orc_path: Path, parquet_path: Path) -> None:
    """Rewrite an ORC file as Parquet.

    Raises:
        VaultDependencyError: If pyarrow was built without ORC support.
        VaultIOError: If either file cannot be accessed.
        VaultFormatError: If the ORC file is invalid.
    """
    orc_module = _import_orc()
    with _translated_arrow_errors(orc_path):
        table = orc_module.ORCFile(str(orc_path)).read()
        pq.write_table(table, str(parquet_path))


def _parquet_batches(source_path: Path, batch_size: int) -> Iterator[pa.RecordBatch]:
    with _translated_arrow_errors(source_path):
        parquet_file = pq.ParquetFile(str(source_path))
        yield from parquet_file.iter_batches(batch_size=batch_size)


def _orc_batches(source_path: Path, batch_size: int) -> Iterator[pa.RecordBatch]:
    with tempfile.TemporaryDirectory(prefix="vaultload-orc-") as scratch_dir:
        parquet_path = Path(scratch_dir) / f"{source_path.stem}.parquet"
        convert_orc_to_parquet(source_path, parquet_path)
        yield from _parquet_batches(parquet_path, batch_size)


def _ipc_batches(source_path: Path) -> Iterator[pa.RecordBatch]:
    with _translated_arrow_errors(source_path):
        with pa.OSFile(str(source_path), "rb") as source:
            reader = ipc.open_file(source)
            for index in range(reader.num_record_batches):
                yield reader.get_batch(index)


@contextmanager
def _translated_arrow_errors(source_path: Path) -> Iterator[None]:
    try:
        yield
    except pa.ArrowInvalid as error:
        raise VaultFormatError(f"Failed to decode columnar file {source_path}: {error}.") from error
    except OSError as error:
        raise VaultIOError(f"Failed to read columnar file {source_path}: {error}.") from error


def _import_orc() -> Any:
    try:
        import pyarrow.orc as orc_module
    except ImportError as error:
        raise VaultDependencyError(
            "ORC input requires a pyarrow build with ORC support. "
            "Install a pyarrow wheel that ships pyarrow.orc."
        ) from error
    return orc_module
