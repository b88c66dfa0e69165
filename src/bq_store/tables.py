"""Table provisioning and schema helpers."""

from __future__ import annotations

import logging
from typing import Iterable

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.cloud import bigquery

from bq_store.errors import ConfigError, RemoteError
from bq_store.models import DatasetRef, Field, TableRef, TableSchema

logger = logging.getLogger(__name__)

_TYPE_ALIASES = {
    "int": "INTEGER",
    "int64": "INTEGER",
    "integer": "INTEGER",
    "float": "FLOAT",
    "float64": "FLOAT",
    "double": "FLOAT",
    "numeric": "NUMERIC",
    "str": "STRING",
    "string": "STRING",
    "bool": "BOOLEAN",
    "boolean": "BOOLEAN",
    "bytes": "BYTES",
    "date": "DATE",
    "datetime": "DATETIME",
    "time": "TIME",
    "timestamp": "TIMESTAMP",
}


def normalize_type(name: str) -> str:
    """Map a loose type name (``int``, ``str``...) to a BigQuery type."""
    key = name.strip().lower()
    if key not in _TYPE_ALIASES:
        raise ConfigError(f"unknown column type: {name!r}")
    return _TYPE_ALIASES[key]


def parse_schema(definition: str) -> TableSchema:
    """Parse a ``name:type,name:type`` schema definition.

    Args:
        definition: Comma-separated ``name:type`` pairs, in column order.

    Returns:
        The schema as an ordered tuple of ``Field``.

    Raises:
        ConfigError: If the definition is empty or malformed.
    """
    fields: list[Field] = []
    for part in definition.split(","):
        part = part.strip()
        if not part:
            continue
        name, sep, type_name = part.partition(":")
        if not sep or not name.strip():
            raise ConfigError(f"invalid column definition: {part!r}")
        fields.append(Field(name=name.strip(), field_type=normalize_type(type_name)))
    if not fields:
        raise ConfigError("schema has no columns")
    return tuple(fields)


def to_schema_fields(schema: Iterable[Field]) -> list[bigquery.SchemaField]:
    """Convert a schema into ``bigquery.SchemaField`` objects, keeping order."""
    return [bigquery.SchemaField(f.name, f.field_type, mode=f.mode) for f in schema]


def create_table(
    client: bigquery.Client,
    dataset: DatasetRef,
    name: str,
    schema: TableSchema,
) -> TableRef:
    """Create table *name* in *dataset* unless it already exists.

    An existing table is left untouched, even when its schema differs from
    *schema*.  Schema changes are never applied.

    Args:
        client: Authenticated BigQuery client.
        dataset: Dataset that holds the table.
        name: BigQuery table ID.
        schema: Columns to create the table with.

    Returns:
        Reference to the table.

    Raises:
        RemoteError: If the lookup fails with anything but ``404`` or the
            insert fails.
    """
    ref = TableRef(dataset=dataset, table_id=name, schema=tuple(schema))
    table_ref = bigquery.TableReference(
        bigquery.DatasetReference(dataset.project_id, dataset.dataset_id), name
    )
    try:
        client.get_table(table_ref)
        logger.debug("Table %s already exists, schema left unchanged", ref.path)
        return ref
    except NotFound:
        pass
    except GoogleAPIError as exc:
        raise RemoteError.from_api_error("get_table", exc) from exc

    table = bigquery.Table(table_ref, schema=to_schema_fields(schema))
    try:
        client.create_table(table)
    except GoogleAPIError as exc:
        raise RemoteError.from_api_error("create_table", exc) from exc
    logger.info("Created table %s with %d columns", ref.path, len(ref.schema))
    return ref
