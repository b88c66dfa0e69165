"""Single-row streaming inserts."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery

from bq_store.errors import PartialFailureError, RemoteError
from bq_store.models import TableRef
from bq_store.values import Value, encode_value

logger = logging.getLogger(__name__)


def encode_row(record: Mapping[str, Any]) -> dict[str, Value]:
    """Encode every cell of *record*, keyed by column name.

    Raises:
        TypeError: If a cell has no scalar representation.
    """
    return {str(name): encode_value(value) for name, value in record.items()}


def insert_row(
    client: bigquery.Client,
    table: TableRef,
    record: Mapping[str, Any],
) -> None:
    """Stream one row into *table*.

    Each call is one request; rows are not batched.

    Args:
        client: Authenticated BigQuery client.
        table: Destination table.
        record: Column name to cell value.

    Raises:
        TypeError: If a cell value cannot be encoded.
        RemoteError: If the request itself fails.
        PartialFailureError: If the service rejects the row.
    """
    row = encode_row(record)
    try:
        errors = client.insert_rows_json(table.path, [row])
    except GoogleAPIError as exc:
        raise RemoteError.from_api_error("insert_row", exc) from exc

    if errors:
        logger.warning("Row rejected by %s: %s", table.path, errors)
        raise PartialFailureError("insert_row", list(errors))
    logger.debug("Inserted row into %s", table.path)
