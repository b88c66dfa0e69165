"""Bounded synchronous queries."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

from google.api_core.exceptions import GoogleAPIError
from google.cloud import bigquery

from bq_store.errors import EmptyResultError, RemoteError
from bq_store.models import DatasetRef, QueryResult
from bq_store.values import Value, decode_value

logger = logging.getLogger(__name__)

QUERY_LIMIT = 200


def decode_rows(width: int, rows: Iterable[Sequence[Any]]) -> list[list[Value]]:
    """Decode result rows into lists of exactly *width* values.

    Args:
        width: Number of schema columns.
        rows: Rows addressable by column position.

    Returns:
        One list per row, cells in schema order.
    """
    return [[decode_value(row[i]) for i in range(width)] for row in rows]


def run_query(client: bigquery.Client, dataset: DatasetRef, text: str) -> QueryResult:
    """Run *text* against *dataset* and wait for the result.

    Unqualified table names resolve against *dataset*.  At most
    ``QUERY_LIMIT`` rows are returned whatever the query produces.

    Args:
        client: Authenticated BigQuery client.
        dataset: Default dataset for the query.
        text: GoogleSQL query.

    Returns:
        Column headers in schema order and the decoded rows.

    Raises:
        RemoteError: If the query fails.
        EmptyResultError: If the query returned no rows.
    """
    job_config = bigquery.QueryJobConfig(
        default_dataset=bigquery.DatasetReference(dataset.project_id, dataset.dataset_id)
    )
    try:
        result = client.query_and_wait(
            text,
            job_config=job_config,
            project=dataset.project_id,
            max_results=QUERY_LIMIT,
        )
        total_rows = result.total_rows or 0
        if total_rows < 1:
            raise EmptyResultError(f"query returned no data: {text}")

        headers = [f.name for f in result.schema]
        rows = decode_rows(len(headers), result)
    except GoogleAPIError as exc:
        raise RemoteError.from_api_error("query", exc) from exc

    logger.debug(
        "Query on %s returned %d of %d rows", dataset.path, len(rows), total_rows
    )
    return QueryResult(headers=headers, rows=rows, total_rows=total_rows)
