"""Warehouse client: one authenticated session plus a dataset/table binding.

Every data operation first passes through ``get_active_connection``, which
re-authenticates when the session token has expired.  A client instance is
not safe for concurrent use; use one client per thread.
"""

from __future__ import annotations

import contextlib
import logging
from datetime import datetime
from typing import Any, Callable, Iterator, Mapping

from google.auth import exceptions as auth_exceptions
from google.cloud import bigquery

from bq_store import datasets, query, rows, tables
from bq_store.auth import Session, authenticate, utcnow
from bq_store.config import Credentials
from bq_store.errors import AuthError, ConfigError, NotInitializedError
from bq_store.models import DatasetInfo, DatasetRef, QueryResult, TableRef, TableSchema

logger = logging.getLogger(__name__)


@contextlib.contextmanager
def _rejected_token(operation: str) -> Iterator[None]:
    """Raise ``AuthError`` when the service rejects the session token."""
    try:
        yield
    except auth_exceptions.RefreshError as exc:
        raise AuthError(f"{operation} failed: access token rejected: {exc}") from exc


class WarehouseClient:
    """Authenticated access to datasets and tables of one project.

    Args:
        credentials: Service-account identity.
        authenticator: Opens a session; called at construction and again
            whenever the token expires.
        clock: Source of the current time for expiry checks.

    Raises:
        ConfigError: If the credentials are incomplete.
        AuthError: If authentication fails.
    """

    def __init__(
        self,
        credentials: Credentials,
        *,
        authenticator: Callable[[Credentials], Session] = authenticate,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._credentials = credentials
        self._authenticator = authenticator
        self._clock = clock
        self._dataset: DatasetRef | None = None
        self._table: TableRef | None = None
        self._session: Session | None = authenticator(credentials)

    def __enter__(self) -> WarehouseClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def project_id(self) -> str:
        """GCP project the session is bound to."""
        return self._credentials.project_id

    @property
    def dataset(self) -> DatasetRef | None:
        """Currently bound dataset, if any."""
        return self._dataset

    @property
    def table(self) -> TableRef | None:
        """Currently bound table, if any."""
        return self._table

    def close(self) -> None:
        """Release the session.  Safe to call more than once."""
        if self._session is None:
            return
        self._session.client.close()
        self._session = None
        logger.debug("Closed warehouse session for project '%s'", self.project_id)

    def get_active_connection(self) -> bigquery.Client:
        """Return a BigQuery client whose token is still valid.

        Raises:
            NotInitializedError: If the client was closed.
            ConfigError: If re-authentication finds the credentials incomplete.
            AuthError: If re-authentication fails.
        """
        if self._session is None:
            raise NotInitializedError("service not initialized")

        if self._session.token.is_expired(self._clock()):
            logger.info("Access token expired, re-authenticating")
            session = self._authenticator(self._credentials)
            self._session.client.close()
            self._session = session
        return self._session.client

    def _bind_dataset(self, ref: DatasetRef) -> None:
        if self._dataset != ref:
            self._table = None
        self._dataset = ref

    def list_datasets(self) -> list[DatasetInfo]:
        """List the datasets of the project."""
        client = self.get_active_connection()
        with _rejected_token("list_datasets"):
            return datasets.list_datasets(client, self.project_id)

    def create_dataset(self, name: str) -> None:
        """Ensure dataset *name* exists and bind it.

        Binding a different dataset also clears the bound table.
        """
        client = self.get_active_connection()
        with _rejected_token("create_dataset"):
            ref = datasets.create_dataset(client, self.project_id, name)
        self._bind_dataset(ref)

    def use_dataset(self, name: str) -> None:
        """Bind dataset *name* without creating or looking it up.

        Binding a different dataset also clears the bound table.

        Raises:
            NotInitializedError: If the client was closed.
        """
        if self._session is None:
            raise NotInitializedError("service not initialized")
        self._bind_dataset(DatasetRef(project_id=self.project_id, dataset_id=name))

    def create_table(self, name: str, schema: TableSchema) -> None:
        """Ensure table *name* exists in the bound dataset and bind it.

        Raises:
            ConfigError: If no dataset is bound.
        """
        client = self.get_active_connection()
        if self._dataset is None:
            raise ConfigError("no dataset created")
        with _rejected_token("create_table"):
            self._table = tables.create_table(client, self._dataset, name, schema)

    def insert_row(self, record: Mapping[str, Any]) -> None:
        """Stream one row into the bound table.

        Raises:
            ConfigError: If no dataset or table is bound.
        """
        client = self.get_active_connection()
        if self._dataset is None or self._table is None:
            raise ConfigError("table not set up to add rows")
        with _rejected_token("insert_row"):
            rows.insert_row(client, self._table, record)

    def query(self, text: str) -> QueryResult:
        """Run a bounded query against the bound dataset.

        Raises:
            ConfigError: If no dataset is bound.
        """
        client = self.get_active_connection()
        if self._dataset is None:
            raise ConfigError("no dataset to query")
        with _rejected_token("query"):
            return query.run_query(client, self._dataset, text)

    def get_table_name(self) -> str:
        """Return the bound table as ``dataset.table``.

        Raises:
            NotInitializedError: If the client was closed.
            ConfigError: If no table is bound.
        """
        if self._session is None:
            raise NotInitializedError("service not initialized")
        if self._table is None:
            raise ConfigError("table not set up")
        return self._table.name
