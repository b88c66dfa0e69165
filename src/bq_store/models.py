"""Shared dataclasses for datasets, tables, and query results."""

from __future__ import annotations

from dataclasses import dataclass, field

from bq_store.values import Value


@dataclass(frozen=True)
class Field:
    """A single column of a table schema."""

    name: str
    field_type: str
    mode: str = "NULLABLE"


TableSchema = tuple[Field, ...]


@dataclass(frozen=True)
class DatasetRef:
    """A dataset within a GCP project."""

    project_id: str
    dataset_id: str

    @property
    def path(self) -> str:
        """Fully qualified ``project.dataset`` id."""
        return f"{self.project_id}.{self.dataset_id}"


@dataclass(frozen=True)
class TableRef:
    """A table within a dataset, with the schema it was created with."""

    dataset: DatasetRef
    table_id: str
    schema: TableSchema = ()

    @property
    def name(self) -> str:
        """Short ``dataset.table`` name."""
        return f"{self.dataset.dataset_id}.{self.table_id}"

    @property
    def path(self) -> str:
        """Fully qualified ``project.dataset.table`` id."""
        return f"{self.dataset.path}.{self.table_id}"


@dataclass(frozen=True)
class DatasetInfo:
    """A dataset as reported by a project listing."""

    dataset_id: str
    friendly_name: str = ""


@dataclass(frozen=True)
class QueryResult:
    """Headers and decoded rows of a bounded query.

    Every row holds exactly ``len(headers)`` values, in header order.
    """

    headers: list[str]
    rows: list[list[Value]] = field(default_factory=list)
    total_rows: int = 0
