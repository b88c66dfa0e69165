"""CLI entrypoint for bq-store."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from bq_store.client import WarehouseClient
from bq_store.config import Credentials, discover_config, load_config
from bq_store.errors import WarehouseError
from bq_store.tables import parse_schema


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per client operation."""
    parser = argparse.ArgumentParser(
        prog="bq-store",
        description="Provision, fill, and query BigQuery tables.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (DEBUG) logging.",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to bq_store.toml (default: auto-discover from CWD).",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- datasets ---
    subparsers.add_parser(
        "datasets",
        help="List datasets in the configured project.",
    )

    # --- create-dataset ---
    create_ds = subparsers.add_parser(
        "create-dataset",
        help="Create a dataset if it does not exist.",
    )
    create_ds.add_argument("dataset", type=str, help="Dataset ID.")

    # --- create-table ---
    create_tbl = subparsers.add_parser(
        "create-table",
        help="Create a table if it does not exist (schema is never changed).",
    )
    create_tbl.add_argument("dataset", type=str, help="Dataset ID.")
    create_tbl.add_argument("table", type=str, help="Table ID.")
    create_tbl.add_argument(
        "schema",
        type=str,
        help="Columns as 'name:type,name:type' (e.g. 'id:int,amount:float').",
    )

    # --- insert ---
    insert = subparsers.add_parser(
        "insert",
        help="Stream one JSON row into a table, creating it if needed.",
    )
    insert.add_argument("dataset", type=str, help="Dataset ID.")
    insert.add_argument("table", type=str, help="Table ID.")
    insert.add_argument(
        "schema",
        type=str,
        help="Columns used if the table has to be created ('name:type,...').",
    )
    insert.add_argument("row", type=str, help="Row as a JSON object.")

    # --- query ---
    query = subparsers.add_parser(
        "query",
        help="Run a query (at most 200 rows) and print tab-separated results.",
    )
    query.add_argument("dataset", type=str, help="Default dataset for the query.")
    query.add_argument("sql", type=str, help="Query text.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint.

    Args:
        argv: Command-line arguments.  Defaults to ``sys.argv[1:]``.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )

    credentials = _resolve_config(args)
    try:
        with WarehouseClient(credentials) as client:
            _dispatch(client, args)
    except WarehouseError as exc:
        logging.error("%s", exc)
        sys.exit(1)


def _resolve_config(args: argparse.Namespace) -> Credentials:
    """Discover and load credentials from CLI args.

    Args:
        args: Parsed CLI namespace (must have a ``config`` attribute).

    Returns:
        Loaded ``Credentials``.
    """
    try:
        config_path = Path(args.config).resolve() if args.config else discover_config()
        return load_config(config_path)
    except (FileNotFoundError, WarehouseError) as exc:
        logging.error("%s", exc)
        sys.exit(1)


def _dispatch(client: WarehouseClient, args: argparse.Namespace) -> None:
    """Run the subcommand selected in *args* against *client*."""
    if args.command == "datasets":
        for info in client.list_datasets():
            print(f"{info.dataset_id}\t{info.friendly_name}")

    if args.command == "create-dataset":
        client.create_dataset(args.dataset)
        logging.info("Dataset %s ready", args.dataset)

    if args.command == "create-table":
        schema = parse_schema(args.schema)
        client.create_dataset(args.dataset)
        client.create_table(args.table, schema)
        logging.info("Table %s ready", client.get_table_name())

    if args.command == "insert":
        _handle_insert(client, args)

    if args.command == "query":
        client.use_dataset(args.dataset)
        result = client.query(args.sql)
        print("\t".join(result.headers))
        for row in result.rows:
            print("\t".join("" if cell is None else str(cell) for cell in row))


def _handle_insert(client: WarehouseClient, args: argparse.Namespace) -> None:
    """Handle the ``insert`` subcommand."""
    try:
        record = json.loads(args.row)
    except json.JSONDecodeError as exc:
        logging.error("Invalid JSON row: %s", exc)
        sys.exit(1)
    if not isinstance(record, dict):
        logging.error("Row must be a JSON object, got %s", type(record).__name__)
        sys.exit(1)

    schema = parse_schema(args.schema)
    client.create_dataset(args.dataset)
    client.create_table(args.table, schema)
    try:
        client.insert_row(record)
    except TypeError as exc:
        logging.error("Invalid row: %s", exc)
        sys.exit(1)
    logging.info("Inserted 1 row into %s", client.get_table_name())
