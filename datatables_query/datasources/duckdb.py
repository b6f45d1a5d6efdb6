"""DuckDB data source."""

from typing import Any, Dict, Iterator
import logging

import duckdb
import pyarrow as pa

from .base import ColumnMetadata, DataSource, TableMetadata

logger = logging.getLogger(__name__)

_COLUMNS_QUERY = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = ? AND table_name = ?
    ORDER BY ordinal_position
"""


class DuckDBDataSource(DataSource):
    """DuckDB database file or in-memory database.

    Config keys:
        - path: Database file, or ``:memory:`` (default)
        - read_only: Open the file read-only (default: True)
        - batch_size: Rows per Arrow batch (default: 10000)

    One connection is opened per source; every query runs on its own cursor
    so concurrent requests never share a result set.
    """

    dialect = "duckdb"
    default_schema = "main"

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)
        self.db_path = config.get("path", ":memory:")
        self.read_only = config.get("read_only", True)
        self.batch_size = config.get("batch_size", 10000)

    def connect(self) -> None:
        logger.info("Opening DuckDB database %s for %s", self.db_path, self.name)
        self.connection = duckdb.connect(self.db_path, read_only=self.read_only)
        self._connected = True

    def disconnect(self) -> None:
        if self.connection is not None:
            self.connection.close()
            logger.info("Closed DuckDB database for %s", self.name)
            self.connection = None
        self._connected = False

    def cursor(self) -> "duckdb.DuckDBPyConnection":
        """New cursor on the shared database; close it when done."""
        if self.connection is None:
            raise RuntimeError(f"Not connected to {self.name}")
        return self.connection.cursor()

    def get_table_metadata(self, schema: str, table: str) -> TableMetadata:
        schema = schema or self.default_schema
        cursor = self.cursor()
        try:
            rows = cursor.execute(_COLUMNS_QUERY, [schema, table]).fetchall()
        finally:
            cursor.close()

        columns = []
        for name, data_type, nullable in rows:
            columns.append(ColumnMetadata(name, data_type, nullable == "YES"))
        return TableMetadata(schema_name=schema, table_name=table, columns=columns)

    def execute_query(self, query: str) -> Iterator[pa.RecordBatch]:
        logger.debug("Running on %s: %s", self.name, query)
        cursor = self.cursor()
        try:
            table = cursor.execute(query).to_arrow_table()
        finally:
            cursor.close()
        return iter(table.to_batches(max_chunksize=self.batch_size))
