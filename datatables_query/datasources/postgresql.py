"""PostgreSQL data source over a psycopg2 connection pool."""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List
import logging

import psycopg2
import pyarrow as pa
from psycopg2 import pool

from .base import ColumnMetadata, DataSource, TableMetadata

logger = logging.getLogger(__name__)

_COLUMNS_QUERY = """
    SELECT column_name, data_type, is_nullable
    FROM information_schema.columns
    WHERE table_schema = %s AND table_name = %s
    ORDER BY ordinal_position
"""


class PostgreSQLDataSource(DataSource):
    """PostgreSQL database.

    Config keys: host, port (default 5432), database, user, password,
    min_connections (default 1), max_connections (default 5) and
    batch_size (rows per Arrow batch, default 10000). Each query borrows
    its own pooled connection.
    """

    dialect = "postgres"
    default_schema = "public"

    def __init__(self, name: str, config: Dict[str, Any]):
        super().__init__(name, config)
        self._pool = None
        self.batch_size = config.get("batch_size", 10000)

    def connect(self) -> None:
        settings = self.config
        logger.info(
            "Connecting %s to PostgreSQL %s at %s",
            self.name,
            settings["database"],
            settings["host"],
        )
        try:
            self._pool = pool.ThreadedConnectionPool(
                settings.get("min_connections", 1),
                settings.get("max_connections", 5),
                host=settings["host"],
                port=settings.get("port", 5432),
                database=settings["database"],
                user=settings["user"],
                password=settings["password"],
            )
        except psycopg2.Error as e:
            raise ConnectionError(f"PostgreSQL connection failed for {self.name}: {e}") from e
        self._connected = True

    def disconnect(self) -> None:
        if self._pool is not None:
            self._pool.closeall()
            logger.info("Closed PostgreSQL pool for %s", self.name)
            self._pool = None
        self._connected = False

    @contextmanager
    def pooled_connection(self):
        """Borrow a connection; it goes back to the pool on exit."""
        if self._pool is None:
            raise RuntimeError(f"Not connected to {self.name}")
        conn = self._pool.getconn()
        try:
            yield conn
        finally:
            self._pool.putconn(conn)

    def get_table_metadata(self, schema: str, table: str) -> TableMetadata:
        schema = schema or self.default_schema
        with self.pooled_connection() as conn, conn.cursor() as cursor:
            cursor.execute(_COLUMNS_QUERY, (schema, table))
            rows = cursor.fetchall()
            conn.rollback()

        columns = []
        for name, data_type, nullable in rows:
            columns.append(ColumnMetadata(name, data_type, nullable == "YES"))
        return TableMetadata(schema_name=schema, table_name=table, columns=columns)

    def execute_query(self, query: str) -> Iterator[pa.RecordBatch]:
        logger.debug("Running on %s: %s", self.name, query)
        batches = []
        with self.pooled_connection() as conn:
            try:
                with conn.cursor() as cursor:
                    cursor.execute(query)
                    names = [column[0] for column in cursor.description]
                    while True:
                        rows = cursor.fetchmany(self.batch_size)
                        if not rows:
                            break
                        batches.append(_record_batch(names, rows))
            finally:
                conn.rollback()
        return iter(batches)


def _record_batch(names: List[str], rows: List[tuple]) -> pa.RecordBatch:
    data = {}
    for position, name in enumerate(names):
        data[name] = [row[position] for row in rows]
    return pa.RecordBatch.from_pydict(data)
