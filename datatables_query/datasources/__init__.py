"""Queryables and data source connectors."""

from .base import ColumnMetadata, DataSource, Queryable, TableMetadata
from .memory import InMemoryQueryable
from .sql import SqlQueryable, SqlTranslator, UntranslatableExpressionError
from .postgresql import PostgreSQLDataSource
from .duckdb import DuckDBDataSource

__all__ = [
    "ColumnMetadata",
    "DataSource",
    "DuckDBDataSource",
    "InMemoryQueryable",
    "PostgreSQLDataSource",
    "Queryable",
    "SqlQueryable",
    "SqlTranslator",
    "TableMetadata",
    "UntranslatableExpressionError",
]
