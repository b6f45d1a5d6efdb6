"""Base queryable and data source interfaces."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional
import pyarrow as pa

from ..catalog import Catalog
from ..plan.expressions import Expression
from ..plan.ordering import QuerySpec, SortDirection


class Queryable(ABC):
    """Rows that can be filtered, ordered, paged, counted and materialized.

    Queryables are immutable: every builder method returns a new queryable
    and leaves the receiver untouched. Nothing runs until ``count``,
    ``materialize`` or ``distinct_values`` is called.
    """

    @abstractmethod
    def filter(self, predicate: Expression) -> "Queryable":
        """Keep rows for which ``predicate`` is true."""
        pass

    @abstractmethod
    def order_by(
        self,
        expression: Expression,
        direction: SortDirection = SortDirection.ASCENDING,
        then: bool = False,
        case_insensitive: bool = False,
    ) -> "Queryable":
        """Sort rows.

        Args:
            expression: Sort key
            direction: Sort direction
            then: Add a secondary key to the current ordering instead of
                replacing it
            case_insensitive: Compare text keys lower-cased

        Nulls sort first ascending and last descending.
        """
        pass

    @abstractmethod
    def skip(self, count: int) -> "Queryable":
        pass

    @abstractmethod
    def take(self, count: int) -> "Queryable":
        pass

    @abstractmethod
    def count(self) -> int:
        """Number of rows."""
        pass

    @abstractmethod
    def materialize(self) -> List[Any]:
        """Fetch the rows."""
        pass

    @abstractmethod
    def distinct_values(self, expression: Expression) -> List[Any]:
        """Distinct non-null values of ``expression`` over the rows."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Human-readable description of the query, for diagnostics."""
        pass

    def validate(self, catalog: Catalog) -> None:
        """Check the catalog's paths against what this source exposes.

        Raises:
            ConfigurationError: If a declared path cannot be resolved
        """
        pass

    def apply(self, spec: QuerySpec) -> "Queryable":
        """Apply a composed predicate and ordering plan."""
        query = self
        if spec.predicate is not None:
            query = query.filter(spec.predicate)
        for position, key in enumerate(spec.ordering):
            query = query.order_by(
                key.expression,
                key.direction,
                then=position > 0,
                case_insensitive=key.case_insensitive,
            )
        return query


@dataclass
class ColumnMetadata:
    """Metadata about a column."""

    name: str
    data_type: str
    nullable: bool


@dataclass
class TableMetadata:
    """Metadata about a table."""

    schema_name: str
    table_name: str
    columns: List[ColumnMetadata]


class DataSource(ABC):
    """Abstract base class for SQL data sources."""

    dialect = "postgres"
    default_schema = "public"

    def __init__(self, name: str, config: Dict[str, Any]):
        """Initialize data source.

        Args:
            name: Unique name for this data source
            config: Configuration dictionary
        """
        self.name = name
        self.config = config
        self.connection = None
        self._connected = False

    @abstractmethod
    def connect(self) -> None:
        """Establish connection to the data source."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close connection to the data source."""
        pass

    @abstractmethod
    def get_table_metadata(self, schema: str, table: str) -> TableMetadata:
        """Get metadata for a table.

        Args:
            schema: Schema name
            table: Table name

        Returns:
            Table metadata including columns and types
        """
        pass

    @abstractmethod
    def execute_query(self, query: str) -> Iterator[pa.RecordBatch]:
        """Execute a SQL query and return results as Arrow record batches.

        Args:
            query: SQL query string

        Returns:
            Iterator of Arrow record batches
        """
        pass

    def fetch_rows(self, query: str) -> List[Dict[str, Any]]:
        """Execute a query and return its rows as dicts."""
        rows = []
        for batch in self.execute_query(query):
            rows.extend(batch.to_pylist())
        return rows

    def queryable(self, table: str, schema: Optional[str] = None) -> Queryable:
        """Queryable over one table of this data source."""
        # Imported here: sql.py builds on this module
        from .sql import SqlQueryable

        self.ensure_connected()
        return SqlQueryable(self, table, schema or self.default_schema)

    def is_connected(self) -> bool:
        """Check if data source is connected.

        Returns:
            True if connected, False otherwise
        """
        return self._connected

    def ensure_connected(self) -> None:
        """Ensure data source is connected.

        Raises:
            ConnectionError: If connection cannot be established
        """
        if not self.is_connected():
            self.connect()
            self._connected = True

    def __enter__(self):
        """Context manager entry."""
        self.ensure_connected()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()
        self._connected = False
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name})"
