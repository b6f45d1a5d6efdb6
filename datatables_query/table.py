"""DataTable: one catalog, one queryable and one mapping function."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import replace
from functools import cached_property
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .catalog import Catalog, ColumnDescriptor
from .config import TableConfig
from .datasources.base import Queryable
from .executor import LogHook, PagedResult, QueryExecutor
from .parser import ParsedRequest, WireDecoder
from .plan.visitors import to_text
from .response import DataTablesResponse

RequestInput = Union[str, Mapping, ParsedRequest]


class DataTable(ABC):
    """Server side of one table widget.

    Subclasses declare the columns and the rows; everything else (decoding,
    filtering, ordering, paging and packaging) is shared::

        class UserTable(DataTable):
            def columns(self):
                return [ColumnDescriptor("name", "Name", is_searchable=True)]

            def query(self):
                return InMemoryQueryable(load_users())

        UserTable().render_response("draw=1&start=0&length=10").to_json()
    """

    @abstractmethod
    def columns(self) -> Iterable[ColumnDescriptor]:
        """Columns clients may reference."""
        pass

    @abstractmethod
    def query(self) -> Queryable:
        """All rows of the table."""
        pass

    def mapping_function(self) -> Optional[Callable[[Any], Any]]:
        """Row to view-model function; rows are returned as-is by default."""
        return None

    def config(self) -> TableConfig:
        return TableConfig()

    def log_hook(self) -> Optional[LogHook]:
        """Diagnostic hook receiving request parameters and the query."""
        return None

    def filter(self, queryable: Queryable) -> Queryable:
        """Restrict the rows before any client filtering (e.g. per user)."""
        return queryable

    @cached_property
    def catalog(self) -> Catalog:
        return Catalog(self.columns())

    def get_table_identifier(self) -> str:
        return self.config().table_identifier or type(self).__name__

    def build_request(self, request: Union[str, Mapping]) -> ParsedRequest:
        """Decode a query string (or URL) or a parameter mapping."""
        decoder = WireDecoder(self.catalog, self.config())
        mapping_function = self.mapping_function()
        log = self.log_hook()
        if isinstance(request, Mapping):
            return decoder.decode(request, mapping_function=mapping_function, log=log)
        if request is not None and "://" in request:
            return decoder.decode_url(request, mapping_function=mapping_function, log=log)
        return decoder.decode_query_string(
            request, mapping_function=mapping_function, log=log
        )

    def render_results(self, request: RequestInput) -> PagedResult:
        if not isinstance(request, ParsedRequest):
            request = self.build_request(request)
        executor = QueryExecutor(self._executor_config())
        return executor.execute(self.filter(self.query()), request, self.catalog)

    def render_response(self, request: RequestInput) -> DataTablesResponse:
        return DataTablesResponse(self.render_results(request), self.catalog)

    def get_distinct_column_values(self, public_name: str) -> List[str]:
        """Distinct values of a column as sorted text, e.g. for select filters.

        Raises:
            ValueError: If the table has no such column
            ConfigurationError: If the column has no storage path
        """
        column = self.catalog.get(public_name)
        if column is None:
            raise ValueError(f"Unknown column: '{public_name}'")
        queryable = self.filter(self.query())
        values = queryable.distinct_values(column.storage_expression())
        texts = set()
        for value in values:
            texts.add(to_text(value))
        return sorted(texts)

    def client_columns(self) -> List[Dict[str, Any]]:
        """Per-column settings for the client widget's ``columns`` option."""
        definitions = []
        for column in self.catalog:
            definition = {
                "data": column.public_name,
                "name": column.public_name,
                "title": column.display_name,
                "searchable": column.is_searchable,
                "orderable": column.is_orderable,
            }
            definition.update(column.options)
            definitions.append(definition)
        return definitions

    def _executor_config(self) -> TableConfig:
        config = self.config()
        if config.table_identifier is None:
            return replace(config, table_identifier=self.get_table_identifier())
        return config


class QueryableDataTable(DataTable):
    """DataTable assembled from ready-made parts instead of a subclass."""

    def __init__(
        self,
        columns: Iterable[ColumnDescriptor],
        queryable: Queryable,
        mapping_function: Optional[Callable[[Any], Any]] = None,
        config: Optional[TableConfig] = None,
        log_hook: Optional[LogHook] = None,
    ):
        self._columns = list(columns)
        self._queryable = queryable
        self._mapping_function = mapping_function
        self._config = config or TableConfig()
        self._log_hook = log_hook

    def columns(self) -> Iterable[ColumnDescriptor]:
        return self._columns

    def query(self) -> Queryable:
        return self._queryable

    def mapping_function(self) -> Optional[Callable[[Any], Any]]:
        return self._mapping_function

    def config(self) -> TableConfig:
        return self._config

    def log_hook(self) -> Optional[LogHook]:
        return self._log_hook
