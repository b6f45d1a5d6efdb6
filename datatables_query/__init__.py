"""Server-side processing for DataTables-style table widgets.

Translates the widget's query-string requests into filter, ordering and
pagination operations over a data source, and packages the page of results
into the response shape the widget expects.
"""

__version__ = "0.1.0"

from .errors import ConfigurationError
from .catalog import Catalog, ColumnDescriptor, catalog_from_dataclass
from .config import TableConfig
from .parser import ParsedRequest, WireDecoder
from .executor import QueryExecutor, PagedResult
from .response import DataTablesResponse, SerializationContract
from .table import DataTable, QueryableDataTable

__all__ = [
    "ConfigurationError",
    "Catalog",
    "ColumnDescriptor",
    "catalog_from_dataclass",
    "TableConfig",
    "ParsedRequest",
    "WireDecoder",
    "QueryExecutor",
    "PagedResult",
    "DataTablesResponse",
    "SerializationContract",
    "DataTable",
    "QueryableDataTable",
]
