"""Column catalog: the columns a table exposes and what clients may do with them."""

from ..errors import ConfigurationError
from ..plan.ordering import SortDirection
from .column import ColumnDescriptor, Predicate, PredicateFactory, OrderingTarget
from .catalog import Catalog
from .builder import catalog_from_dataclass

__all__ = [
    "Catalog",
    "ColumnDescriptor",
    "ConfigurationError",
    "OrderingTarget",
    "Predicate",
    "PredicateFactory",
    "SortDirection",
    "catalog_from_dataclass",
]
