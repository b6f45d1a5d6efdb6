"""Column descriptors: one server-declared column of a table."""

import copy
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union

from ..errors import ConfigurationError
from ..plan.expressions import Expression, FieldRef
from ..plan.ordering import SortDirection
from ..plan.paths import PropertyPath

# A predicate is either an expression (which may contain the search-text
# placeholder) or a plain ``(row, search_text) -> bool`` callable.
Predicate = Union[Expression, Callable[[Any, str], bool]]
PredicateFactory = Callable[[str], Optional[Predicate]]
# An ordering target is an expression or a ``row -> key`` callable.
OrderingTarget = Union[Expression, Callable[[Any], Any]]


@dataclass
class ColumnDescriptor:
    """Template for one column's identity, capabilities and overrides.

    Descriptors held by a ``Catalog`` are never mutated. Each request works
    on clones (see ``clone``) that carry the request-scoped fields: the
    column index sent by the client, its column search value, the effective
    regex flag and the requested ordering.
    """

    public_name: str
    storage_path: Optional[str] = None
    output_name: Optional[str] = None
    display_name: Optional[str] = None
    is_searchable: bool = False
    is_orderable: bool = False
    search_case_insensitive: bool = False
    ordering_case_insensitive: bool = False
    search_regex: bool = False

    search_predicate: Optional[Predicate] = None
    column_search_predicate: Optional[Predicate] = None
    global_search_predicate: Optional[Predicate] = None
    search_predicate_factory: Optional[PredicateFactory] = None
    column_search_predicate_factory: Optional[PredicateFactory] = None
    global_search_predicate_factory: Optional[PredicateFactory] = None

    ordering_expression: Optional[OrderingTarget] = None
    ordering_property: Optional[str] = None

    options: Dict[str, Any] = field(default_factory=dict)

    # Request-scoped
    index: int = -1
    search_value: str = ""
    column_search_regex: bool = False
    ordering_index: int = -1
    ordering_direction: SortDirection = SortDirection.ASCENDING

    def __post_init__(self):
        if not self.public_name or not self.public_name.strip():
            raise ConfigurationError("Column public name must not be empty")
        if self.output_name is None:
            self.output_name = self.public_name
        if self.display_name is None:
            self.display_name = self.public_name
        if self.options is None:
            self.options = {}
        self._storage_accessor = _compile(self.storage_path)
        self._ordering_accessor = _compile(self.ordering_property)

    @property
    def storage_accessor(self) -> Optional[PropertyPath]:
        return self._storage_accessor

    @property
    def ordering_accessor(self) -> Optional[PropertyPath]:
        return self._ordering_accessor

    def storage_expression(self) -> FieldRef:
        """Reference to the stored value.

        Raises:
            ConfigurationError: If the column has no storage path
        """
        if self.storage_path is None:
            raise ConfigurationError(
                f"Column '{self.public_name}' has no storage path; declare a "
                f"predicate override or an ordering target for it"
            )
        return FieldRef(self.storage_path)

    @property
    def is_ordered(self) -> bool:
        """True when the request asked to sort by this column."""
        return self.ordering_index >= 0

    def clone(self) -> "ColumnDescriptor":
        """Copy for one request, with request-scoped fields reset."""
        twin = copy.copy(self)
        twin.options = copy.deepcopy(self.options)
        twin.index = -1
        twin.search_value = ""
        twin.column_search_regex = False
        twin.ordering_index = -1
        twin.ordering_direction = SortDirection.ASCENDING
        return twin

    def __repr__(self) -> str:
        return f"ColumnDescriptor({self.public_name}, path={self.storage_path})"


def _compile(path: Optional[str]) -> Optional[PropertyPath]:
    if path is None:
        return None
    return PropertyPath(path)
