"""Parsed server-side processing request."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from ..catalog import ColumnDescriptor


@dataclass
class ParsedRequest:
    """One decoded request.

    ``columns`` holds request-scoped clones of catalog columns in the order
    the client listed them. ``page_size`` of zero or less means pagination is
    disabled.
    """

    page_number: int = 1
    page_size: int = 15
    draw: int = 0
    global_search_value: str = ""
    global_search_regex: bool = False
    columns: List[ColumnDescriptor] = field(default_factory=list)
    original_request: Dict[str, str] = field(default_factory=dict)
    mapping_function: Optional[Callable[[Any], Any]] = None
    log: Optional[Callable[[str], None]] = None

    @property
    def is_paginated(self) -> bool:
        return self.page_size > 0

    @property
    def offset(self) -> int:
        """Number of rows before the requested page."""
        if not self.is_paginated:
            return 0
        return (self.page_number - 1) * self.page_size

    def column(self, public_name: str) -> Optional[ColumnDescriptor]:
        """Get a request-scoped column by public name."""
        for column in self.columns:
            if column.public_name == public_name:
                return column
        return None

    def column_at(self, index: int) -> Optional[ColumnDescriptor]:
        """Get the request-scoped column the client sent at ``index``."""
        for column in self.columns:
            if column.index == index:
                return column
        return None

    def searchable_columns(self) -> List[ColumnDescriptor]:
        return [column for column in self.columns if column.is_searchable]

    def ordered_columns(self) -> List[ColumnDescriptor]:
        """Orderable columns the client sorted by, primary key first."""
        ordered = []
        for column in self.columns:
            if column.is_orderable and column.is_ordered:
                ordered.append(column)
        ordered.sort(key=lambda column: column.ordering_index)
        return ordered

    def __getitem__(self, parameter_name: str) -> Optional[str]:
        """Original request parameter by name, e.g. ``request["search[value]"]``."""
        return self.original_request.get(parameter_name)
