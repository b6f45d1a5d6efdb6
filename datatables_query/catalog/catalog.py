"""Catalog of the columns a table exposes to clients."""

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple

from ..errors import ConfigurationError
from ..plan.expressions import Expression, FieldRef
from ..plan.paths import PropertyPath
from .column import ColumnDescriptor

logger = logging.getLogger(__name__)


class Catalog:
    """Immutable, server-declared set of column descriptors.

    Public names are unique. Storage paths are checked lazily: against the
    declared entity type with ``validate_entity_type`` and against the
    columns of a queried table with ``validate_columns``. Each distinct
    check runs once per catalog.
    """

    def __init__(
        self, columns: Iterable[ColumnDescriptor], entity_type: Optional[type] = None
    ):
        """Initialize catalog.

        Args:
            columns: Column descriptors, in display order
            entity_type: Row type the storage paths refer to (optional)

        Raises:
            ConfigurationError: If two columns share a public name
        """
        self._columns: Tuple[ColumnDescriptor, ...] = tuple(columns)
        self._by_name: Dict[str, ColumnDescriptor] = {}
        for column in self._columns:
            if column.public_name in self._by_name:
                raise ConfigurationError(
                    f"Duplicate column public name: '{column.public_name}'"
                )
            self._by_name[column.public_name] = column
        self.entity_type = entity_type
        self._validated: Set[Any] = set()

    def get(self, public_name: str) -> Optional[ColumnDescriptor]:
        """Get column by public name."""
        return self._by_name.get(public_name)

    def public_names(self) -> List[str]:
        return [column.public_name for column in self._columns]

    def output_renames(self) -> Dict[str, str]:
        """Map output property names to public names."""
        renames = {}
        for column in self._columns:
            renames[column.output_name] = column.public_name
        return renames

    def validate_entity_type(self, entity_type: Optional[type] = None) -> None:
        """Check every declared path against the row type.

        Raises:
            ConfigurationError: If a path names a member the type lacks
        """
        entity_type = entity_type or self.entity_type
        if entity_type is None:
            return
        key = ("type", entity_type)
        if key in self._validated:
            return
        for column, path in self._declared_paths():
            if not path.exists_on(entity_type):
                raise ConfigurationError(
                    f"Column '{column.public_name}': property path '{path.path}' "
                    f"does not exist on {getattr(entity_type, '__name__', entity_type)}"
                )
        self._validated.add(key)

    def validate_columns(self, column_names: Iterable[str]) -> None:
        """Check every declared path against the columns of a table.

        Only the first segment of a path is checked; deeper segments address
        nested (struct) values the table metadata does not describe.

        Raises:
            ConfigurationError: If a path starts with an unknown table column
        """
        available = frozenset(column_names)
        key = ("columns", available)
        if key in self._validated:
            return
        lowered = {name.lower() for name in available}
        for column, path in self._declared_paths():
            if path.root not in available and path.root.lower() not in lowered:
                raise ConfigurationError(
                    f"Column '{column.public_name}': '{path.root}' is not a column "
                    f"of the queried table (available: {', '.join(sorted(available))})"
                )
        self._validated.add(key)
        logger.debug(f"Validated {len(self)} catalog columns against table columns")

    def _declared_paths(self) -> Iterator[Tuple[ColumnDescriptor, PropertyPath]]:
        for column in self._columns:
            if column.storage_accessor is not None:
                yield column, column.storage_accessor
            if column.ordering_accessor is not None:
                yield column, column.ordering_accessor
            for expression in _declared_expressions(column):
                for ref in _field_refs(expression):
                    yield column, ref.accessor

    def __iter__(self) -> Iterator[ColumnDescriptor]:
        return iter(self._columns)

    def __len__(self) -> int:
        return len(self._columns)

    def __contains__(self, public_name: object) -> bool:
        return public_name in self._by_name

    def __repr__(self) -> str:
        return f"Catalog({', '.join(self.public_names())})"


def _declared_expressions(column: ColumnDescriptor) -> List[Expression]:
    candidates = [
        column.search_predicate,
        column.column_search_predicate,
        column.global_search_predicate,
        column.ordering_expression,
    ]
    return [item for item in candidates if isinstance(item, Expression)]


def _field_refs(expression: Expression) -> Iterator[FieldRef]:
    if isinstance(expression, FieldRef):
        yield expression
    for child in expression.children():
        yield from _field_refs(child)
