"""Compose the filter predicate of a request.

Global search ORs one test per searchable column; column search ANDs one
test per column that carries a search value; the two halves are ANDed.
The test for a column comes from the first provider of the matching chain
that returns something, falling back to a substring (or regex) test on the
column's stored value.
"""

import logging
from typing import Callable, Optional, Tuple

from ..catalog import ColumnDescriptor, ConfigurationError, Predicate
from ..parser import ParsedRequest
from ..plan.expressions import (
    AsText,
    Contains,
    Expression,
    Literal,
    Lower,
    RegexMatch,
    RowFunction,
    and_,
    or_,
)
from ..plan.visitors import bind_search_text

logger = logging.getLogger(__name__)

PredicateProvider = Callable[[ColumnDescriptor, str], Optional[Predicate]]


def factory_provider(attribute: str) -> PredicateProvider:
    """Provider calling the column's predicate factory with the search text."""

    def provide(column: ColumnDescriptor, search_text: str) -> Optional[Predicate]:
        factory = getattr(column, attribute)
        if factory is None:
            return None
        return factory(search_text)

    provide.__name__ = attribute
    return provide


def static_provider(attribute: str) -> PredicateProvider:
    """Provider returning the column's static predicate."""

    def provide(column: ColumnDescriptor, search_text: str) -> Optional[Predicate]:
        return getattr(column, attribute)

    provide.__name__ = attribute
    return provide


GLOBAL_SEARCH_CHAIN: Tuple[PredicateProvider, ...] = (
    factory_provider("global_search_predicate_factory"),
    factory_provider("search_predicate_factory"),
    static_provider("global_search_predicate"),
    static_provider("search_predicate"),
)

COLUMN_SEARCH_CHAIN: Tuple[PredicateProvider, ...] = (
    factory_provider("column_search_predicate_factory"),
    factory_provider("search_predicate_factory"),
    static_provider("column_search_predicate"),
    static_provider("search_predicate"),
)


def default_test(column: ColumnDescriptor, search_text: str, regex: bool) -> Expression:
    """Substring or regex test against the column's stored value as text.

    Raises:
        ConfigurationError: If the column has no storage path
    """
    value = AsText(column.storage_expression())
    if regex:
        return RegexMatch(value, Literal(search_text), column.search_case_insensitive)
    if column.search_case_insensitive:
        return Contains(Lower(value), Lower(Literal(search_text)))
    return Contains(value, Literal(search_text))


def as_expression(predicate: Predicate, search_text: str, column: ColumnDescriptor) -> Expression:
    """Normalize a predicate override into a bound expression."""
    if isinstance(predicate, Expression):
        return bind_search_text(predicate, search_text)
    if callable(predicate):
        return RowFunction(predicate, (Literal(search_text),))
    raise ConfigurationError(
        f"Column '{column.public_name}': predicate override must be an expression "
        f"or a callable, got {type(predicate).__name__}"
    )


def resolve_test(
    column: ColumnDescriptor,
    search_text: str,
    chain: Tuple[PredicateProvider, ...],
    regex: bool,
) -> Expression:
    """Test for one column: first provider answer wins, else the default."""
    for provider in chain:
        predicate = provider(column, search_text)
        if predicate is not None:
            return as_expression(predicate, search_text, column)
    return default_test(column, search_text, regex)


class PredicateComposer:
    """Builds the single filter predicate of a request."""

    def __init__(
        self,
        global_chain: Tuple[PredicateProvider, ...] = GLOBAL_SEARCH_CHAIN,
        column_chain: Tuple[PredicateProvider, ...] = COLUMN_SEARCH_CHAIN,
    ):
        self.global_chain = global_chain
        self.column_chain = column_chain

    def compose(self, request: ParsedRequest) -> Optional[Expression]:
        """Compose the predicate, or ``None`` when nothing filters."""
        global_test = self.compose_global(request)
        column_test = self.compose_columns(request)
        if global_test is None:
            return column_test
        if column_test is None:
            return global_test
        return and_(global_test, column_test)

    def compose_global(self, request: ParsedRequest) -> Optional[Expression]:
        """OR of the per-column tests for the global search value."""
        search_text = request.global_search_value
        if not search_text:
            return None
        columns = request.searchable_columns()
        if not columns:
            return None
        tests = []
        for column in columns:
            regex = request.global_search_regex and column.search_regex
            tests.append(resolve_test(column, search_text, self.global_chain, regex))
        return or_(*tests)

    def compose_columns(self, request: ParsedRequest) -> Optional[Expression]:
        """AND of the per-column tests for column search values."""
        tests = []
        for column in request.columns:
            if not column.is_searchable or not column.search_value:
                continue
            tests.append(
                resolve_test(
                    column,
                    column.search_value,
                    self.column_chain,
                    column.column_search_regex,
                )
            )
        if not tests:
            return None
        return and_(*tests)
