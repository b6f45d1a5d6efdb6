"""SQL push-down: expressions translated to sqlglot ASTs and run by a data source."""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Tuple
import logging

from sqlglot import exp

from ..catalog import Catalog
from ..plan.expressions import (
    And,
    AsText,
    Coalesce,
    Comparison,
    ComparisonOp,
    Concat,
    Contains,
    Expression,
    ExpressionVisitor,
    FieldRef,
    Literal,
    Lower,
    Not,
    Or,
    RegexMatch,
    RowFunction,
    SearchText,
    Trim,
)
from ..plan.ordering import SortDirection
from ..plan.visitors import ExpressionFormatter, safe_pattern
from .base import DataSource, Queryable

logger = logging.getLogger(__name__)


class UntranslatableExpressionError(ValueError):
    """Raised when an expression cannot be expressed in SQL."""

    pass


_COMPARISONS = {
    ComparisonOp.EQ: exp.EQ,
    ComparisonOp.NEQ: exp.NEQ,
    ComparisonOp.LT: exp.LT,
    ComparisonOp.LTE: exp.LTE,
    ComparisonOp.GT: exp.GT,
    ComparisonOp.GTE: exp.GTE,
}

_TEXT_TYPE_MARKERS = ("CHAR", "TEXT", "STRING")


def _is_text_type(data_type: Optional[str]) -> bool:
    if not data_type:
        return False
    upper = data_type.upper()
    for marker in _TEXT_TYPE_MARKERS:
        if marker in upper:
            return True
    return False


def _text(node: exp.Expression) -> exp.Expression:
    return exp.cast(node, "TEXT")


class SqlTranslator(ExpressionVisitor):
    """Translate expressions into sqlglot expressions.

    Property paths become quoted column references; deeper segments address
    struct fields. Python callables cannot be translated.
    """

    def translate(self, expression: Expression) -> exp.Expression:
        return expression.accept(self)

    def visit_field_ref(self, expr: FieldRef) -> exp.Expression:
        segments = expr.accessor.segments
        column = exp.column(segments[0], quoted=True)
        if len(segments) == 1:
            return column
        parts = [column]
        for segment in segments[1:]:
            parts.append(exp.to_identifier(segment, quoted=True))
        return exp.Dot.build(parts)

    def visit_literal(self, expr: Literal) -> exp.Expression:
        return exp.convert(expr.value)

    def visit_search_text(self, expr: SearchText) -> exp.Expression:
        raise UntranslatableExpressionError(
            "Search text placeholder must be bound before translation"
        )

    def visit_lower(self, expr: Lower) -> exp.Expression:
        return exp.Lower(this=self.translate(expr.operand))

    def visit_as_text(self, expr: AsText) -> exp.Expression:
        return _text(self.translate(expr.operand))

    def visit_trim(self, expr: Trim) -> exp.Expression:
        return exp.Trim(this=self.translate(expr.operand))

    def visit_concat(self, expr: Concat) -> exp.Expression:
        parts = []
        for operand in expr.operands:
            parts.append(
                exp.Coalesce(
                    this=_text(self.translate(operand)),
                    expressions=[exp.Literal.string("")],
                )
            )
        return exp.Concat(expressions=parts)

    def visit_coalesce(self, expr: Coalesce) -> exp.Expression:
        return exp.Coalesce(
            this=self.translate(expr.operand),
            expressions=[self.translate(expr.default)],
        )

    def visit_comparison(self, expr: Comparison) -> exp.Expression:
        node_type = _COMPARISONS[expr.op]
        return node_type(
            this=self.translate(expr.left), expression=self.translate(expr.right)
        )

    def visit_contains(self, expr: Contains) -> exp.Expression:
        position = exp.func(
            "STRPOS",
            _text(self.translate(expr.operand)),
            _text(self.translate(expr.needle)),
        )
        return exp.GT(this=position, expression=exp.Literal.number(0))

    def visit_regex_match(self, expr: RegexMatch) -> exp.Expression:
        text = _text(self.translate(expr.operand))
        prefix = "(?i)" if expr.ignore_case else ""
        if isinstance(expr.pattern, Literal) and isinstance(expr.pattern.value, str):
            pattern = exp.Literal.string(prefix + safe_pattern(expr.pattern.value))
        else:
            pattern = _text(self.translate(expr.pattern))
            if prefix:
                pattern = exp.Concat(expressions=[exp.Literal.string(prefix), pattern])
        return exp.RegexpLike(this=text, expression=pattern)

    def visit_and(self, expr: And) -> exp.Expression:
        return exp.and_(*[self.translate(item) for item in expr.operands])

    def visit_or(self, expr: Or) -> exp.Expression:
        return exp.or_(*[self.translate(item) for item in expr.operands])

    def visit_not(self, expr: Not) -> exp.Expression:
        return exp.not_(self.translate(expr.operand))

    def visit_row_function(self, expr: RowFunction) -> exp.Expression:
        description = ExpressionFormatter().format(expr)
        raise UntranslatableExpressionError(
            f"Python function {description} cannot be translated to SQL; "
            f"declare the predicate or ordering target as an expression"
        )


@dataclass(frozen=True)
class _QueryState:
    """Clauses of the SELECT built so far."""

    source: Optional[exp.Expression] = None  # wrapped subquery, if any
    filters: Tuple[exp.Expression, ...] = ()
    orders: Tuple[exp.Ordered, ...] = ()
    offset: int = 0
    limit: Optional[int] = None

    @property
    def paged(self) -> bool:
        return self.offset > 0 or self.limit is not None


class SqlQueryable(Queryable):
    """Queryable over one table of a SQL data source.

    Builder calls accumulate clauses of a single ``SELECT``; a filter or
    ordering added after paging wraps the query so far in a subquery.
    Table column types are loaded once per chain, to validate catalogs and
    to decide which keys can be ordered case-insensitively.
    """

    def __init__(
        self,
        source: DataSource,
        table: str,
        schema: Optional[str] = None,
        _state: Optional[_QueryState] = None,
        _metadata: Optional[Dict[str, Any]] = None,
    ):
        self.source = source
        self.table = table
        self.schema = schema
        self._state = _state or _QueryState()
        self._metadata = _metadata if _metadata is not None else {}
        self._translator = SqlTranslator()

    def _with(self, state: _QueryState) -> "SqlQueryable":
        return SqlQueryable(self.source, self.table, self.schema, state, self._metadata)

    def _unpaged_state(self) -> _QueryState:
        if self._state.paged:
            return _QueryState(source=self.build_query().subquery("q"))
        return self._state

    def filter(self, predicate: Expression) -> "SqlQueryable":
        condition = self._translator.translate(predicate)
        state = self._unpaged_state()
        return self._with(replace(state, filters=state.filters + (condition,)))

    def order_by(
        self,
        expression: Expression,
        direction: SortDirection = SortDirection.ASCENDING,
        then: bool = False,
        case_insensitive: bool = False,
    ) -> "SqlQueryable":
        key = self._translator.translate(expression)
        if case_insensitive and self._is_text(expression):
            key = exp.Lower(this=key)
        descending = direction is SortDirection.DESCENDING
        ordered = exp.Ordered(this=key, desc=descending, nulls_first=not descending)

        if then:
            if not self._state.orders or self._state.paged:
                raise ValueError("then=True requires a preceding order_by")
            return self._with(replace(self._state, orders=self._state.orders + (ordered,)))
        state = self._unpaged_state()
        return self._with(replace(state, orders=(ordered,)))

    def skip(self, count: int) -> "SqlQueryable":
        state = self._state
        if state.limit is not None:
            state = _QueryState(source=self.build_query().subquery("q"))
        return self._with(replace(state, offset=state.offset + max(count, 0)))

    def take(self, count: int) -> "SqlQueryable":
        count = max(count, 0)
        limit = count if self._state.limit is None else min(self._state.limit, count)
        return self._with(replace(self._state, limit=limit))

    def build_query(self, ordered: bool = True) -> exp.Select:
        """SELECT statement for the current state."""
        state = self._state
        source = state.source
        if source is None:
            source = exp.table_(self.table, db=self.schema, quoted=True)
        query = exp.select("*").from_(source)
        if state.filters:
            query = query.where(exp.and_(*state.filters))
        if state.orders and (ordered or state.paged):
            query = query.order_by(*state.orders)
        if state.limit is not None:
            query = query.limit(state.limit)
        if state.offset:
            query = query.offset(state.offset)
        return query

    def sql(self) -> str:
        return self.build_query().sql(dialect=self.source.dialect)

    def count(self) -> int:
        inner = self.build_query(ordered=False).subquery("counted")
        query = exp.select(exp.Count(this=exp.Star()).as_("total")).from_(inner)
        rows = self.source.fetch_rows(query.sql(dialect=self.source.dialect))
        return int(rows[0]["total"]) if rows else 0

    def materialize(self) -> List[Dict[str, Any]]:
        return self.source.fetch_rows(self.sql())

    def distinct_values(self, expression: Expression) -> List[Any]:
        value = self._translator.translate(expression)
        inner = self.build_query(ordered=False).subquery("d")
        query = (
            exp.select(value.as_("value"))
            .distinct()
            .from_(inner)
            .where(exp.not_(exp.Is(this=value.copy(), expression=exp.Null())))
        )
        rows = self.source.fetch_rows(query.sql(dialect=self.source.dialect))
        values = []
        for row in rows:
            values.append(row["value"])
        return values

    def describe(self) -> str:
        return self.sql()

    def validate(self, catalog: Catalog) -> None:
        catalog.validate_columns(self.column_types().keys())

    def column_types(self) -> Dict[str, str]:
        """Column name to data type of the queried table (loaded once)."""
        if "columns" not in self._metadata:
            metadata = self.source.get_table_metadata(self.schema, self.table)
            types = {}
            for column in metadata.columns:
                types[column.name] = column.data_type
            self._metadata["columns"] = types
        return self._metadata["columns"]

    def _is_text(self, expression: Expression) -> bool:
        if not isinstance(expression, FieldRef) or len(expression.accessor.segments) > 1:
            return False
        types = self.column_types()
        name = expression.accessor.root
        if name in types:
            return _is_text_type(types[name])
        for column_name, data_type in types.items():
            if column_name.lower() == name.lower():
                return _is_text_type(data_type)
        return False

    def __repr__(self) -> str:
        return f"SqlQueryable({self.source.name}: {self.sql()})"
