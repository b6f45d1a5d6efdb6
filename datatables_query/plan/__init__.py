"""Query plan representations (paths, expressions, ordering)."""

from .paths import PropertyPath, PropertyPathError
from .expressions import (
    Expression,
    FieldRef,
    Literal,
    SearchText,
    Lower,
    AsText,
    Trim,
    Concat,
    Coalesce,
    Comparison,
    ComparisonOp,
    Contains,
    RegexMatch,
    And,
    Or,
    Not,
    RowFunction,
    ExpressionVisitor,
    field,
    lit,
    search_text,
    concat,
    and_,
    or_,
    not_,
)
from .visitors import (
    RowEvaluator,
    SearchTextBinder,
    ExpressionFormatter,
    bind_search_text,
    to_text,
    safe_pattern,
)
from .ordering import SortDirection, OrderKey, OrderingPlan, QuerySpec

__all__ = [
    # Paths
    "PropertyPath",
    "PropertyPathError",
    # Expressions
    "Expression",
    "FieldRef",
    "Literal",
    "SearchText",
    "Lower",
    "AsText",
    "Trim",
    "Concat",
    "Coalesce",
    "Comparison",
    "ComparisonOp",
    "Contains",
    "RegexMatch",
    "And",
    "Or",
    "Not",
    "RowFunction",
    "ExpressionVisitor",
    "field",
    "lit",
    "search_text",
    "concat",
    "and_",
    "or_",
    "not_",
    # Visitors
    "RowEvaluator",
    "SearchTextBinder",
    "ExpressionFormatter",
    "bind_search_text",
    "to_text",
    "safe_pattern",
    # Ordering
    "SortDirection",
    "OrderKey",
    "OrderingPlan",
    "QuerySpec",
]
