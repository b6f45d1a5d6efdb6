"""Expression visitors for in-memory evaluation, binding and formatting."""

from functools import lru_cache
import operator
import re
from typing import Any, Callable, Optional

from .expressions import (
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

RowFn = Callable[[Any], Any]

_COMPARATORS = {
    ComparisonOp.EQ: operator.eq,
    ComparisonOp.NEQ: operator.ne,
    ComparisonOp.LT: operator.lt,
    ComparisonOp.LTE: operator.le,
    ComparisonOp.GT: operator.gt,
    ComparisonOp.GTE: operator.ge,
}


def to_text(value: Any) -> Optional[str]:
    """Render a value as text the way SQL ``CAST(... AS VARCHAR)`` does."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


# Lookaround, atomic groups, backreferences and \Z: valid for Python but
# rejected by RE2 (DuckDB) or PostgreSQL.
_NON_PORTABLE = re.compile(r"\(\?(?:<[=!]|[=!>]|P=)|\\[1-9]|\\Z")
_METACHARACTERS = re.compile(r"([\\.^$|?*+()\[\]{}])")


def escape_pattern(text: str) -> str:
    """Escape regex metacharacters only, so every engine reads the result literally."""
    return _METACHARACTERS.sub(r"\\\1", text)


def safe_pattern(pattern: str) -> str:
    """Return the pattern, or its escaped literal form if it is not portable.

    A pattern that does not compile, or that uses a construct some SQL
    engines lack, is matched as literal text on every source.
    """
    if _NON_PORTABLE.search(pattern):
        return escape_pattern(pattern)
    try:
        re.compile(pattern)
    except re.error:
        return escape_pattern(pattern)
    return pattern


@lru_cache(maxsize=256)
def compile_pattern(pattern: str, ignore_case: bool = False) -> "re.Pattern":
    flags = re.IGNORECASE if ignore_case else 0
    return re.compile(safe_pattern(pattern), flags)


class RowEvaluator(ExpressionVisitor):
    """Compile an expression into a plain Python function over rows.

    Predicates follow SQL three-valued logic: a test on a ``None`` operand
    yields ``None`` ("unknown"), and only rows whose predicate is ``True``
    survive filtering. The search-text placeholder must be bound first.
    """

    def compile(self, expression: Expression) -> RowFn:
        return expression.accept(self)

    def evaluate(self, expression: Expression, row: Any) -> Any:
        return self.compile(expression)(row)

    def visit_field_ref(self, expr: FieldRef) -> RowFn:
        return expr.accessor.resolve

    def visit_literal(self, expr: Literal) -> RowFn:
        value = expr.value
        return lambda row: value

    def visit_search_text(self, expr: SearchText) -> RowFn:
        raise ValueError("Search text placeholder must be bound before evaluation")

    def visit_lower(self, expr: Lower) -> RowFn:
        operand = self.compile(expr.operand)

        def lower(row):
            text = to_text(operand(row))
            return None if text is None else text.lower()

        return lower

    def visit_as_text(self, expr: AsText) -> RowFn:
        operand = self.compile(expr.operand)
        return lambda row: to_text(operand(row))

    def visit_trim(self, expr: Trim) -> RowFn:
        operand = self.compile(expr.operand)

        def trim(row):
            text = to_text(operand(row))
            return None if text is None else text.strip()

        return trim

    def visit_concat(self, expr: Concat) -> RowFn:
        parts = [self.compile(part) for part in expr.operands]

        def concat(row):
            pieces = []
            for part in parts:
                text = to_text(part(row))
                pieces.append("" if text is None else text)
            return "".join(pieces)

        return concat

    def visit_coalesce(self, expr: Coalesce) -> RowFn:
        operand = self.compile(expr.operand)
        default = self.compile(expr.default)

        def coalesce(row):
            value = operand(row)
            return default(row) if value is None else value

        return coalesce

    def visit_comparison(self, expr: Comparison) -> RowFn:
        left = self.compile(expr.left)
        right = self.compile(expr.right)
        compare = _COMPARATORS[expr.op]

        def comparison(row):
            left_value = left(row)
            right_value = right(row)
            if left_value is None or right_value is None:
                return None
            return compare(left_value, right_value)

        return comparison

    def visit_contains(self, expr: Contains) -> RowFn:
        operand = self.compile(expr.operand)
        needle = self.compile(expr.needle)

        def contains(row):
            haystack = to_text(operand(row))
            term = to_text(needle(row))
            if haystack is None or term is None:
                return None
            return term in haystack

        return contains

    def visit_regex_match(self, expr: RegexMatch) -> RowFn:
        operand = self.compile(expr.operand)
        pattern = self.compile(expr.pattern)
        ignore_case = expr.ignore_case

        def regex_match(row):
            text = to_text(operand(row))
            source = to_text(pattern(row))
            if text is None or source is None:
                return None
            return compile_pattern(source, ignore_case).search(text) is not None

        return regex_match

    def visit_and(self, expr: And) -> RowFn:
        operands = [self.compile(item) for item in expr.operands]

        def conjunction(row):
            unknown = False
            for item in operands:
                value = item(row)
                if value is None:
                    unknown = True
                elif not value:
                    return False
            return None if unknown else True

        return conjunction

    def visit_or(self, expr: Or) -> RowFn:
        operands = [self.compile(item) for item in expr.operands]

        def disjunction(row):
            unknown = False
            for item in operands:
                value = item(row)
                if value is None:
                    unknown = True
                elif value:
                    return True
            return None if unknown else False

        return disjunction

    def visit_not(self, expr: Not) -> RowFn:
        operand = self.compile(expr.operand)

        def negation(row):
            value = operand(row)
            return None if value is None else not value

        return negation

    def visit_row_function(self, expr: RowFunction) -> RowFn:
        function = expr.function
        arguments = [self.compile(argument) for argument in expr.arguments]

        def call(row):
            values = [argument(row) for argument in arguments]
            return function(row, *values)

        return call


class SearchTextBinder(ExpressionVisitor):
    """Replace the search-text placeholder with a literal value."""

    def __init__(self, value: str):
        self.value = value

    def bind(self, expression: Expression) -> Expression:
        return expression.accept(self)

    def visit_field_ref(self, expr: FieldRef) -> Expression:
        return expr

    def visit_literal(self, expr: Literal) -> Expression:
        return expr

    def visit_search_text(self, expr: SearchText) -> Expression:
        return Literal(self.value)

    def visit_lower(self, expr: Lower) -> Expression:
        return Lower(self.bind(expr.operand))

    def visit_as_text(self, expr: AsText) -> Expression:
        return AsText(self.bind(expr.operand))

    def visit_trim(self, expr: Trim) -> Expression:
        return Trim(self.bind(expr.operand))

    def visit_concat(self, expr: Concat) -> Expression:
        return Concat(tuple(self.bind(part) for part in expr.operands))

    def visit_coalesce(self, expr: Coalesce) -> Expression:
        return Coalesce(self.bind(expr.operand), self.bind(expr.default))

    def visit_comparison(self, expr: Comparison) -> Expression:
        return Comparison(expr.op, self.bind(expr.left), self.bind(expr.right))

    def visit_contains(self, expr: Contains) -> Expression:
        return Contains(self.bind(expr.operand), self.bind(expr.needle))

    def visit_regex_match(self, expr: RegexMatch) -> Expression:
        return RegexMatch(
            self.bind(expr.operand), self.bind(expr.pattern), expr.ignore_case
        )

    def visit_and(self, expr: And) -> Expression:
        return And(tuple(self.bind(item) for item in expr.operands))

    def visit_or(self, expr: Or) -> Expression:
        return Or(tuple(self.bind(item) for item in expr.operands))

    def visit_not(self, expr: Not) -> Expression:
        return Not(self.bind(expr.operand))

    def visit_row_function(self, expr: RowFunction) -> Expression:
        return RowFunction(
            expr.function, tuple(self.bind(argument) for argument in expr.arguments)
        )


def bind_search_text(expression: Expression, value: str) -> Expression:
    """Bind every search-text placeholder in ``expression`` to ``value``."""
    return SearchTextBinder(value).bind(expression)


class ExpressionFormatter(ExpressionVisitor):
    """Render an expression as a short, human-readable string."""

    def format(self, expression: Expression) -> str:
        return expression.accept(self)

    def visit_field_ref(self, expr: FieldRef) -> str:
        return expr.path

    def visit_literal(self, expr: Literal) -> str:
        return repr(expr.value)

    def visit_search_text(self, expr: SearchText) -> str:
        return "<search>"

    def visit_lower(self, expr: Lower) -> str:
        return f"lower({self.format(expr.operand)})"

    def visit_as_text(self, expr: AsText) -> str:
        return f"text({self.format(expr.operand)})"

    def visit_trim(self, expr: Trim) -> str:
        return f"trim({self.format(expr.operand)})"

    def visit_concat(self, expr: Concat) -> str:
        return " || ".join(self.format(part) for part in expr.operands)

    def visit_coalesce(self, expr: Coalesce) -> str:
        return f"coalesce({self.format(expr.operand)}, {self.format(expr.default)})"

    def visit_comparison(self, expr: Comparison) -> str:
        return f"{self.format(expr.left)} {expr.op.value} {self.format(expr.right)}"

    def visit_contains(self, expr: Contains) -> str:
        return f"{self.format(expr.operand)} CONTAINS {self.format(expr.needle)}"

    def visit_regex_match(self, expr: RegexMatch) -> str:
        keyword = "~*" if expr.ignore_case else "~"
        return f"{self.format(expr.operand)} {keyword} {self.format(expr.pattern)}"

    def visit_and(self, expr: And) -> str:
        return "(" + " AND ".join(self.format(item) for item in expr.operands) + ")"

    def visit_or(self, expr: Or) -> str:
        return "(" + " OR ".join(self.format(item) for item in expr.operands) + ")"

    def visit_not(self, expr: Not) -> str:
        return f"NOT {self.format(expr.operand)}"

    def visit_row_function(self, expr: RowFunction) -> str:
        name = getattr(expr.function, "__qualname__", "function")
        arguments = ", ".join(["row"] + [self.format(a) for a in expr.arguments])
        return f"{name}({arguments})"
