"""Expression nodes for row predicates and ordering targets.

Expressions are immutable trees. The same tree can be evaluated against
in-memory rows (``RowEvaluator``) or translated to SQL by the SQL data
sources, so a predicate declared once works against every data source that
can express it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field as dataclass_field
from enum import Enum
from typing import Any, Callable, Tuple, Union

from .paths import PropertyPath


class Expression(ABC):
    """Base class for all expressions."""

    @abstractmethod
    def accept(self, visitor):
        """Accept a visitor for the visitor pattern."""
        pass

    def children(self) -> Tuple["Expression", ...]:
        """Direct sub-expressions."""
        return ()

    # Fluent builders. ``__eq__`` is deliberately left to the dataclasses so
    # trees can be compared structurally; use ``eq()`` for a comparison node.

    def lower(self) -> "Lower":
        return Lower(self)

    def as_text(self) -> "AsText":
        return AsText(self)

    def trim(self) -> "Trim":
        return Trim(self)

    def coalesce(self, default: Any) -> "Coalesce":
        return Coalesce(self, _coerce(default))

    def contains(self, needle: Any) -> "Contains":
        return Contains(self, _coerce(needle))

    def matches(self, pattern: Any, ignore_case: bool = False) -> "RegexMatch":
        return RegexMatch(self, _coerce(pattern), ignore_case)

    def eq(self, other: Any) -> "Comparison":
        return Comparison(ComparisonOp.EQ, self, _coerce(other))

    def ne(self, other: Any) -> "Comparison":
        return Comparison(ComparisonOp.NEQ, self, _coerce(other))

    def lt(self, other: Any) -> "Comparison":
        return Comparison(ComparisonOp.LT, self, _coerce(other))

    def le(self, other: Any) -> "Comparison":
        return Comparison(ComparisonOp.LTE, self, _coerce(other))

    def gt(self, other: Any) -> "Comparison":
        return Comparison(ComparisonOp.GT, self, _coerce(other))

    def ge(self, other: Any) -> "Comparison":
        return Comparison(ComparisonOp.GTE, self, _coerce(other))

    def __and__(self, other: "Expression") -> "Expression":
        return and_(self, other)

    def __or__(self, other: "Expression") -> "Expression":
        return or_(self, other)

    def __invert__(self) -> "Not":
        return Not(self)


@dataclass(frozen=True)
class FieldRef(Expression):
    """Reference to a row property by dotted path."""

    path: str
    accessor: PropertyPath = dataclass_field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "accessor", PropertyPath(self.path))

    def accept(self, visitor):
        return visitor.visit_field_ref(self)

    def __repr__(self) -> str:
        return f"FieldRef({self.path})"


@dataclass(frozen=True)
class Literal(Expression):
    """Constant value."""

    value: Any

    def accept(self, visitor):
        return visitor.visit_literal(self)

    def __repr__(self) -> str:
        return f"Literal({self.value!r})"


@dataclass(frozen=True)
class SearchText(Expression):
    """Placeholder for the search value, bound when a predicate is composed."""

    def accept(self, visitor):
        return visitor.visit_search_text(self)

    def __repr__(self) -> str:
        return "SearchText()"


@dataclass(frozen=True)
class Lower(Expression):
    """Lower-cased text."""

    operand: Expression

    def accept(self, visitor):
        return visitor.visit_lower(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)


@dataclass(frozen=True)
class AsText(Expression):
    """Value coerced to text."""

    operand: Expression

    def accept(self, visitor):
        return visitor.visit_as_text(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)


@dataclass(frozen=True)
class Trim(Expression):
    """Text without leading and trailing whitespace."""

    operand: Expression

    def accept(self, visitor):
        return visitor.visit_trim(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)


@dataclass(frozen=True)
class Concat(Expression):
    """Text concatenation. ``None`` parts concatenate as empty text."""

    operands: Tuple[Expression, ...]

    def accept(self, visitor):
        return visitor.visit_concat(self)

    def children(self) -> Tuple[Expression, ...]:
        return self.operands


@dataclass(frozen=True)
class Coalesce(Expression):
    """First operand, or the default when it is ``None``."""

    operand: Expression
    default: Expression

    def accept(self, visitor):
        return visitor.visit_coalesce(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand, self.default)


class ComparisonOp(Enum):
    """Comparison operator types."""

    EQ = "="
    NEQ = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="


@dataclass(frozen=True)
class Comparison(Expression):
    """Binary comparison."""

    op: ComparisonOp
    left: Expression
    right: Expression

    def accept(self, visitor):
        return visitor.visit_comparison(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.left, self.right)

    def __repr__(self) -> str:
        return f"Comparison({self.op.value}, {self.left}, {self.right})"


@dataclass(frozen=True)
class Contains(Expression):
    """Substring containment test."""

    operand: Expression
    needle: Expression

    def accept(self, visitor):
        return visitor.visit_contains(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand, self.needle)


@dataclass(frozen=True)
class RegexMatch(Expression):
    """Regular expression search (matches anywhere in the text)."""

    operand: Expression
    pattern: Expression
    ignore_case: bool = False

    def accept(self, visitor):
        return visitor.visit_regex_match(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand, self.pattern)


@dataclass(frozen=True)
class And(Expression):
    """Logical conjunction."""

    operands: Tuple[Expression, ...]

    def accept(self, visitor):
        return visitor.visit_and(self)

    def children(self) -> Tuple[Expression, ...]:
        return self.operands


@dataclass(frozen=True)
class Or(Expression):
    """Logical disjunction."""

    operands: Tuple[Expression, ...]

    def accept(self, visitor):
        return visitor.visit_or(self)

    def children(self) -> Tuple[Expression, ...]:
        return self.operands


@dataclass(frozen=True)
class Not(Expression):
    """Logical negation."""

    operand: Expression

    def accept(self, visitor):
        return visitor.visit_not(self)

    def children(self) -> Tuple[Expression, ...]:
        return (self.operand,)


@dataclass(frozen=True)
class RowFunction(Expression):
    """Opaque Python callable invoked as ``function(row, *arguments)``.

    Used for predicates and ordering keys written as plain functions. Such
    expressions can only be evaluated in memory; SQL data sources reject them.
    """

    function: Callable[..., Any]
    arguments: Tuple[Expression, ...] = ()

    def accept(self, visitor):
        return visitor.visit_row_function(self)

    def children(self) -> Tuple[Expression, ...]:
        return self.arguments

    def __repr__(self) -> str:
        name = getattr(self.function, "__qualname__", repr(self.function))
        return f"RowFunction({name})"


class ExpressionVisitor(ABC):
    """Visitor interface for expressions."""

    @abstractmethod
    def visit_field_ref(self, expr: FieldRef):
        pass

    @abstractmethod
    def visit_literal(self, expr: Literal):
        pass

    @abstractmethod
    def visit_search_text(self, expr: SearchText):
        pass

    @abstractmethod
    def visit_lower(self, expr: Lower):
        pass

    @abstractmethod
    def visit_as_text(self, expr: AsText):
        pass

    @abstractmethod
    def visit_trim(self, expr: Trim):
        pass

    @abstractmethod
    def visit_concat(self, expr: Concat):
        pass

    @abstractmethod
    def visit_coalesce(self, expr: Coalesce):
        pass

    @abstractmethod
    def visit_comparison(self, expr: Comparison):
        pass

    @abstractmethod
    def visit_contains(self, expr: Contains):
        pass

    @abstractmethod
    def visit_regex_match(self, expr: RegexMatch):
        pass

    @abstractmethod
    def visit_and(self, expr: And):
        pass

    @abstractmethod
    def visit_or(self, expr: Or):
        pass

    @abstractmethod
    def visit_not(self, expr: Not):
        pass

    @abstractmethod
    def visit_row_function(self, expr: RowFunction):
        pass


def field(path: str) -> FieldRef:
    """Reference a row property, e.g. ``field("Location.City")``."""
    return FieldRef(path)


def lit(value: Any) -> Literal:
    """Wrap a constant."""
    return Literal(value)


def search_text() -> SearchText:
    """Placeholder for the search value typed by the user."""
    return SearchText()


def concat(*parts: Any) -> Concat:
    """Concatenate expressions and constants as text."""
    return Concat(tuple(_coerce(part) for part in parts))


def and_(*operands: Expression) -> Expression:
    """Conjunction of operands, flattening nested conjunctions."""
    return _combine(And, operands)


def or_(*operands: Expression) -> Expression:
    """Disjunction of operands, flattening nested disjunctions."""
    return _combine(Or, operands)


def not_(operand: Expression) -> Not:
    return Not(operand)


def _combine(node_type, operands) -> Expression:
    flat = []
    for operand in operands:
        if isinstance(operand, node_type):
            flat.extend(operand.operands)
        else:
            flat.append(operand)
    if not flat:
        raise ValueError(f"{node_type.__name__} requires at least one operand")
    if len(flat) == 1:
        return flat[0]
    return node_type(tuple(flat))


def _coerce(value: Union[Expression, Any]) -> Expression:
    if isinstance(value, Expression):
        return value
    return Literal(value)
