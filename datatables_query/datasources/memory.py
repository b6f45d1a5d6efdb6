"""In-memory queryable over Python objects or mappings."""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..catalog import Catalog
from ..plan.expressions import Expression
from ..plan.ordering import SortDirection
from ..plan.visitors import ExpressionFormatter, RowEvaluator
from .base import Queryable


@dataclass(frozen=True)
class _SortKey:
    expression: Expression
    key: Callable[[Any], Any]
    descending: bool
    case_insensitive: bool


@dataclass(frozen=True)
class _Step:
    """One pipeline operation: ``filter``, ``order``, ``skip`` or ``take``."""

    kind: str
    argument: Any


class InMemoryQueryable(Queryable):
    """Queryable evaluating expressions against rows held in memory.

    Operations run in the order they were added. Ordering uses successive
    stable sorts, so rows that tie on every key keep their relative order.
    """

    def __init__(
        self,
        rows: Iterable[Any],
        entity_type: Optional[type] = None,
        _steps: Tuple[_Step, ...] = (),
    ):
        """Initialize queryable.

        Args:
            rows: Source rows (objects or mappings)
            entity_type: Row type, used to validate catalogs (optional)
        """
        self.rows = rows if isinstance(rows, tuple) else tuple(rows)
        self.entity_type = entity_type
        self._steps = _steps
        self._evaluator = RowEvaluator()

    def _with(self, step: _Step) -> "InMemoryQueryable":
        return InMemoryQueryable(self.rows, self.entity_type, self._steps + (step,))

    def filter(self, predicate: Expression) -> "InMemoryQueryable":
        test = self._evaluator.compile(predicate)
        return self._with(_Step("filter", (predicate, test)))

    def order_by(
        self,
        expression: Expression,
        direction: SortDirection = SortDirection.ASCENDING,
        then: bool = False,
        case_insensitive: bool = False,
    ) -> "InMemoryQueryable":
        key = _SortKey(
            expression,
            self._evaluator.compile(expression),
            direction is SortDirection.DESCENDING,
            case_insensitive,
        )
        if not then:
            return self._with(_Step("order", (key,)))
        if not self._steps or self._steps[-1].kind != "order":
            raise ValueError("then=True requires a preceding order_by")
        previous = self._steps[-1]
        step = _Step("order", previous.argument + (key,))
        return InMemoryQueryable(self.rows, self.entity_type, self._steps[:-1] + (step,))

    def skip(self, count: int) -> "InMemoryQueryable":
        return self._with(_Step("skip", max(count, 0)))

    def take(self, count: int) -> "InMemoryQueryable":
        return self._with(_Step("take", max(count, 0)))

    def count(self) -> int:
        return len(self._run())

    def materialize(self) -> List[Any]:
        return self._run()

    def distinct_values(self, expression: Expression) -> List[Any]:
        value_of = self._evaluator.compile(expression)
        seen = set()
        values = []
        for row in self._run():
            value = value_of(row)
            if value is None or value in seen:
                continue
            seen.add(value)
            values.append(value)
        return values

    def validate(self, catalog: Catalog) -> None:
        if self.entity_type is not None:
            catalog.validate_entity_type(self.entity_type)

    def describe(self) -> str:
        formatter = ExpressionFormatter()
        parts = [f"rows[{len(self.rows)}]"]
        for step in self._steps:
            if step.kind == "filter":
                parts.append(f"where({formatter.format(step.argument[0])})")
            elif step.kind == "order":
                keys = []
                for key in step.argument:
                    text = formatter.format(key.expression)
                    if key.case_insensitive:
                        text = f"lower({text})"
                    keys.append(f"{text} {'desc' if key.descending else 'asc'}")
                parts.append(f"order_by({', '.join(keys)})")
            else:
                parts.append(f"{step.kind}({step.argument})")
        return ".".join(parts)

    def _run(self) -> List[Any]:
        rows = list(self.rows)
        for step in self._steps:
            if step.kind == "filter":
                test = step.argument[1]
                rows = [row for row in rows if test(row)]
            elif step.kind == "order":
                rows = _sort(rows, step.argument)
            elif step.kind == "skip":
                rows = rows[step.argument:]
            elif step.kind == "take":
                rows = rows[: step.argument]
        return rows

    def __repr__(self) -> str:
        return f"InMemoryQueryable({self.describe()})"


def _sort(rows: List[Any], keys: Tuple[_SortKey, ...]) -> List[Any]:
    """Sort by several keys, primary key first."""
    for sort_key in reversed(keys):
        rows = sorted(rows, key=_key_function(sort_key), reverse=sort_key.descending)
    return rows


def _key_function(sort_key: _SortKey) -> Callable[[Any], Any]:
    """Key placing ``None`` before every value (after, once reversed)."""
    evaluate = sort_key.key
    lower = sort_key.case_insensitive

    def key(row):
        value = evaluate(row)
        if value is None:
            return (0, None)
        if lower and isinstance(value, str):
            value = value.lower()
        return (1, value)

    return key

