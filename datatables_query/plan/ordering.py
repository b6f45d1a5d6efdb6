"""Ordering plan and composed query specification."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .expressions import Expression


class SortDirection(Enum):
    """Direction of one ordering key."""

    ASCENDING = "asc"
    DESCENDING = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortDirection":
        """``desc`` (any case) is descending; anything else is ascending."""
        if value is not None and value.strip().lower() == "desc":
            return cls.DESCENDING
        return cls.ASCENDING


@dataclass(frozen=True)
class OrderKey:
    """One key of an ordering plan.

    ``case_insensitive`` asks the data source to compare text values
    lower-cased; non-text values are ordered as-is.
    """

    expression: Expression
    direction: SortDirection = SortDirection.ASCENDING
    case_insensitive: bool = False

    @property
    def descending(self) -> bool:
        return self.direction is SortDirection.DESCENDING


@dataclass(frozen=True)
class OrderingPlan:
    """Ordered sequence of keys; the first key is the primary sort."""

    keys: Tuple[OrderKey, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self):
        return iter(self.keys)


@dataclass(frozen=True)
class QuerySpec:
    """Filter predicate and ordering plan composed from one request.

    A ``None`` predicate keeps every row.
    """

    predicate: Optional[Expression] = None
    ordering: OrderingPlan = OrderingPlan()
