"""Compose the ordering plan of a request."""

from ..catalog import ColumnDescriptor
from ..parser import ParsedRequest
from ..plan.expressions import Expression, FieldRef, RowFunction
from ..plan.ordering import OrderKey, OrderingPlan


class OrderComposer:
    """Builds ordering keys from the columns the client sorted by.

    The target of a key is, in order of preference, the column's ordering
    expression, its ordering property, then its storage path. Case-insensitive
    ordering only applies to property targets.
    """

    def compose(self, request: ParsedRequest) -> OrderingPlan:
        keys = []
        for column in request.ordered_columns():
            keys.append(self.order_key(column))
        return OrderingPlan(tuple(keys))

    def order_key(self, column: ColumnDescriptor) -> OrderKey:
        target = column.ordering_expression
        if target is not None:
            if not isinstance(target, Expression):
                target = RowFunction(target)
            return OrderKey(target, column.ordering_direction, False)

        if column.ordering_property is not None:
            target = FieldRef(column.ordering_property)
        else:
            target = column.storage_expression()
        return OrderKey(
            target, column.ordering_direction, column.ordering_case_insensitive
        )
