"""Row selection by entity and condition."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .condition import Condition, ConditionList, Operator
from .entity import Entity


if TYPE_CHECKING:
    from .row import Row


class Query:
    """Select the rows of one entity that satisfy an optional condition.

    Examples:
        ```python
        query = Query("Person")
        query.add_condition("Age", Operator.GREATER_THAN, 30)
        rows = site.get_rows(query)
        ```
    """

    def __init__(
        self, entity: Entity | str, condition: Condition | ConditionList | None = None
    ) -> None:
        self.entity_name = entity.name if isinstance(entity, Entity) else entity
        self.condition = condition

    def __repr__(self) -> str:
        return f"Query({self.entity_name!r}, {self.condition!r})"

    def add_condition(self, property_name: str, op: Operator, value: Any) -> Query:
        """AND a new comparison onto the current condition."""
        condition = Condition(property_name, op, value)
        if self.condition is None:
            self.condition = condition
        elif isinstance(self.condition, ConditionList) and all(
            o is Operator.AND for o in self.condition.operators
        ):
            self.condition.add_condition(Operator.AND, condition)
        else:
            combined = ConditionList()
            combined.add_condition(Operator.AND, self.condition)
            combined.add_condition(Operator.AND, condition)
            self.condition = combined
        return self

    def matches(self, row: Row) -> bool:
        return self.condition is None or self.condition.evaluate(row)
