"""
Structured query filters for read endpoints.

Routes collect typed predicates instead of concatenating SQL::

    query = (
        QueryFilter(Activity)
        .equals(Activity.project_id, project_id)
        .since(Activity.created_at, since)
        .order_by(Activity.created_at.desc())
        .limit(limit)
        .apply(select(Activity))
    )

Every predicate method ignores a ``None`` value so optional query
parameters can be passed straight through.
"""

from datetime import datetime
from typing import Any, Iterable, List, Optional
from sqlalchemy import and_, or_, Select


class QueryFilter:
    """Collects predicates, ordering and a limit, then applies them to a select."""

    def __init__(self, model=None):
        self.model = model
        self.predicates: List[Any] = []
        self.applied: List[str] = []
        self._order_by: List[Any] = []
        self._limit: Optional[int] = None

    def _add(self, predicate, name: str) -> "QueryFilter":
        self.predicates.append(predicate)
        self.applied.append(name)
        return self

    def equals(self, column, value: Any) -> "QueryFilter":
        if value is None:
            return self
        return self._add(column == value, column.key)

    def contains(self, columns, text: Optional[str]) -> "QueryFilter":
        """LIKE ``%text%`` across one or more columns (OR-ed)."""
        if not text:
            return self
        if not isinstance(columns, (list, tuple)):
            columns = [columns]
        pattern = f"%{text}%"
        return self._add(
            or_(*[column.like(pattern) for column in columns]),
            "contains:" + ",".join(c.key for c in columns)
        )

    def since(self, column, value: Optional[datetime]) -> "QueryFilter":
        if value is None:
            return self
        return self._add(column >= value, f"{column.key}>=")

    def until(self, column, value: Optional[datetime]) -> "QueryFilter":
        if value is None:
            return self
        return self._add(column <= value, f"{column.key}<=")

    def one_of(self, column, values: Optional[Iterable[Any]]) -> "QueryFilter":
        if values is None:
            return self
        values = list(values)
        if not values:
            return self
        return self._add(column.in_(values), f"{column.key} in")

    def where(self, predicate, name: str = "custom") -> "QueryFilter":
        """Add an arbitrary SQLAlchemy predicate."""
        return self._add(predicate, name)

    def order_by(self, *clauses) -> "QueryFilter":
        self._order_by.extend(clauses)
        return self

    def limit(self, value: Optional[int]) -> "QueryFilter":
        self._limit = value
        return self

    def apply(self, query: Select) -> Select:
        if self.predicates:
            query = query.where(and_(*self.predicates))
        if self._order_by:
            query = query.order_by(*self._order_by)
        if self._limit is not None:
            query = query.limit(self._limit)
        return query
