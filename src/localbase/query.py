"""
Query Builder for Localbase
Immutable query specifications built through a fluent interface, interpreted by one executor
"""

import json
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar, Union

from .errors import NotFoundError, ValidationError
from .response import respond

Record = Dict[str, Any]

_MISSING = object()


class Operator(Enum):
    EQ = 'eq'
    NEQ = 'neq'
    GT = 'gt'
    GTE = 'gte'
    LT = 'lt'
    LTE = 'lte'
    IN = 'in'


def _same(left: Any, right: Any) -> bool:
    # bool is an int subclass; True must not equal 1 here
    if isinstance(left, bool) != isinstance(right, bool):
        return False
    return left == right


@dataclass(frozen=True)
class Condition:
    column: str
    operator: Operator
    value: Any = None

    def evaluate(self, row: Record) -> bool:
        col_value = row.get(self.column, _MISSING)
        if col_value is _MISSING:
            return False

        if self.operator == Operator.EQ:
            return _same(col_value, self.value)
        if self.operator == Operator.NEQ:
            return not _same(col_value, self.value)
        if self.operator == Operator.IN:
            return any(_same(col_value, v) for v in self.value)

        if col_value is None or self.value is None:
            return False
        try:
            if self.operator == Operator.GT:
                return col_value > self.value
            if self.operator == Operator.GTE:
                return col_value >= self.value
            if self.operator == Operator.LT:
                return col_value < self.value
            if self.operator == Operator.LTE:
                return col_value <= self.value
        except TypeError:
            return False
        return False


@dataclass(frozen=True)
class OrderBy:
    column: str
    ascending: bool = True


@dataclass(frozen=True)
class QuerySpec:
    collection: str
    columns: Optional[Tuple[str, ...]] = None
    filters: Tuple[Condition, ...] = ()
    order_by: Tuple[OrderBy, ...] = ()
    limit: Optional[int] = None
    offset: int = 0
    single: bool = False

    def matches(self, row: Record) -> bool:
        return all(c.evaluate(row) for c in self.filters)

    def signature(self) -> str:
        payload = {
            'collection': self.collection,
            'columns': list(self.columns) if self.columns is not None else '*',
            'filters': [(c.column, c.operator.value, c.value) for c in self.filters],
            'order_by': [(o.column, o.ascending) for o in self.order_by],
            'limit': self.limit,
            'offset': self.offset,
            'single': self.single
        }
        return json.dumps(payload, sort_keys=True, default=repr)


def parse_columns(columns: Union[str, Iterable[str], None]) -> Optional[Tuple[str, ...]]:
    if columns is None:
        return None
    if isinstance(columns, str):
        names = [c.strip() for c in columns.split(',')]
    else:
        names = [str(c).strip() for c in columns]
    names = [n for n in names if n]
    if not names or '*' in names:
        return None
    return tuple(names)


def apply_ordering(rows: List[Record], order_by: Tuple[OrderBy, ...]) -> List[Record]:
    """
    Stable multi-key sort. None and missing values sort last when ascending and
    first when descending.
    """
    result = list(rows)
    for ob in reversed(order_by):
        def sort_key(row: Record, column: str = ob.column) -> Tuple[bool, Any]:
            value = row.get(column)
            return (value is None, value)
        try:
            result.sort(key=sort_key, reverse=not ob.ascending)
        except TypeError as e:
            raise ValidationError(
                f"Cannot order by {ob.column}: values are not comparable",
                {'column': ob.column}
            ) from e
    return result


def project(row: Record, columns: Optional[Tuple[str, ...]]) -> Record:
    if columns is None:
        return dict(row)
    return {col: row.get(col) for col in columns}


def execute_query(spec: QuerySpec, records: List[Record]) -> Union[List[Record], Record]:
    rows = [row for row in records if spec.matches(row)]

    if spec.order_by:
        rows = apply_ordering(rows, spec.order_by)

    if spec.offset > 0:
        rows = rows[spec.offset:]

    if spec.limit is not None:
        rows = rows[:spec.limit]

    if spec.single:
        if not rows:
            raise NotFoundError(
                f"No rows found in {spec.collection}",
                {'collection': spec.collection}
            )
        return project(rows[0], spec.columns)

    return [project(row, spec.columns) for row in rows]


F = TypeVar('F', bound='FilterMixin')


class FilterMixin:
    def _with_filter(self: F, condition: Condition) -> F:
        raise NotImplementedError

    def eq(self: F, column: str, value: Any) -> F:
        return self._with_filter(Condition(column, Operator.EQ, value))

    def neq(self: F, column: str, value: Any) -> F:
        return self._with_filter(Condition(column, Operator.NEQ, value))

    def gt(self: F, column: str, value: Any) -> F:
        return self._with_filter(Condition(column, Operator.GT, value))

    def gte(self: F, column: str, value: Any) -> F:
        return self._with_filter(Condition(column, Operator.GTE, value))

    def lt(self: F, column: str, value: Any) -> F:
        return self._with_filter(Condition(column, Operator.LT, value))

    def lte(self: F, column: str, value: Any) -> F:
        return self._with_filter(Condition(column, Operator.LTE, value))

    def in_(self: F, column: str, values: Iterable[Any]) -> F:
        return self._with_filter(Condition(column, Operator.IN, tuple(values)))

    def match(self: F, filters: Dict[str, Any]) -> F:
        builder = self
        for column, value in filters.items():
            builder = builder.eq(column, value)
        return builder


QueryRunner = Callable[[QuerySpec], Awaitable[Any]]


class QueryBuilder(FilterMixin):
    """
    Fluent, immutable query construction.

    Every method returns a new builder; nothing runs until the builder is
    awaited. An invalid bound is remembered rather than raised, so it comes
    back as a ValidationError inside the Response like any other bad input.
    """

    def __init__(self, spec: QuerySpec, runner: QueryRunner, problem: Optional[str] = None):
        self.spec = spec
        self._runner = runner
        self._problem = problem

    def _derive(self, **changes: Any) -> 'QueryBuilder':
        return QueryBuilder(replace(self.spec, **changes), self._runner, self._problem)

    def _rejected(self, problem: str) -> 'QueryBuilder':
        return QueryBuilder(self.spec, self._runner, self._problem or problem)

    def _with_filter(self, condition: Condition) -> 'QueryBuilder':
        return self._derive(filters=self.spec.filters + (condition,))

    def select(self, columns: Union[str, Iterable[str]] = '*') -> 'QueryBuilder':
        """Project the result onto ``columns`` ('*' or comma-separated names)."""
        return self._derive(columns=parse_columns(columns))

    def order(self, column: str, ascending: bool = True) -> 'QueryBuilder':
        """Add a sort key; earlier calls take precedence."""
        return self._derive(order_by=self.spec.order_by + (OrderBy(column, ascending),))

    def limit(self, count: int) -> 'QueryBuilder':
        if count < 0:
            return self._rejected(f"limit must be non-negative, got {count}")
        return self._derive(limit=count)

    def range(self, start: int, end: int) -> 'QueryBuilder':
        """Zero-based, inclusive row window applied after ordering."""
        if start < 0 or end < start:
            return self._rejected(f"Invalid range {start}..{end}")
        return self._derive(offset=start, limit=end - start + 1)

    def single(self) -> 'QueryBuilder':
        """Resolve to one record; zero matches is a NotFoundError."""
        return self._derive(single=True)

    async def _reject(self):
        raise ValidationError(self._problem, {'collection': self.spec.collection})

    async def execute(self):
        if self._problem is not None:
            return await respond(f"select from {self.spec.collection}", self._reject)
        return await self._runner(self.spec)

    def __await__(self):
        return self.execute().__await__()

    def __repr__(self) -> str:
        return f"QueryBuilder({self.spec!r})"
