"""
Chainable query builder for the hosted table store.

A Query only records what to fetch. Execution is delegated to a runner
(the real Gateway, or an in-memory stand-in in tests) through run(query).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence

OPERATORS = {"ilike", "eq", "gte", "lte", "in"}


@dataclass(frozen=True)
class Constraint:
    """One row-level predicate: `column <op> value`."""
    op: str
    column: str
    value: Any

    def encode(self) -> str:
        if self.op == "in":
            return f"in.({','.join(_quote(v) for v in self.value)})"
        return f"{self.op}.{_scalar(self.value)}"


class QueryRunner(Protocol):
    async def run(self, query: "Query") -> list[dict[str, Any]]: ...


def _scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def _quote(value: Any) -> str:
    text = _scalar(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


class Query:
    def __init__(self, runner: QueryRunner, table: str, columns: str = "*", row_key: Optional[str] = "id"):
        self._runner = runner
        self.table = table
        self.columns = columns
        self.row_key = row_key
        self.constraints: list[Constraint] = []
        self.orders: list[tuple[str, bool]] = []

    def __repr__(self) -> str:
        return f"Query(table={self.table!r}, columns={self.columns!r}, constraints={len(self.constraints)})"

    def ilike(self, column: str, pattern: str) -> Query:
        self.constraints.append(Constraint("ilike", column, pattern))
        return self

    def eq(self, column: str, value: Any) -> Query:
        self.constraints.append(Constraint("eq", column, value))
        return self

    def gte(self, column: str, value: str) -> Query:
        self.constraints.append(Constraint("gte", column, value))
        return self

    def lte(self, column: str, value: str) -> Query:
        self.constraints.append(Constraint("lte", column, value))
        return self

    def in_(self, column: str, values: Sequence[Any]) -> Query:
        self.constraints.append(Constraint("in", column, list(values)))
        return self

    def order(self, column: str, ascending: bool = True) -> Query:
        self.orders.append((column, ascending))
        return self

    def apply(self, constraints: Sequence[Constraint]) -> Query:
        for constraint in constraints:
            if constraint.op not in OPERATORS:
                raise ValueError(f"Unsupported operator: {constraint.op!r}")
            self.constraints.append(constraint)
        return self

    def to_params(self, stable: bool = False) -> list[tuple[str, str]]:
        """Encode as query-string pairs. `stable` appends a row-key tie-break ordering."""
        params: list[tuple[str, str]] = [("select", self.columns)]
        params.extend((c.column, c.encode()) for c in self.constraints)
        orders = list(self.orders)
        if stable and self.row_key and all(col != self.row_key for col, _ in orders):
            orders.append((self.row_key, True))
        if orders:
            params.append(("order", ",".join(f"{col}.{'asc' if asc else 'desc'}" for col, asc in orders)))
        return params

    async def execute(self) -> list[dict[str, Any]]:
        return await self._runner.run(self)
