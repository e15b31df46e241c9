"""Application-layer ports describing the query capability.

Purpose
-------
Define the structural contract the materializer relies on so the application
layer never depends on a concrete database driver. Backend selection,
connection handling, and statement execution live behind this port.

Contents
--------
* :class:`QueryResult` – tabular result of one ``SELECT`` (string columns).
* :class:`QueryGateway` – executes textual ``SELECT`` statements.
* :data:`Connector` – factory opening a gateway for a :class:`ConnectionSpec`.

System Role
-----------
Adapters such as :class:`lib_sql_config.adapters.gateway.default.SQLAlchemyGateway`
implement :class:`QueryGateway`; sessions receive a :data:`Connector` so each
materialization opens and closes its own gateway.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol, Sequence, runtime_checkable

from ..domain.descriptor import ConnectionSpec


@dataclass(frozen=True, slots=True)
class QueryResult:
    """Rows returned by a gateway, every cell a string or ``None`` (SQL ``NULL``).

    Examples
    --------
    >>> result = QueryResult.from_rows(("key", "value"), [("Port", "21")])
    >>> result.row_count, result.column_count
    (1, 2)
    """

    columns: tuple[str, ...]
    rows: tuple[tuple[str | None, ...], ...]

    @classmethod
    def from_rows(
        cls, columns: Sequence[str], rows: Sequence[Sequence[object | None]]
    ) -> "QueryResult":
        """Normalise driver rows into string cells, keeping ``None`` intact."""

        return cls(
            columns=tuple(columns),
            rows=tuple(tuple(None if cell is None else str(cell) for cell in row) for row in rows),
        )

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)


@runtime_checkable
class QueryGateway(Protocol):
    """Execute textual queries against the configuration database.

    Calls are blocking round-trips and are issued strictly one after the
    other by the materializer.
    """

    def select(self, statement: str) -> QueryResult:
        """Run *statement* and return its rows or raise ``BackendError``."""

    def close(self) -> None:
        """Release the underlying connection; further ``select`` calls are invalid."""


Connector = Callable[[ConnectionSpec], QueryGateway]
"""Open a :class:`QueryGateway` for the given connection spec."""
