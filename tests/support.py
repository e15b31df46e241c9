"""In-memory gateways shared by the materializer, session, and CLI suites.

``ScriptedGateway`` replays queued answers in order and is used where a test
needs exact control over a single response (ambiguous rows, wrong column
counts, backend failures). ``TreeGateway`` answers the materializer's queries
from a small context tree so traversal tests read like the data they render.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from lib_sql_config.application.materialize import (
    build_children_query,
    build_context_label_query,
    build_directive_query,
    build_root_query,
)
from lib_sql_config.application.ports import QueryResult
from lib_sql_config.domain.descriptor import ConnectionSpec, DescriptorSpec

ID_COLUMNS = ("id",)
LABEL_COLUMNS = ("key", "value")

Row = Sequence[object | None]


def ids(*values: object) -> QueryResult:
    """Return a one-column id result."""

    return QueryResult.from_rows(ID_COLUMNS, [(value,) for value in values])


def labels(*rows: Row) -> QueryResult:
    """Return a two-column ``key, value`` result."""

    return QueryResult.from_rows(LABEL_COLUMNS, rows)


@dataclass
class ScriptedGateway:
    """Replay *answers* one per ``select`` call; exceptions in the queue are raised."""

    answers: list[QueryResult | Exception]
    statements: list[str] = field(default_factory=list)
    close_calls: int = 0

    def select(self, statement: str) -> QueryResult:
        self.statements.append(statement)
        if not self.answers:
            raise AssertionError(f"unexpected query: {statement}")
        answer = self.answers.pop(0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def close(self) -> None:
        self.close_calls += 1


@dataclass
class TreeGateway:
    """Answer materializer queries for a context tree.

    ``contexts`` maps a context id to ``(parent_id, key, value)``; insertion
    order is the child order. ``directives`` maps a context id to its
    ``(key, value)`` rows.
    """

    spec: DescriptorSpec
    contexts: Mapping[str, tuple[str | None, str | None, str | None]]
    directives: Mapping[str, Sequence[Row]] = field(default_factory=dict)
    statements: list[str] = field(default_factory=list)
    close_calls: int = 0

    def __post_init__(self) -> None:
        self._answers = self._build_answers()

    def select(self, statement: str) -> QueryResult:
        self.statements.append(statement)
        try:
            return self._answers[statement]
        except KeyError:
            raise AssertionError(f"unexpected query: {statement}") from None

    def close(self) -> None:
        self.close_calls += 1

    def _build_answers(self) -> dict[str, QueryResult]:
        table = self.spec.contexts
        base = table.base_context_id
        if base is None:
            roots = [context_id for context_id, (parent, _, _) in self.contexts.items() if parent is None]
        else:
            roots = [base] if base in self.contexts else []
        answers = {build_root_query(table): ids(*roots)}
        for context_id, (_, key, value) in self.contexts.items():
            answers[build_context_label_query(table, context_id)] = labels((key, value))
            answers[build_directive_query(self.spec.directives, self.spec.mapping, context_id)] = labels(
                *self.directives.get(context_id, ())
            )
            children = [child for child, (parent, _, _) in self.contexts.items() if parent == context_id]
            answers[build_children_query(table, context_id)] = ids(*children)
        return answers


@dataclass
class RecordingConnector:
    """Connector handing out one gateway and recording every connection request."""

    gateway: ScriptedGateway | TreeGateway
    connections: list[ConnectionSpec] = field(default_factory=list)

    def __call__(self, connection: ConnectionSpec) -> ScriptedGateway | TreeGateway:
        self.connections.append(connection)
        return self.gateway
