"""Tree materialization: relational contexts and directives to config lines.

Purpose
-------
Walk the context hierarchy stored in the database, depth first, and render it
as a linear configuration file made of ``<key value>`` / ``key value`` /
``</key>`` lines.

Contents
    - ``materialize``: public entry point returning the frozen line tuple.
    - ``TreeMaterializer``: owns one pass (gateway, spec, line buffer).
    - ``build_*_query``: statement builders, one per query shape.
    - ``sql_literal``: quotes identifier values embedded in statements.

System Role
-----------
Invoked lazily by :class:`lib_sql_config.application.session.VirtualFileSession`
on the first read. Queries are issued strictly sequentially because each
result decides what to ask next. Any failure aborts the whole pass; callers
never see a truncated configuration.
"""

from __future__ import annotations

from typing import NoReturn

from ..domain.descriptor import ContextTableSpec, DescriptorSpec, DirectiveTableSpec, MappingTableSpec
from ..domain.errors import BackendError, SchemaError
from ..observability import log_debug, log_error, log_info, make_event
from .ports import QueryGateway, QueryResult


def materialize(spec: DescriptorSpec, gateway: QueryGateway) -> tuple[str, ...]:
    """Render the configuration tree described by *spec* using *gateway*.

    Returns
    -------
    tuple[str, ...]
        Newline-terminated lines in document order.

    Raises
    ------
    SchemaError
        Root lookup not unique, ambiguous context label, unexpected column
        count, or a cycle in the parent relation.
    BackendError
        Propagated from the gateway.
    """

    return TreeMaterializer(spec, gateway).run()


class TreeMaterializer:
    """Single materialization pass over one descriptor."""

    def __init__(self, spec: DescriptorSpec, gateway: QueryGateway) -> None:
        self._spec = spec
        self._gateway = gateway
        self._lines: list[str] = []
        self._path: list[str] = []

    def run(self) -> tuple[str, ...]:
        """Resolve the root context and render it without its own tags."""

        contexts = self._spec.contexts
        log_info(
            "materialize_started",
            **make_event("materialize", None, {"table": contexts.table, "base_id": contexts.base_context_id}),
        )
        root_id = self.resolve_root()
        self.render_context(root_id, is_root=True)
        lines = tuple(self._lines)
        log_info("materialize_completed", **make_event("materialize", None, {"root_id": root_id, "lines": len(lines)}))
        return lines

    def resolve_root(self) -> str:
        """Return the id of the base context or of the single parentless context."""

        contexts = self._spec.contexts
        which = "default" if contexts.base_context_id is None else "base"
        result = self._select(build_root_query(contexts))
        if result.column_count != 1:
            self._fail(f"retrieving {which} context failed: expected 1 column, got {result.column_count}")
        if result.row_count == 0:
            self._fail(f"retrieving {which} context failed: no matching results")
        if result.row_count > 1:
            self._fail(f"retrieving {which} context failed: {result.row_count} non-unique results")
        root_id = result.rows[0][0]
        if root_id is None:
            self._fail(f"retrieving {which} context failed: NULL context id")
        return root_id

    def render_context(self, context_id: str, *, is_root: bool) -> None:
        """Append the lines for *context_id* and, recursively, its children."""

        if context_id in self._path:
            cycle = " -> ".join([*self._path, context_id])
            self._fail(f"context hierarchy contains a cycle: {cycle}")
        self._path.append(context_id)

        key, value = self._context_label(context_id)
        tagged = bool(key) and not is_root
        if tagged:
            self._lines.append(f"<{key} {value}>\n" if value else f"<{key}>\n")

        directives = self._directive_lines(context_id)
        self._lines.extend(directives)

        children = self._child_ids(context_id)
        log_debug(
            "context_rendered",
            **make_event(
                "materialize",
                None,
                {"context_id": context_id, "key": key, "directives": len(directives), "children": len(children)},
            ),
        )
        for child_id in children:
            self.render_context(child_id, is_root=False)

        if tagged:
            self._lines.append(f"</{key}>\n")
        self._path.pop()

    def _context_label(self, context_id: str) -> tuple[str | None, str | None]:
        """Return the ``(key, value)`` label of a context; ``(None, None)`` when absent."""

        result = self._select(build_context_label_query(self._spec.contexts, context_id))
        if result.row_count == 0:
            log_debug(
                "context_unlabelled",
                **make_event("materialize", None, {"context_id": context_id}),
            )
            return None, None
        if result.row_count > 1:
            self._fail(f"multiple key/values returned for context ID {context_id}")
        self._expect_columns(result, 2, f"label of context ID {context_id}")
        key, value = result.rows[0]
        return key, value

    def _directive_lines(self, context_id: str) -> list[str]:
        """Return ``key value`` lines for directives mapped to *context_id*, in backend order."""

        result = self._select(build_directive_query(self._spec.directives, self._spec.mapping, context_id))
        if result.row_count == 0:
            return []
        self._expect_columns(result, 2, f"directives of context ID {context_id}")
        lines: list[str] = []
        for key, value in result.rows:
            if not key:
                self._fail(f"directive without key mapped to context ID {context_id}")
            lines.append(f"{key} {value}\n" if value else f"{key}\n")
        return lines

    def _child_ids(self, context_id: str) -> list[str]:
        result = self._select(build_children_query(self._spec.contexts, context_id))
        if result.row_count == 0:
            return []
        self._expect_columns(result, 1, f"children of context ID {context_id}")
        child_ids: list[str] = []
        for (child_id,) in result.rows:
            if child_id is None:
                self._fail(f"NULL child id below context ID {context_id}")
            child_ids.append(child_id)
        return child_ids

    def _select(self, statement: str) -> QueryResult:
        log_debug("query_dispatched", **make_event("materialize", None, {"statement": statement}))
        try:
            return self._gateway.select(statement)
        except BackendError as exc:
            log_error("query_failed", **make_event("materialize", None, {"statement": statement, "error": str(exc)}))
            raise

    def _expect_columns(self, result: QueryResult, expected: int, what: str) -> None:
        if result.column_count != expected:
            self._fail(f"{what}: expected {expected} columns, got {result.column_count}")

    def _fail(self, message: str) -> NoReturn:
        log_error("materialize_failed", **make_event("materialize", None, {"error": message}))
        raise SchemaError(message)


def sql_literal(value: str) -> str:
    """Quote *value* as a SQL string literal.

    >>> sql_literal("7"), sql_literal("O'Brien")
    ("'7'", "'O''Brien'")
    """

    return "'" + value.replace("'", "''") + "'"


def build_root_query(contexts: ContextTableSpec) -> str:
    """Select the id of the base context, or of the context without parent.

    >>> build_root_query(ContextTableSpec("ctx"))
    'SELECT id FROM ctx WHERE parent_id IS NULL'
    >>> build_root_query(ContextTableSpec("ctx", base_context_id="3"))
    "SELECT id FROM ctx WHERE id = '3'"
    """

    if contexts.base_context_id is None:
        where = f"{contexts.parent_id_column} IS NULL"
    else:
        where = f"{contexts.id_column} = {sql_literal(contexts.base_context_id)}"
    return f"SELECT {contexts.id_column} FROM {contexts.table} WHERE {where}"


def build_context_label_query(contexts: ContextTableSpec, context_id: str) -> str:
    """Select the ``key, value`` label of one context.

    >>> build_context_label_query(ContextTableSpec("ctx", where="enabled = 1"), "2")
    "SELECT key, value FROM ctx WHERE id = '2' AND (enabled = 1)"
    """

    where = _and_where(f"{contexts.id_column} = {sql_literal(context_id)}", contexts.where)
    return f"SELECT {contexts.key_column}, {contexts.value_column} FROM {contexts.table} WHERE {where}"


def build_directive_query(directives: DirectiveTableSpec, mapping: MappingTableSpec, context_id: str) -> str:
    """Select directives joined through the mapping table to one context.

    >>> build_directive_query(DirectiveTableSpec("conf"), MappingTableSpec("map"), "1")
    "SELECT conf.key, conf.value FROM conf INNER JOIN map ON conf.id = map.conf_id WHERE map.ctx_id = '1'"
    """

    conf, link = directives.table, mapping.table
    where = _and_where(f"{link}.{mapping.context_id_column} = {sql_literal(context_id)}", directives.where)
    where = _and_where(where, mapping.where)
    return (
        f"SELECT {conf}.{directives.key_column}, {conf}.{directives.value_column}"
        f" FROM {conf} INNER JOIN {link}"
        f" ON {conf}.{directives.id_column} = {link}.{mapping.directive_id_column}"
        f" WHERE {where}"
    )


def build_children_query(contexts: ContextTableSpec, context_id: str) -> str:
    """Select the ids of the direct children of one context.

    >>> build_children_query(ContextTableSpec("ctx"), "1")
    "SELECT id FROM ctx WHERE parent_id = '1'"
    """

    where = _and_where(f"{contexts.parent_id_column} = {sql_literal(context_id)}", contexts.where)
    return f"SELECT {contexts.id_column} FROM {contexts.table} WHERE {where}"


def _and_where(condition: str, extra: str | None) -> str:
    return condition if extra is None else f"{condition} AND ({extra})"
