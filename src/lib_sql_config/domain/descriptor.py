"""Immutable value objects describing one ``sql://`` configuration source.

Purpose
-------
Carry the decoded pieces of a descriptor string (connection, context table,
directive table, mapping table, optional base context) from the parser to the
materializer. The module is pure data: no I/O, no logging.

Contents
--------
* ``SCHEME`` – the path prefix routed to this library.
* Column-name defaults (``DEFAULT_ID_COLUMN`` and friends).
* :class:`ConnectionSpec`, :class:`ContextTableSpec`,
  :class:`DirectiveTableSpec`, :class:`MappingTableSpec` – one per segment.
* :class:`DescriptorSpec` – the composite returned by
  :func:`lib_sql_config.application.parser.parse_descriptor`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final

SCHEME: Final[str] = "sql://"

DEFAULT_ID_COLUMN: Final[str] = "id"
DEFAULT_PARENT_ID_COLUMN: Final[str] = "parent_id"
DEFAULT_KEY_COLUMN: Final[str] = "key"
DEFAULT_VALUE_COLUMN: Final[str] = "value"
DEFAULT_DIRECTIVE_ID_COLUMN: Final[str] = "conf_id"
DEFAULT_CONTEXT_ID_COLUMN: Final[str] = "ctx_id"


@dataclass(frozen=True, slots=True)
class ConnectionSpec:
    """Credentials and location of the database holding the configuration.

    ``database`` is ``None`` when the descriptor omits the ``?db=`` clause.
    """

    user: str
    password: str
    server: str
    database: str | None = None

    def to_descriptor(self) -> str:
        """Render the connection segment (without the scheme prefix).

        >>> ConnectionSpec("u", "p", "host", "d").to_descriptor()
        'u:p@host?db=d'
        """

        text = f"{self.user}:{self.password}@{self.server}"
        if self.database is not None:
            text += f"?db={self.database}"
        return text


@dataclass(frozen=True, slots=True)
class ContextTableSpec:
    """Table holding the context hierarchy (one row per block scope).

    Attributes
    ----------
    table:
        Table name.
    id_column / parent_id_column / key_column / value_column:
        Column names; ``parent_id_column`` links a context to its parent and
        is ``NULL`` for the implicit root.
    where:
        Extra SQL condition AND-combined with every context query.
    base_context_id:
        Explicit root context; when ``None`` the root is the row whose parent
        id is ``NULL``.
    """

    table: str
    id_column: str = DEFAULT_ID_COLUMN
    parent_id_column: str = DEFAULT_PARENT_ID_COLUMN
    key_column: str = DEFAULT_KEY_COLUMN
    value_column: str = DEFAULT_VALUE_COLUMN
    where: str | None = None
    base_context_id: str | None = None

    def to_descriptor(self) -> str:
        columns = ",".join((self.id_column, self.parent_id_column, self.key_column, self.value_column))
        return _segment("ctx", self.table, columns, self.where)


@dataclass(frozen=True, slots=True)
class DirectiveTableSpec:
    """Table holding flat ``key value`` directives."""

    table: str
    id_column: str = DEFAULT_ID_COLUMN
    key_column: str = DEFAULT_KEY_COLUMN
    value_column: str = DEFAULT_VALUE_COLUMN
    where: str | None = None

    def to_descriptor(self) -> str:
        columns = ",".join((self.id_column, self.key_column, self.value_column))
        return _segment("conf", self.table, columns, self.where)


@dataclass(frozen=True, slots=True)
class MappingTableSpec:
    """Association table linking directive rows to context rows."""

    table: str
    directive_id_column: str = DEFAULT_DIRECTIVE_ID_COLUMN
    context_id_column: str = DEFAULT_CONTEXT_ID_COLUMN
    where: str | None = None

    def to_descriptor(self) -> str:
        columns = ",".join((self.directive_id_column, self.context_id_column))
        return _segment("map", self.table, columns, self.where)


@dataclass(frozen=True, slots=True)
class DescriptorSpec:
    """Fully decoded descriptor.

    Examples
    --------
    >>> spec = DescriptorSpec(
    ...     ConnectionSpec("u", "p", "host", "d"),
    ...     ContextTableSpec("contexts"),
    ...     DirectiveTableSpec("directives"),
    ...     MappingTableSpec("links"),
    ... )
    >>> spec.to_descriptor()
    'sql://u:p@host?db=d/ctx:contexts:id,parent_id,key,value/conf:directives:id,key,value/map:links:conf_id,ctx_id'
    """

    connection: ConnectionSpec
    contexts: ContextTableSpec
    directives: DirectiveTableSpec
    mapping: MappingTableSpec

    @property
    def base_context_id(self) -> str | None:
        return self.contexts.base_context_id

    def to_descriptor(self) -> str:
        """Return canonical descriptor text that parses back into ``self``."""

        parts = [
            SCHEME + self.connection.to_descriptor(),
            self.contexts.to_descriptor(),
            self.directives.to_descriptor(),
            self.mapping.to_descriptor(),
        ]
        if self.contexts.base_context_id is not None:
            parts.append(f"base_id={self.contexts.base_context_id}")
        return "/".join(parts)

    def describe(self) -> dict[str, Any]:
        """Return a JSON-safe summary with the password masked.

        >>> spec = DescriptorSpec(
        ...     ConnectionSpec("u", "secret", "host"),
        ...     ContextTableSpec("c"),
        ...     DirectiveTableSpec("d"),
        ...     MappingTableSpec("m"),
        ... )
        >>> spec.describe()["connection"]["password"]
        '***'
        """

        return {
            "connection": {
                "user": self.connection.user,
                "password": "***" if self.connection.password else "",
                "server": self.connection.server,
                "database": self.connection.database,
            },
            "contexts": {
                "table": self.contexts.table,
                "id": self.contexts.id_column,
                "parent_id": self.contexts.parent_id_column,
                "key": self.contexts.key_column,
                "value": self.contexts.value_column,
                "where": self.contexts.where,
                "base_id": self.contexts.base_context_id,
            },
            "directives": {
                "table": self.directives.table,
                "id": self.directives.id_column,
                "key": self.directives.key_column,
                "value": self.directives.value_column,
                "where": self.directives.where,
            },
            "mapping": {
                "table": self.mapping.table,
                "conf_id": self.mapping.directive_id_column,
                "ctx_id": self.mapping.context_id_column,
                "where": self.mapping.where,
            },
        }


def _segment(tag: str, table: str, columns: str, where: str | None) -> str:
    text = f"{tag}:{table}:{columns}"
    if where is not None:
        text += f":where={where}"
    return text
