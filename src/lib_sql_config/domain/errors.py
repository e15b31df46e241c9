"""Domain-level exception hierarchy.

Purpose
-------
Expose the error taxonomy shared by the descriptor parser, the tree
materializer, virtual file sessions, and gateway adapters. The hierarchy lives
in the domain layer so outer layers may depend on it without creating cycles.

Contents
--------
* :class:`SqlConfigError` – umbrella base class for all library failures.
* :class:`DescriptorSyntaxError` – a descriptor string does not follow the
  ``sql://`` grammar; names the failing segment and the cause.
* :class:`SchemaError` – the database returned zero or ambiguous rows where
  exactly one was required, an unexpected column count, or a cyclic context
  hierarchy.
* :class:`BackendError` – the query gateway itself failed.
* :class:`SourceMismatch` – a path is not a ``sql://`` source and belongs to
  the conventional file-open path.

System Role
-----------
Every component raises the first failure it meets and never retries. Host
loaders catch :class:`SqlConfigError` and treat it like any other file-access
failure.
"""

from __future__ import annotations


class SqlConfigError(Exception):
    """Base type for all exceptions emitted by ``lib_sql_config``."""


class DescriptorSyntaxError(SqlConfigError):
    """Raised when a descriptor string cannot be decoded.

    Attributes
    ----------
    segment:
        Name of the failing segment: ``"connection"``, ``"contexts"``,
        ``"directives"``, ``"mapping"`` or ``"base_id"``.
    cause:
        Human readable description of what was wrong (missing delimiter,
        wrong arity, bad keyword).

    Examples
    --------
    >>> err = DescriptorSyntaxError("mapping", "expected 2 column names, got 3")
    >>> str(err)
    'invalid mapping segment: expected 2 column names, got 3'
    >>> err.segment
    'mapping'
    """

    def __init__(self, segment: str, cause: str) -> None:
        super().__init__(f"invalid {segment} segment: {cause}")
        self.segment = segment
        self.cause = cause


class SchemaError(SqlConfigError):
    """Query results do not have the shape the materializer requires.

    Always fatal: a partial configuration is worse than an explicit failure.
    """


class BackendError(SqlConfigError):
    """The query gateway failed to execute a statement or manage a connection."""


class SourceMismatch(SqlConfigError):
    """The path does not carry the ``sql://`` prefix.

    Callers hand such paths to the regular filesystem instead.
    """
