"""Virtual file sessions serving materialized configuration text.

Purpose
-------
Present a database-backed configuration as something a loader can ``open``
and ``read`` chunk by chunk. Parsing happens on open; materialization is
deferred to the first read and cached for the life of the session.

Contents
--------
* :func:`open_source` – parse a ``sql://`` path into a new session.
* :class:`VirtualFileSession` – buffer, cursor, and read contract for one
  source.
* :class:`SqlConfigFilesystem` – routes the ``sql://`` prefix to sessions and
  tears them all down on restart/reload.

System Role
-----------
Outermost application-layer object; :mod:`lib_sql_config.core` wires it to a
concrete gateway connector and falls back to the regular filesystem for other
paths.
"""

from __future__ import annotations

from typing import Iterator

from ..domain.descriptor import SCHEME, DescriptorSpec
from ..domain.errors import SourceMismatch
from ..observability import log_debug, log_error, log_info, make_event
from .materialize import materialize
from .parser import parse_descriptor, redact_descriptor
from .ports import Connector

DEFAULT_CHUNK_SIZE = 8192


def is_sql_source(path: str) -> bool:
    """Return ``True`` when *path* carries the ``sql://`` prefix.

    >>> is_sql_source("sql://u:p@h/ctx:c/conf:d/map:m"), is_sql_source("/etc/app.conf")
    (True, False)
    """

    return path.startswith(SCHEME)


def open_source(path: str, connect: Connector) -> "VirtualFileSession":
    """Parse *path* and return an unmaterialized session.

    Raises
    ------
    SourceMismatch
        *path* is not a ``sql://`` source; nothing is parsed.
    DescriptorSyntaxError
        The descriptor is malformed.
    """

    if not is_sql_source(path):
        raise SourceMismatch(f"not a {SCHEME} source: {path!r}")
    descriptor = parse_descriptor(path)
    log_debug("session_opened", **make_event("session", redact_descriptor(path)))
    return VirtualFileSession(path, descriptor, connect)


class VirtualFileSession:
    """Sequential reader over the rendered lines of one configuration source.

    Why
    ----
    Configuration loaders read files in chunks. Each call to :meth:`read_next`
    hands out at most one rendered line, so the loader sees the same line
    boundaries the database hierarchy produced.

    What
    ----
    Holds the parsed descriptor, the lazily materialized line tuple, the line
    cursor, and the byte offset inside the current line. A line longer than
    the caller's bound is split across consecutive calls; the cursor moves on
    once the line is fully delivered. After the last line every call returns
    ``b""``.

    Examples
    --------
    >>> from lib_sql_config.application.ports import QueryResult
    >>> class Canned:
    ...     def __init__(self, answers):
    ...         self.answers = list(answers)
    ...     def select(self, statement):
    ...         return self.answers.pop(0)
    ...     def close(self):
    ...         pass
    >>> answers = [
    ...     QueryResult.from_rows(["id"], [["1"]]),
    ...     QueryResult.from_rows(["key", "value"], []),
    ...     QueryResult.from_rows(["key", "value"], [["Port", "21"]]),
    ...     QueryResult.from_rows(["id"], []),
    ... ]
    >>> session = open_source("sql://u:p@h/ctx:c/conf:d/map:m", lambda conn: Canned(answers))
    >>> session.read_next(4), session.read_next(4), session.read_next(4)
    (b'Port', b' 21\\n', b'')
    """

    def __init__(self, path: str, descriptor: DescriptorSpec, connect: Connector) -> None:
        self.path = path
        self.descriptor = descriptor
        self._connect = connect
        self._lines: tuple[str, ...] | None = None
        self._pending = b""
        self._cursor = 0
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def materialized(self) -> bool:
        return self._lines is not None

    @property
    def cursor(self) -> int:
        """Index of the next line to deliver."""

        return self._cursor

    @property
    def lines(self) -> tuple[str, ...]:
        """Rendered lines, materializing on first access."""

        return self._ensure_lines()

    @property
    def at_end(self) -> bool:
        lines = self._ensure_lines()
        return not self._pending and self._cursor >= len(lines)

    def read_next(self, max_bytes: int = DEFAULT_CHUNK_SIZE) -> bytes:
        """Return up to *max_bytes* bytes of the current line, or ``b""`` at end of data.

        Raises
        ------
        ValueError
            When *max_bytes* is smaller than one or the session is closed.
        SchemaError / BackendError
            When the first call fails to materialize; the session stays
            unmaterialized so a later call retries from scratch.
        """

        if max_bytes < 1:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        lines = self._ensure_lines()
        if not self._pending:
            if self._cursor >= len(lines):
                return b""
            self._pending = lines[self._cursor].encode("utf-8")
        chunk, self._pending = self._pending[:max_bytes], self._pending[max_bytes:]
        if not self._pending:
            self._cursor += 1
        return chunk

    def read(self) -> bytes:
        """Drain everything not yet delivered as one bytes object."""

        lines = self._ensure_lines()
        remainder = self._pending + "".join(lines[self._cursor + (1 if self._pending else 0) :]).encode("utf-8")
        self._pending = b""
        self._cursor = len(lines)
        return remainder

    def __iter__(self) -> Iterator[str]:
        """Yield the remaining lines as text."""

        while True:
            chunk = self.read_next()
            if not chunk:
                return
            while self._pending:
                chunk += self.read_next()
            yield chunk.decode("utf-8")

    def close(self) -> None:
        """Drop the buffer; the next open of the same path starts from scratch."""

        if self._closed:
            return
        self._closed = True
        self._lines = None
        self._pending = b""
        log_debug("session_closed", **make_event("session", redact_descriptor(self.path), {"cursor": self._cursor}))

    def __enter__(self) -> "VirtualFileSession":
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()

    def _ensure_lines(self) -> tuple[str, ...]:
        if self._closed:
            raise ValueError("I/O operation on closed session")
        if self._lines is None:
            self._lines = self._materialize()
        return self._lines

    def _materialize(self) -> tuple[str, ...]:
        redacted = redact_descriptor(self.path)
        gateway = self._connect(self.descriptor.connection)
        try:
            lines = materialize(self.descriptor, gateway)
        except Exception as exc:
            log_error("session_materialize_failed", **make_event("session", redacted, {"error": str(exc)}))
            raise
        finally:
            gateway.close()
        log_info("session_materialized", **make_event("session", redacted, {"lines": len(lines)}))
        return lines


class SqlConfigFilesystem:
    """Route ``sql://`` paths to sessions and track them for teardown.

    Why
    ----
    A host process re-reads its configuration on restart. Calling
    :meth:`reset` from the restart hook closes every session so the next
    open re-parses the descriptor and re-queries the database.
    """

    prefix = SCHEME

    def __init__(self, connect: Connector) -> None:
        self._connect = connect
        self._sessions: list[VirtualFileSession] = []

    def handles(self, path: str) -> bool:
        return path.startswith(self.prefix)

    def open(self, path: str) -> VirtualFileSession:
        session = open_source(path, self._connect)
        self._sessions = [tracked for tracked in self._sessions if not tracked.closed]
        self._sessions.append(session)
        return session

    @property
    def open_sessions(self) -> int:
        return sum(1 for session in self._sessions if not session.closed)

    @property
    def tracked_sessions(self) -> int:
        """Sessions still referenced by the filesystem, closed or not."""

        return len(self._sessions)

    def reset(self) -> None:
        """Close every tracked session."""

        count = self.open_sessions
        for session in self._sessions:
            session.close()
        self._sessions = []
        log_debug("filesystem_reset", **make_event("session", None, {"closed": count}))
