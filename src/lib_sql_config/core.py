"""Composition root for ``lib_sql_config``.

Purpose
-------
Provide the entry points a configuration loader calls: open a path (database
backed or regular file) and read its bytes. Wires the application layer to the
default SQLAlchemy gateway and the environment-driven gateway settings.

Contents
--------
* :func:`default_connector` – gateway factory built from :class:`GatewaySettings`.
* :func:`open_config` – returns a :class:`VirtualFileSession` for ``sql://``
  paths and a regular binary file handle otherwise.
* :func:`read_config_text` – convenience wrapper returning the whole text.

System Role
-----------
The canonical place to swap the backend (pass ``connect``) or tune it (pass
``settings``); the CLI and host applications go through here.
"""

from __future__ import annotations

from typing import BinaryIO

from .adapters.env.default import GatewaySettings, default_env_prefix, load_gateway_settings
from .adapters.gateway.default import SQLAlchemyGateway
from .application.parser import parse_descriptor
from .application.ports import Connector, QueryGateway
from .application.session import SqlConfigFilesystem, VirtualFileSession, is_sql_source, open_source
from .domain.descriptor import ConnectionSpec, DescriptorSpec
from .domain.errors import BackendError, DescriptorSyntaxError, SchemaError, SourceMismatch, SqlConfigError
from .observability import bind_trace_id, log_debug, make_event


def default_connector(settings: GatewaySettings | None = None) -> Connector:
    """Return a connector opening :class:`SQLAlchemyGateway` instances.

    When *settings* is ``None`` they are read from ``LIB_SQL_CONFIG_*``
    environment variables once, at call time.
    """

    resolved = settings if settings is not None else load_gateway_settings()

    def connect(connection: ConnectionSpec) -> QueryGateway:
        return SQLAlchemyGateway.connect(connection, resolved)

    return connect


def open_config(
    path: str,
    *,
    settings: GatewaySettings | None = None,
    connect: Connector | None = None,
) -> VirtualFileSession | BinaryIO:
    """Open *path* for binary reading.

    ``sql://`` descriptors are parsed immediately and materialized on the
    first read; any other path is opened on the regular filesystem.

    Raises
    ------
    DescriptorSyntaxError
        The descriptor is malformed.
    OSError
        The regular file cannot be opened.
    """

    if not is_sql_source(path):
        log_debug("config_open_fallback", **make_event("session", path))
        return open(path, "rb")
    return open_source(path, connect or default_connector(settings))


def read_config_text(
    path: str,
    *,
    settings: GatewaySettings | None = None,
    connect: Connector | None = None,
    trace_id: str | None = None,
) -> str:
    """Return the full configuration text behind *path*.

    Side Effects
    ------------
    Binds *trace_id* (or clears the binding) for the duration of the call's
    log events.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from pathlib import Path
    >>> tmp = TemporaryDirectory()
    >>> conf = Path(tmp.name) / "proftpd.conf"
    >>> _ = conf.write_text("Port 21\\n", encoding="utf-8")
    >>> read_config_text(str(conf))
    'Port 21\\n'
    >>> tmp.cleanup()
    """

    bind_trace_id(trace_id)
    with open_config(path, settings=settings, connect=connect) as handle:
        return handle.read().decode("utf-8")


__all__ = [
    "BackendError",
    "ConnectionSpec",
    "DescriptorSpec",
    "DescriptorSyntaxError",
    "GatewaySettings",
    "SchemaError",
    "SourceMismatch",
    "SqlConfigError",
    "SqlConfigFilesystem",
    "VirtualFileSession",
    "default_connector",
    "default_env_prefix",
    "open_config",
    "parse_descriptor",
    "read_config_text",
]
