"""Serve database-backed configuration as sequentially readable files.

A ``sql://`` descriptor names a database plus the context, directive, and
mapping tables holding a hierarchical configuration. Opening the descriptor
yields a :class:`VirtualFileSession` whose reads return the rendered
``<key value>`` / ``key value`` / ``</key>`` lines, materialized on first use.
"""

from __future__ import annotations

from .core import (
    BackendError,
    ConnectionSpec,
    DescriptorSpec,
    DescriptorSyntaxError,
    GatewaySettings,
    SchemaError,
    SourceMismatch,
    SqlConfigError,
    SqlConfigFilesystem,
    VirtualFileSession,
    default_connector,
    open_config,
    parse_descriptor,
    read_config_text,
)
from .application.materialize import materialize
from .application.ports import QueryGateway, QueryResult
from .application.session import open_source
from .examples import seed_example_database
from .observability import bind_trace_id, get_logger

__all__ = [
    "BackendError",
    "ConnectionSpec",
    "DescriptorSpec",
    "DescriptorSyntaxError",
    "GatewaySettings",
    "QueryGateway",
    "QueryResult",
    "SchemaError",
    "SourceMismatch",
    "SqlConfigError",
    "SqlConfigFilesystem",
    "VirtualFileSession",
    "bind_trace_id",
    "default_connector",
    "get_logger",
    "materialize",
    "open_config",
    "open_source",
    "parse_descriptor",
    "read_config_text",
    "seed_example_database",
]
