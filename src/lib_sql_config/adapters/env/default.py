"""Environment variable adapter for gateway settings.

Purpose
-------
Read the knobs of the default SQLAlchemy gateway (dialect, engine echo,
server port) from process environment variables so operators can point a
``sql://`` descriptor at any backend without code changes.

Key behaviours
--------------
* Enforces a prefix (``default_env_prefix``) so only relevant keys are
  captured: ``LIB_SQL_CONFIG_DIALECT``, ``LIB_SQL_CONFIG_ECHO``,
  ``LIB_SQL_CONFIG_PORT``.
* Performs light type coercion for common scalar types (bools, ints, floats,
  ``null``/``none``).
* Emits structured logging via :mod:`lib_sql_config.observability`.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final, Mapping

from ...observability import log_debug

ENV_SLUG: Final[str] = "lib-sql-config"
DEFAULT_DIALECT: Final[str] = "sqlite"


def default_env_prefix(slug: str) -> str:
    """Return the canonical environment prefix for *slug*.

    Examples
    --------
    >>> default_env_prefix('lib-sql-config')
    'LIB_SQL_CONFIG'
    """

    return slug.replace("-", "_").upper()


@dataclass(frozen=True, slots=True)
class GatewaySettings:
    """Settings consumed by :class:`lib_sql_config.adapters.gateway.default.SQLAlchemyGateway`.

    Attributes
    ----------
    dialect:
        SQLAlchemy driver name, e.g. ``sqlite``, ``postgresql+psycopg``,
        ``mysql+pymysql``.
    echo:
        Log every statement through SQLAlchemy's own logger.
    port:
        Server port used when the descriptor's server carries none.
    """

    dialect: str = DEFAULT_DIALECT
    echo: bool = False
    port: int | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, object]) -> "GatewaySettings":
        """Build settings from a lowercase key mapping, ignoring unknown keys.

        >>> GatewaySettings.from_mapping({"dialect": "postgresql", "port": 5433})
        GatewaySettings(dialect='postgresql', echo=False, port=5433)
        """

        dialect = values.get("dialect")
        echo = values.get("echo")
        port = values.get("port")
        return cls(
            dialect=str(dialect) if dialect else DEFAULT_DIALECT,
            echo=echo is True or (type(echo) is int and echo != 0),
            port=port if isinstance(port, int) and not isinstance(port, bool) else None,
        )


class DefaultEnvLoader:
    """Load environment variables that belong to the library namespace."""

    def __init__(self, *, environ: Mapping[str, str] | None = None) -> None:
        """Initialise the loader with a specific ``environ`` mapping for testability."""

        self._environ = environ if environ is not None else os.environ

    def load(self, prefix: str) -> dict[str, object]:
        """Return lowercase keys (prefix stripped) with coerced values.

        Examples
        --------
        >>> loader = DefaultEnvLoader(environ={'DEMO_ECHO': 'true', 'DEMO_PORT': '5432', 'OTHER': 'x'})
        >>> loader.load('DEMO')
        {'echo': True, 'port': 5432}
        """

        prefix = f"{prefix}_" if prefix and not prefix.endswith("_") else prefix
        collected: dict[str, object] = {}
        for key, value in self._environ.items():
            if prefix and not key.startswith(prefix):
                continue
            stripped = key[len(prefix) :] if prefix else key
            if not stripped:
                continue
            collected[stripped.lower()] = _coerce(value)
        log_debug("env_variables_loaded", stage="settings", path=None, keys=sorted(collected.keys()))
        return collected


def load_gateway_settings(environ: Mapping[str, str] | None = None) -> GatewaySettings:
    """Return :class:`GatewaySettings` populated from ``LIB_SQL_CONFIG_*`` variables.

    >>> load_gateway_settings({"LIB_SQL_CONFIG_DIALECT": "mysql+pymysql"}).dialect
    'mysql+pymysql'
    >>> load_gateway_settings({}).dialect
    'sqlite'
    """

    values = DefaultEnvLoader(environ=environ).load(default_env_prefix(ENV_SLUG))
    return GatewaySettings.from_mapping(values)


def _coerce(value: str) -> object:
    """Coerce textual environment values to Python primitives where possible.

    Examples
    --------
    >>> _coerce('true'), _coerce('10'), _coerce('3.5'), _coerce('hello')
    (True, 10, 3.5, 'hello')
    """

    lowered = value.lower()
    if lowered in {"true", "false"}:
        return lowered == "true"
    if lowered in {"null", "none"}:
        return None
    try:
        if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
            return int(value)
        float_value = float(value)
        return float_value
    except ValueError:
        return value
