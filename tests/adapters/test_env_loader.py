"""Environment loader adapter tests clarifying prefix handling and coercion.

The scenarios cover prefix naming, gateway settings assembly, and randomised
inputs to prove the adapter keeps matching the documented environment rules.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from lib_sql_config.adapters.env.default import (
    DefaultEnvLoader,
    GatewaySettings,
    default_env_prefix,
    load_gateway_settings,
)


def test_default_env_prefix() -> None:
    """Slug values should become upper snake-case prefixes used throughout docs."""

    assert default_env_prefix("lib-sql-config") == "LIB_SQL_CONFIG"


def test_gateway_settings_from_environment() -> None:
    """Dialect, echo, and port are read from the library namespace only."""

    environ = {
        "LIB_SQL_CONFIG_DIALECT": "postgresql+psycopg",
        "LIB_SQL_CONFIG_ECHO": "true",
        "LIB_SQL_CONFIG_PORT": "5433",
        "OTHER_DIALECT": "mysql",
    }

    assert load_gateway_settings(environ) == GatewaySettings(dialect="postgresql+psycopg", echo=True, port=5433)


def test_gateway_settings_defaults_when_unset() -> None:
    assert load_gateway_settings({}) == GatewaySettings(dialect="sqlite", echo=False, port=None)


def test_gateway_settings_ignore_malformed_values() -> None:
    """A non-integer port or non-boolean echo falls back to the defaults."""

    settings = load_gateway_settings({"LIB_SQL_CONFIG_PORT": "high", "LIB_SQL_CONFIG_ECHO": "loud"})
    assert settings.port is None
    assert settings.echo is False


def test_gateway_settings_echo_accepts_integer_flags() -> None:
    assert load_gateway_settings({"LIB_SQL_CONFIG_ECHO": "1"}).echo is True
    assert load_gateway_settings({"LIB_SQL_CONFIG_ECHO": "0"}).echo is False
    assert load_gateway_settings({"LIB_SQL_CONFIG_ECHO": "TRUE"}).echo is True


def test_env_loader_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("LIB_SQL_CONFIG_DIALECT", "mysql+pymysql")
    assert DefaultEnvLoader().load("LIB_SQL_CONFIG")["dialect"] == "mysql+pymysql"


SCALAR_VALUES = st.sampled_from(["0", "1", "-3", "true", "false", "3.5", "none", "sqlite"])
NAMESPACE_KEYS = st.sampled_from(["DIALECT", "ECHO", "PORT", "POOL_SIZE"])


@given(st.dictionaries(NAMESPACE_KEYS, SCALAR_VALUES, max_size=3))
def test_env_loader_handles_random_namespace(entries) -> None:
    """Randomised namespace inputs should map to consistent coerced payloads."""

    prefix = "DEMO"
    environ = {f"{prefix}_" + key: value for key, value in entries.items()}
    environ["IGNORED"] = "1"
    loader = DefaultEnvLoader(environ=environ)
    payload = loader.load(prefix)

    def _expect(value: str) -> object:
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        if lowered in {"none", "null"}:
            return None
        if lowered.startswith("-") and lowered[1:].isdigit():
            return int(lowered)
        if lowered.isdigit():
            return int(lowered)
        try:
            return float(value)
        except ValueError:
            return value

    assert set(payload) == {key.lower() for key in entries}
    for key, original in entries.items():
        assert payload[key.lower()] == _expect(original)
    assert "ignored" not in payload
