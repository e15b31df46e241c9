"""Example database helpers for ``lib_sql_config``."""

from .seed import EXAMPLE_RENDERING, example_descriptor, seed_example_database

__all__ = [
    "EXAMPLE_RENDERING",
    "example_descriptor",
    "seed_example_database",
]
