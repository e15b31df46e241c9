"""Allow ``python -m lib_sql_config render 'sql://...'`` alongside the console script."""

from __future__ import annotations

import sys

from .cli import main

if __name__ == "__main__":  # pragma: no cover - exercised via python -m
    sys.exit(main(sys.argv[1:], restore_traceback=False))
