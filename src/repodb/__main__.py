"""Module entrypoint for ``python -m repodb``."""

from __future__ import annotations

from repodb.main import cli_entrypoint

if __name__ == "__main__":
    raise SystemExit(cli_entrypoint())
