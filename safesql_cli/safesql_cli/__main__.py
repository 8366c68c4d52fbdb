"""Entry point for `python -m safesql_cli` and the `safesql` console script."""

from __future__ import annotations

from safesql_cli.app import app


def main() -> None:
    app()


if __name__ == "__main__":
    main()
