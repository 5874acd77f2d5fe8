"""Entry point for ``python -m rollup_tui``."""

from rollup_tui.core.cli import rollup_cli

if __name__ == "__main__":
    rollup_cli()
