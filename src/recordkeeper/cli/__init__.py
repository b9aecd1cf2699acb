"""Console shell for Record Keeper."""

from recordkeeper.cli.main import main

__all__ = ["main"]
