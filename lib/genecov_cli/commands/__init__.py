"""
Command modules for the genecov CLI.

Each submodule defines a Typer command registered with the main app in
genecov_cli/__init__.py.
"""

from genecov_cli.commands import run, validate

__all__ = ["run", "validate"]
