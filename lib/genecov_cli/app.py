"""
Typer application instance for the genecov CLI.

Commands are registered via the commands subpackage.
"""

import typer

app = typer.Typer(
    name="genecov",
    help="genecov: gene-body coverage of transcripts aligned to genome assemblies.",
    rich_markup_mode="rich",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)
