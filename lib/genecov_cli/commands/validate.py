"""
The 'validate' command for the genecov CLI.

Checks a dataset sheet and its referenced files without running the analysis.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from genecov.errors import FileFormatError
from genecov.seqinfo import load_sequence_info
from genecov.sheet import DatasetSpec, read_dataset_sheet
from genecov_cli.app import app
from genecov_cli.utils import USAGE_EXIT_CODE, console, error, success


def check_dataset(spec: DatasetSpec) -> list[str]:
    """Return human-readable problems with one dataset's inputs."""
    problems = []
    if not spec.alignments.is_file():
        problems.append(f"alignment file not found: {spec.alignments}")

    for role, path in (("subject", spec.assembly), ("query", spec.transcripts)):
        if path is None:
            continue
        try:
            load_sequence_info(path, role=role)
        except FileFormatError as e:
            problems.append(f"{e} (analysis would continue without {role} lengths)")
        except OSError as e:
            problems.append(str(e))
    return problems


@app.command("validate")
def validate_inputs(
    sheet: Annotated[
        Path,
        typer.Argument(
            help="Dataset sheet to check.",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
            resolve_path=True,
        ),
    ],
) -> None:
    """
    [bold yellow]Validate[/bold yellow] a dataset sheet and the files it references.
    """
    try:
        specs = read_dataset_sheet(sheet)
    except (FileFormatError, OSError) as e:
        error(str(e), exit_code=USAGE_EXIT_CODE)

    table = Table(title="Dataset inputs")
    table.add_column("Dataset", style="bold")
    table.add_column("Status")
    table.add_column("Problems", overflow="fold")

    failures = 0
    for spec in specs:
        problems = check_dataset(spec)
        failures += bool(problems)
        status = "[red]problems[/red]" if problems else "[green]ok[/green]"
        table.add_row(spec.label, status, "\n".join(problems))

    console.print(table)
    if failures:
        error(f"{failures} of {len(specs)} dataset(s) have input problems")
    success(f"All {len(specs)} dataset(s) look ready")
