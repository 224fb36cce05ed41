"""Shared CLI app objects and build-step helpers."""

import logging
from pathlib import Path

import typer
from rich.console import Console

app = typer.Typer(
    name="zapgate",
    help="Drive an OWASP ZAP daemon as CI build steps",
    no_args_is_help=True,
)
console = Console(highlight=False)

DEFAULT_JOB_FILE = "zapgate.yml"

JobOption = typer.Option(Path(DEFAULT_JOB_FILE), "--job", "-j", help="Job file (YAML)")
WorkspaceOption = typer.Option(
    None, "--workspace", "-w", help="Workspace directory (defaults to the current directory)"
)
VarOption = typer.Option(None, "--var", help="Build variable KEY=VALUE (repeatable)")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Debug logging")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def resolve_paths(job: Path, workspace: Path | None) -> tuple[Path, Path]:
    """Return (job file, workspace) as absolute paths, exiting when the job file is missing."""
    root = (workspace or Path.cwd()).resolve()
    job_path = job if job.is_absolute() else root / job
    if not job_path.exists():
        console.print(f"[red]Error: job file not found: {job_path}[/red]")
        raise typer.Exit(1)
    return job_path, root
