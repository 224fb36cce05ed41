"""``start``, ``scan`` and ``threshold`` build-step commands."""

from pathlib import Path

import typer

from zapgate.modules.build.models import BuildResult, BuildStep

from .deps import cli_module
from .shared import (
    JobOption,
    VarOption,
    VerboseOption,
    WorkspaceOption,
    app,
    configure_logging,
    console,
    resolve_paths,
)


def run_build_step(step: BuildStep, job: Path, workspace: Path | None, var: list[str] | None, verbose: bool) -> None:
    """Run one build step and exit with its result level."""
    cli = cli_module()
    configure_logging(verbose)
    job_path, root = resolve_paths(job, workspace)
    try:
        build_vars = cli.parse_build_vars(var)
    except ValueError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(1) from exc

    log = cli.BuildLog(console)
    result = cli.safe_async_run(
        cli.execute_step(step, job_path, root, log, build_vars=build_vars, executor=cli.LocalExecutor())
    )
    style = {BuildResult.SUCCESS: "green", BuildResult.UNSTABLE: "yellow"}.get(result, "red")
    console.print(f"[{style}]{step.value.upper()}: {result.name}[/{style}]")
    raise typer.Exit(int(result))


@app.command()
def start(
    job: Path = JobOption,
    workspace: Path | None = WorkspaceOption,
    var: list[str] | None = VarOption,
    verbose: bool = VerboseOption,
) -> None:
    """Pre-build: launch ZAP and leave it running for proxied traffic."""
    run_build_step(BuildStep.START, job, workspace, var, verbose)


@app.command()
def scan(
    job: Path = JobOption,
    workspace: Path | None = WorkspaceOption,
    var: list[str] | None = VarOption,
    verbose: bool = VerboseOption,
) -> None:
    """Main build step: configure ZAP, scan the target, write reports."""
    run_build_step(BuildStep.SCAN, job, workspace, var, verbose)


@app.command()
def threshold(
    job: Path = JobOption,
    workspace: Path | None = WorkspaceOption,
    var: list[str] | None = VarOption,
    verbose: bool = VerboseOption,
) -> None:
    """Post-build: grade the persisted session's alerts against thresholds."""
    run_build_step(BuildStep.THRESHOLD, job, workspace, var, verbose)
