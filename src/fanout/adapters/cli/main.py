"""fanout command line entry point."""

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console

from .commands import config_command, foreach_command, info_command, run_command


app = typer.Typer(
    name="fanout",
    help="Run a target once per item, in parallel.",
    no_args_is_help=True,
)

console = Console()


@app.command("run")
def run(
    job: str = typer.Argument(..., help="Name of a job from the configuration file"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Max concurrent units"),
    report: Optional[Path] = typer.Option(None, "--report", "-r", help="Write a JSON run report"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Run a configured job."""
    run_command(
        job_name=job,
        threads=threads,
        report=report,
        config_path=config,
        verbose=verbose,
        console=console,
    )


@app.command("foreach")
def foreach(
    target: str = typer.Option(..., "--target", help="Target to invoke per item"),
    param: str = typer.Option(..., "--param", help="Name bound to each item's value"),
    values: Optional[str] = typer.Option(None, "--list", "-l", help="Delimited list of items"),
    delimiter: str = typer.Option(",", "--delimiter", "-d", help="List delimiter"),
    absparam: Optional[str] = typer.Option(None, "--absparam", help="Name bound to absolute paths"),
    fileset: Optional[List[Path]] = typer.Option(None, "--fileset", "-f", help="Directory to scan (repeatable)"),
    mapper: Optional[str] = typer.Option(None, "--mapper", help="Mapper type: flatten, glob, regexp, merge"),
    mapper_from: Optional[str] = typer.Option(None, "--from", help="Mapper 'from' pattern"),
    mapper_to: Optional[str] = typer.Option(None, "--to", help="Mapper 'to' pattern"),
    threads: Optional[int] = typer.Option(None, "--threads", "-t", min=1, help="Max concurrent units"),
    report: Optional[Path] = typer.Option(None, "--report", "-r", help="Write a JSON run report"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """Run a target for each list entry and/or each scanned file and directory."""
    foreach_command(
        target=target,
        param=param,
        values=values,
        delimiter=delimiter,
        absparam=absparam,
        filesets=fileset,
        mapper_type=mapper,
        mapper_from=mapper_from,
        mapper_to=mapper_to,
        threads=threads,
        report=report,
        config_path=config,
        verbose=verbose,
        console=console,
    )


@app.command("config")
def config(
    init: bool = typer.Option(False, "--init", help="Create a default configuration file"),
    show: bool = typer.Option(False, "--show", help="Show the effective configuration"),
    path: Optional[str] = typer.Option(None, "--path", "-p", help="Configuration file"),
):
    """Inspect or create the configuration."""
    config_command(init=init, path=path, show=show, console=console)


@app.command("info")
def info(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file"),
):
    """Show version, targets and jobs."""
    info_command(config_path=config, console=console)


def main():
    app()


if __name__ == "__main__":
    main()
