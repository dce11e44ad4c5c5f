"""CLI command implementations."""

import asyncio
from pathlib import Path
from typing import List, Optional
from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TimeElapsedColumn
from rich.panel import Panel
from rich.table import Table

from ... import __version__
from ...infrastructure.di.container import DIContainer
from ...infrastructure.config.config_loader import ConfigLoader
from ...infrastructure.config.config_models import FileSetConfig, JobConfig, MapperConfig
from ...infrastructure.presentation.error_presenter import ErrorPresenter
from ...infrastructure.reporting import JSONReportWriter, default_report_path
from ...application.commands.foreach_parallel import ForeachParallelCommand
from ...domain.exceptions import ConfigurationError, ParallelExecutionError
from ...domain.models.run_summary import RunSummary
from ...domain.models.work_unit import ExecutionOutcome, WorkUnit


def run_command(
    job_name: str,
    threads: Optional[int],
    report: Optional[Path],
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Execute run command: run a job from the configuration file.

    Args:
        job_name: Name of the configured job
        threads: Overrides the job's thread count
        report: JSON report file
        config_path: Config file path
        verbose: Enable verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        f"[bold]fanout: {job_name}[/bold]",
        border_style="blue"
    ))

    try:
        container = DIContainer.create(config_path, verbose=verbose, console=console)
        job = container.get_job(job_name)
        command = container.create_command(job, thread_count=threads)
    except Exception as e:
        console.print(f"\n{ErrorPresenter.present(e, verbose=verbose)}")
        raise SystemExit(1)

    _execute_with_progress(
        name=job_name,
        command=command,
        report=report,
        container=container,
        verbose=verbose,
        console=console,
    )


def foreach_command(
    target: str,
    param: str,
    values: Optional[str],
    delimiter: str,
    absparam: Optional[str],
    filesets: Optional[List[Path]],
    mapper_type: Optional[str],
    mapper_from: Optional[str],
    mapper_to: Optional[str],
    threads: Optional[int],
    report: Optional[Path],
    config_path: Optional[str],
    verbose: bool,
    console: Console,
):
    """
    Execute foreach command: an ad-hoc job described by options.

    Args:
        target: Target to invoke per item
        param: Name bound to each item
        values: Delimited list of items
        delimiter: List delimiter
        absparam: Name bound to each file/dir absolute path
        filesets: Directories to scan (all files and directories)
        mapper_type: Optional mapper type
        mapper_from: Mapper 'from' pattern
        mapper_to: Mapper 'to' pattern
        threads: Max concurrent units
        report: JSON report file
        config_path: Config file path
        verbose: Verbose output
        console: Rich console
    """
    console.print(Panel.fit(
        f"[bold]fanout: foreach {target}[/bold]",
        border_style="blue"
    ))

    try:
        container = DIContainer.create(config_path, verbose=verbose, console=console)
        job = _job_from_options(
            target, param, values, delimiter, absparam, filesets,
            mapper_type, mapper_from, mapper_to,
        )
        command = container.create_command(job, thread_count=threads)
    except Exception as e:
        console.print(f"\n{ErrorPresenter.present(e, verbose=verbose)}")
        raise SystemExit(1)

    _execute_with_progress(
        name=target,
        command=command,
        report=report,
        container=container,
        verbose=verbose,
        console=console,
    )


def _job_from_options(
    target: str,
    param: str,
    values: Optional[str],
    delimiter: str,
    absparam: Optional[str],
    filesets: Optional[List[Path]],
    mapper_type: Optional[str],
    mapper_from: Optional[str],
    mapper_to: Optional[str],
) -> JobConfig:
    """Build a job configuration from command line options."""
    try:
        mapper = None
        if mapper_type:
            mapper = MapperConfig(type=mapper_type, from_=mapper_from, to=mapper_to)
        return JobConfig(
            values=values,
            delimiter=delimiter,
            target=target,
            param=param,
            absparam=absparam,
            filesets=[FileSetConfig(dir=str(path)) for path in filesets or []],
            mapper=mapper,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid options:\n{e}") from e


def _execute_with_progress(
    name: str,
    command: ForeachParallelCommand,
    report: Optional[Path],
    container: DIContainer,
    verbose: bool,
    console: Console,
) -> RunSummary:
    """
    Run a command with a live progress bar and print the summary.

    Args:
        name: Job or target name, used for the report file name
        command: Command to run
        report: JSON report file
        container: DI container
        verbose: Verbose output
        console: Rich console

    Returns:
        RunSummary of a successful run (failures exit with status 1)
    """
    output = container.config.output
    if report is None and output.save_report:
        report = default_report_path(output.output_directory, name)
    writer = JSONReportWriter(report) if report else None

    handler = container.foreach_handler
    failure: Optional[ParallelExecutionError] = None

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console,
        refresh_per_second=4,
    ) as progress:
        main_task = progress.add_task("[cyan]Enumerating items...", total=None)
        counts = {"failed": 0}

        def on_units_ready(total: int):
            progress.update(main_task, total=total, description=f"[cyan]Running {total} units...")
            if writer:
                writer.write_header({
                    "target": command.target,
                    "param": command.param,
                    "thread_count": command.thread_count,
                    "units_total": total,
                })

        def on_unit_start(unit: WorkUnit):
            progress.update(
                main_task,
                description=f"[cyan]Running: {unit.parameter_value[:30]} "
                            f"({counts['failed']} failed)"
            )

        def on_unit_complete(outcome: ExecutionOutcome):
            if not outcome.success:
                counts["failed"] += 1
            progress.advance(main_task)
            if writer:
                writer.write_outcome(outcome)

        handler.set_callbacks(
            on_units_ready=on_units_ready,
            on_unit_start=on_unit_start,
            on_unit_complete=on_unit_complete,
        )

        try:
            summary = asyncio.run(handler.handle(command))
            progress.update(main_task, description="[green]Run complete!")

        except ParallelExecutionError as e:
            failure = e
            summary = e.summary
            progress.update(main_task, description="[red]Run finished with failures")

        except KeyboardInterrupt:
            progress.update(main_task, description="[yellow]Run cancelled")
            error_msg = ErrorPresenter.present(KeyboardInterrupt(), verbose=verbose)
            console.print(f"\n{error_msg}")
            raise SystemExit(1)

        except Exception as e:
            progress.update(main_task, description="[red]Run failed!")
            error_msg = ErrorPresenter.present(e, verbose=verbose)
            console.print(f"\n{error_msg}")
            raise SystemExit(1)

    if writer:
        writer.write_footer(summary)
        writer.finalize()

    # Display summary
    style = "red" if summary.failed else "green"
    lines = [f"[bold {style}]{'Run Failed' if summary.failed else 'Run Complete'}[/bold {style}]", ""]
    lines.extend(summary.report_lines())
    lines.append(f"Units succeeded: {summary.succeeded}")
    lines.append(f"Units failed: {len(summary.failures)}")
    if summary.items_skipped:
        lines.append(f"Items skipped by mapper: {summary.items_skipped}")
    lines.append(f"Peak concurrency: {summary.peak_concurrency}")
    lines.append(f"Duration: {summary.duration_seconds:.2f}s")
    console.print("")
    console.print(Panel.fit("\n".join(lines), border_style=style))

    if writer:
        console.print(f"\n[green]Report saved to {report}[/green]")

    if failure is not None:
        console.print(f"\n{ErrorPresenter.present(failure, verbose=verbose)}")
        raise SystemExit(1)

    return summary


def info_command(config_path: Optional[str], console: Console):
    """
    Execute info command.

    Args:
        config_path: Config file path
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]fanout System Information[/bold]",
        border_style="blue"
    ))

    try:
        config = ConfigLoader.load(config_path)
    except Exception as e:
        console.print(f"\n{ErrorPresenter.present(e)}")
        raise SystemExit(1)

    console.print("\n[bold]Version:[/bold]")
    console.print(f"  fanout: {__version__}")

    console.print("\n[bold]Parallel Execution:[/bold]")
    console.print(f"  Default thread count: {config.parallel.thread_count}")
    timeout = config.parallel.unit_timeout
    console.print(f"  Unit timeout: {f'{timeout}s' if timeout else 'none'}")

    console.print("\n[bold]Targets:[/bold]")
    if config.targets:
        table = Table()
        table.add_column("Target")
        table.add_column("Command")
        table.add_column("Description")
        for name, target in sorted(config.targets.items()):
            table.add_row(name, target.command, target.description)
        console.print(table)
    else:
        console.print("  No targets configured")

    console.print("\n[bold]Jobs:[/bold]")
    if config.jobs:
        table = Table()
        table.add_column("Job")
        table.add_column("Target")
        table.add_column("Param")
        table.add_column("Sources")
        for name, job in sorted(config.jobs.items()):
            sources = []
            if job.values:
                sources.append("list")
            if job.filelists:
                sources.append(f"{len(job.filelists)} filelist(s)")
            if job.filesets:
                sources.append(f"{len(job.filesets)} fileset(s)")
            table.add_row(name, job.target or "-", job.param or "-", ", ".join(sources) or "-")
        console.print(table)
    else:
        console.print("  No jobs configured")

    console.print("\n[bold]Configuration:[/bold]")
    config_info = ConfigLoader.get_config_info()
    if config_path:
        console.print(f"  Explicit config: {config_path}")
    elif config_info["existing_configs"]:
        console.print("  Active configs:")
        for cfg in config_info["existing_configs"]:
            console.print(f"    - {cfg}")
    else:
        console.print("  Using default configuration")


def config_command(
    init: bool,
    path: Optional[str],
    show: bool,
    console: Console,
):
    """
    Execute config command.

    Args:
        init: Create default config
        path: Config file path
        show: Show current config
        console: Rich console
    """
    console.print(Panel.fit(
        "[bold]fanout Configuration[/bold]",
        border_style="blue"
    ))

    if init:
        # Create default configuration
        try:
            config_path = ConfigLoader.create_default_config(path)
            console.print(f"\n[green]Configuration file created: {config_path}[/green]")
        except Exception as e:
            console.print(f"\n{ErrorPresenter.present(e)}")
            raise SystemExit(1)

    elif show:
        # Show current configuration
        try:
            config = ConfigLoader.load(path)
            yaml_str = config.to_yaml()
            console.print("\n[bold]Current Configuration:[/bold]")
            console.print(yaml_str, markup=False)
        except Exception as e:
            console.print(f"\n{ErrorPresenter.present(e)}")
            raise SystemExit(1)

    else:
        # Show config info
        config_info = ConfigLoader.get_config_info()

        console.print("\n[bold]Configuration Files:[/bold]")
        if config_info["existing_configs"]:
            for cfg in config_info["existing_configs"]:
                console.print(f"  [green]{cfg}[/green]")
        else:
            console.print("  No configuration files found")

        console.print("\n[bold]Environment Overrides:[/bold]")
        if config_info["env_overrides"]:
            for env_var in config_info["env_overrides"]:
                console.print(f"  {env_var}")
        else:
            console.print("  None")

        console.print("\n[bold]Default Locations:[/bold]")
        for default_path in config_info["default_paths"]:
            console.print(f"  {default_path}")
