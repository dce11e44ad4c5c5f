"""Dependency injection container for fanout."""

from dataclasses import dataclass
from typing import Optional

from rich.console import Console

from ..config.config_loader import ConfigLoader
from ..config.config_models import FanoutConfig, JobConfig
from ..invokers import CommandInvoker
from ..logging import FanoutLogger
from ..mappers import MapperFactory
from ..sources import ConfiguredFileListSource, FileSetSource
from ...domain.exceptions import ConfigurationError
from ...domain.models.work_unit import ExecutionContext
from ...domain.services.invoker import Invokable
from ...application.commands.foreach_parallel import (
    ForeachParallelCommand,
    ForeachParallelHandler,
)


@dataclass
class DIContainer:
    """
    Dependency injection container for fanout.

    Assembles all components with proper dependency injection.
    This container is created once at application startup.
    """

    # Configuration
    config: FanoutConfig

    # Infrastructure
    logger: FanoutLogger
    invoker: Invokable
    context: ExecutionContext

    # Application Handlers
    foreach_handler: ForeachParallelHandler

    @classmethod
    def create(
        cls,
        config_path: Optional[str] = None,
        verbose: bool = False,
        console: Optional[Console] = None,
        invoker: Optional[Invokable] = None,
    ) -> "DIContainer":
        """
        Create and wire all dependencies.

        Args:
            config_path: Optional path to configuration file
            verbose: Force DEBUG logging
            console: Rich console for log output; colour is stripped
                when output.color is off
            invoker: Replaces the configured command targets

        Returns:
            DIContainer with all dependencies wired
        """
        # Load configuration
        config = ConfigLoader.load(config_path)

        if console is not None and not config.output.color:
            console.no_color = True

        logger = FanoutLogger.get_instance()
        logger.configure(
            level="DEBUG" if verbose or config.output.verbose else config.logging.level,
            console=config.logging.console,
            file=config.logging.file,
            rotation=config.logging.rotation,
            retention_days=config.logging.retention_days,
            rich_console=console,
        )

        if invoker is None:
            invoker = CommandInvoker(config.targets)

        context = ExecutionContext(properties=dict(config.properties))

        foreach_handler = ForeachParallelHandler(
            invoker=invoker,
            context=context,
            unit_timeout=config.parallel.unit_timeout,
        )

        return cls(
            config=config,
            logger=logger,
            invoker=invoker,
            context=context,
            foreach_handler=foreach_handler,
        )

    def get_job(self, name: str) -> JobConfig:
        """
        Look up a configured job.

        Raises:
            ConfigurationError: If no job has that name
        """
        job = self.config.jobs.get(name)
        if job is None:
            known = ", ".join(sorted(self.config.jobs)) or "none"
            raise ConfigurationError(f"Unknown job '{name}' (configured jobs: {known})")
        return job

    def create_command(
        self,
        job: JobConfig,
        thread_count: Optional[int] = None,
    ) -> ForeachParallelCommand:
        """
        Translate a job configuration into a runnable command.

        Args:
            job: Job configuration
            thread_count: Overrides both the job and the global setting

        Returns:
            ForeachParallelCommand with sources and mapper built
        """
        exclusions = self.config.file_discovery.default_exclusions

        command = ForeachParallelCommand(
            target=job.target,
            param=job.param,
            values=job.values,
            delimiter=job.delimiter,
            absparam=job.absparam,
            thread_count=thread_count or job.thread_count or self.config.parallel.thread_count,
            file_lists=[ConfiguredFileListSource(fl) for fl in job.filelists],
            filesets=[FileSetSource(fs, exclusions) for fs in job.filesets],
        )
        if job.mapper is not None:
            command.add_mapper(MapperFactory.create(job.mapper))
        return command

    def __repr__(self) -> str:
        """String representation."""
        return f"<DIContainer: {len(self.config.targets)} targets, {len(self.config.jobs)} jobs>"
