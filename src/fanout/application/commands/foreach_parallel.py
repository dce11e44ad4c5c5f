"""Foreach-parallel command and handler: the run orchestrator."""

import asyncio
import os
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ...domain.exceptions import ConfigurationError, ParallelExecutionError
from ...domain.models.item_source import (
    DelimitedListSource,
    ItemKind,
    ItemSource,
    SourceItem,
)
from ...domain.models.run_summary import RunSummary
from ...domain.models.work_unit import ExecutionContext, WorkUnit
from ...domain.services.invoker import Invokable
from ...domain.services.value_mapper import ValueMapper
from ...infrastructure.logging import FanoutLogger
from ...infrastructure.parallel import (
    PoolConfig,
    WorkerPool,
)
from ...infrastructure.parallel.worker_pool import (
    OnUnitCompleteCallback,
    OnUnitStartCallback,
)


OnUnitsReadyCallback = Callable[[int], None]


@dataclass
class ForeachParallelCommand:
    """Everything needed to run one target per item, in parallel."""
    target: Optional[str]
    param: Optional[str]
    values: Optional[str] = None
    delimiter: str = ","
    absparam: Optional[str] = None
    thread_count: int = 2
    file_lists: List[ItemSource] = field(default_factory=list)
    filesets: List[ItemSource] = field(default_factory=list)
    mapper: Optional[ValueMapper] = None

    def add_mapper(self, mapper: ValueMapper):
        """Attach the value mapper; only one is allowed."""
        if self.mapper is not None:
            raise ConfigurationError("Cannot define more than one mapper")
        self.mapper = mapper


class ForeachParallelHandler:
    """
    Orchestrates a foreach-parallel run.

    The run has two phases. First every source is enumerated, mapped
    and turned into work units on the calling thread, which is also the
    only writer of the processed counters. Then all units are handed to
    a WorkerPool and the handler waits for it to drain. Unit failures
    surface only after the drain, as a ParallelExecutionError.
    """

    def __init__(
        self,
        invoker: Invokable,
        context: Optional[ExecutionContext] = None,
        unit_timeout: Optional[float] = None,
    ):
        """
        Initialize the handler.

        Args:
            invoker: Executes the target of each unit
            context: Parent context inherited by every unit
            unit_timeout: Optional per-unit timeout in seconds
        """
        self.invoker = invoker
        self.context = context or ExecutionContext()
        self.unit_timeout = unit_timeout
        self.logger = FanoutLogger.get_instance()

        self._on_units_ready: Optional[OnUnitsReadyCallback] = None
        self._on_unit_start: Optional[OnUnitStartCallback] = None
        self._on_unit_complete: Optional[OnUnitCompleteCallback] = None

    def set_callbacks(
        self,
        on_units_ready: Optional[OnUnitsReadyCallback] = None,
        on_unit_start: Optional[OnUnitStartCallback] = None,
        on_unit_complete: Optional[OnUnitCompleteCallback] = None,
    ):
        """
        Set progress callbacks.

        Args:
            on_units_ready: Called with the unit count once enumeration is done
            on_unit_start: Forwarded to the worker pool
            on_unit_complete: Forwarded to the worker pool
        """
        self._on_units_ready = on_units_ready
        self._on_unit_start = on_unit_start
        self._on_unit_complete = on_unit_complete

    def validate(self, command: ForeachParallelCommand):
        """
        Reject unusable configurations before anything runs.

        Raises:
            ConfigurationError: On the first problem found
        """
        has_list = command.values is not None and command.values.strip() != ""
        if not has_list and not command.file_lists and not command.filesets:
            raise ConfigurationError(
                "Need either list, nested fileset or nested filelist to iterate through"
            )
        if not command.param:
            raise ConfigurationError(
                "You must supply a property name to set on each iteration in param"
            )
        if not command.target:
            raise ConfigurationError("You must supply a target to perform")
        if has_list and not command.delimiter:
            raise ConfigurationError("delimiter must not be empty")
        if command.thread_count < 1:
            raise ConfigurationError(
                f"thread count must be a positive integer, got {command.thread_count}"
            )
        if not self.invoker.has_target(command.target):
            raise ConfigurationError(f"Unknown target '{command.target}'")

    def build_units(
        self,
        command: ForeachParallelCommand,
        summary: RunSummary,
    ) -> List[WorkUnit]:
        """
        Enumerate all sources and build the work units.

        Args:
            command: Run configuration
            summary: Receives the processed counters

        Returns:
            Work units in enumeration order
        """
        mapper = command.mapper or ValueMapper()
        units: List[WorkUnit] = []

        if command.values is not None and command.values.strip():
            summary.list_driven = True
            entries = 0
            source = DelimitedListSource(command.values, command.delimiter)
            for item in source.enumerate():
                unit = self._build_unit(command, item, mapper, summary)
                if unit is not None:
                    units.append(unit)
                    entries += 1
            summary.list_entries_processed += entries

        for source in [*command.file_lists, *command.filesets]:
            summary.source_driven = True
            files = dirs = 0
            for item in source.enumerate():
                if item.kind is ItemKind.DIRECTORY:
                    dirs += 1
                else:
                    files += 1
                unit = self._build_unit(command, item, mapper, summary)
                if unit is not None:
                    units.append(unit)
            summary.files_processed += files
            summary.dirs_processed += dirs
            self.logger.debug(
                f"Enumerated {source.describe()}",
                extra={"files": files, "dirs": dirs}
            )

        return units

    def _build_unit(
        self,
        command: ForeachParallelCommand,
        item: SourceItem,
        mapper: ValueMapper,
        summary: RunSummary,
    ) -> Optional[WorkUnit]:
        abs_value = None
        if command.absparam and item.base_dir is not None:
            # Always the raw relative value, never the mapped one
            abs_value = os.path.join(item.base_dir, item.value)

        value = mapper.apply(item.value)
        if value is None:
            summary.items_skipped += 1
            self.logger.debug(f"Skipping '{item.value}': mapper produced no value")
            return None

        mapped_from = "" if mapper.is_identity else f" (mapped from '{item.value}')"
        self.logger.debug(f"Setting param '{command.param}' to value '{value}'{mapped_from}")

        return WorkUnit(
            target_name=command.target,
            parameter_name=command.param,
            parameter_value=value,
            abs_path_parameter_name=command.absparam if abs_value is not None else None,
            abs_path_value=abs_value,
        )

    async def handle(self, command: ForeachParallelCommand) -> RunSummary:
        """
        Run the command.

        Args:
            command: Run configuration

        Returns:
            RunSummary of a fully successful run

        Raises:
            ConfigurationError: Invalid configuration (nothing ran)
            EnumerationError: A source failed (nothing ran)
            ParallelExecutionError: One or more units failed (all ran)
        """
        self.validate(command)

        summary = RunSummary(target=command.target)
        units = self.build_units(command, summary)

        if self._on_units_ready:
            self._on_units_ready(len(units))

        pool = WorkerPool(
            config=PoolConfig(
                max_concurrency=command.thread_count,
                unit_timeout=self.unit_timeout,
            ),
            invoker=self.invoker,
            context=self.context,
        )
        pool.set_callbacks(
            on_unit_start=self._on_unit_start,
            on_unit_complete=self._on_unit_complete,
        )
        for unit in units:
            pool.submit(unit)

        result = await pool.run_to_completion()

        summary.outcomes = result.outcomes
        summary.duration_seconds = result.duration_seconds
        summary.peak_concurrency = result.peak_concurrency

        for line in summary.report_lines():
            self.logger.info(line)
        if summary.items_skipped:
            self.logger.info(f"Skipped {summary.items_skipped} unmapped items")

        if summary.failed:
            raise ParallelExecutionError(summary)
        return summary

    def execute(self, command: ForeachParallelCommand) -> RunSummary:
        """Synchronous wrapper around handle() for callers without a loop."""
        return asyncio.run(self.handle(command))
