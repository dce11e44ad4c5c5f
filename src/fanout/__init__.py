"""fanout: run a target once per item with bounded parallelism."""

__version__ = "1.0.0"

from .application.commands.foreach_parallel import (
    ForeachParallelCommand,
    ForeachParallelHandler,
)
from .domain.exceptions import (
    ConfigurationError,
    EnumerationError,
    FanoutError,
    ParallelExecutionError,
    UnitExecutionFailure,
)
from .domain.models import (
    DelimitedListSource,
    DirectoryScanSource,
    ExecutionContext,
    ExecutionOutcome,
    FileListSource,
    RunSummary,
    WorkUnit,
)
from .domain.services import Invokable, ValueMapper
from .infrastructure.invokers import CommandInvoker, TargetRegistry
from .infrastructure.parallel import PoolConfig, PoolResult, WorkerPool

__all__ = [
    "__version__",
    "ForeachParallelCommand",
    "ForeachParallelHandler",
    "ConfigurationError",
    "EnumerationError",
    "FanoutError",
    "ParallelExecutionError",
    "UnitExecutionFailure",
    "DelimitedListSource",
    "DirectoryScanSource",
    "ExecutionContext",
    "ExecutionOutcome",
    "FileListSource",
    "RunSummary",
    "WorkUnit",
    "Invokable",
    "ValueMapper",
    "CommandInvoker",
    "TargetRegistry",
    "PoolConfig",
    "PoolResult",
    "WorkerPool",
]
