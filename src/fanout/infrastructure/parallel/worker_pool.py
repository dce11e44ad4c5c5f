"""Worker pool for bounded parallel execution of work units."""

from collections import deque
from concurrent.futures import Executor, ThreadPoolExecutor
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional, Set
import asyncio
import time

from ...domain.exceptions import ConfigurationError
from ...domain.models.work_unit import (
    ExecutionContext,
    ExecutionOutcome,
    OutcomeStatus,
    WorkUnit,
)
from ...domain.services.invoker import Invokable
from ..logging import FanoutLogger


# Run-scoped thread pool with max_concurrency workers, visible to the slot
# tasks of that run. Invokers run synchronous callees on it.
unit_executor: ContextVar[Optional[Executor]] = ContextVar("fanout_unit_executor", default=None)


@dataclass
class PoolConfig:
    """Configuration for the worker pool."""
    max_concurrency: int = 2
    unit_timeout: Optional[float] = None  # None = wait forever

    def __post_init__(self):
        if self.max_concurrency < 1:
            raise ConfigurationError(
                f"thread count must be a positive integer, got {self.max_concurrency}"
            )
        if self.unit_timeout is not None and self.unit_timeout <= 0:
            raise ConfigurationError(
                f"unit timeout must be positive, got {self.unit_timeout}"
            )


@dataclass
class PoolResult:
    """Aggregated outcome of a pool drain."""
    outcomes: List[ExecutionOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0
    peak_concurrency: int = 0

    @property
    def failures(self) -> List[ExecutionOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def failed(self) -> bool:
        return any(not o.success for o in self.outcomes)


# Type aliases for callbacks
OnUnitStartCallback = Callable[[WorkUnit], None]
OnUnitCompleteCallback = Callable[[ExecutionOutcome], None]


class WorkerPool:
    """
    Runs queued work units with at most `max_concurrency` in flight.

    Units are queued with submit() and executed by run_to_completion(),
    which starts one slot coroutine per free lane. A slot keeps pulling
    pending units until the queue is empty, so a freed lane is refilled
    right away. Failures are recorded and never cancel other units.

    All bookkeeping (queue, active count, outcomes) is mutated on the
    event loop thread only. Synchronous callees run on a thread pool
    owned by the run (see `unit_executor`) and report back through
    their awaiting slot. A timed-out unit keeps its slot until the
    callee has acknowledged the cancellation, so a callee that cannot be
    interrupted still counts against max_concurrency.
    """

    def __init__(
        self,
        config: PoolConfig,
        invoker: Invokable,
        context: Optional[ExecutionContext] = None,
    ):
        """
        Initialize the worker pool.

        Args:
            config: Pool configuration
            invoker: Callee invoker shared by all units
            context: Parent context; every unit receives its own copy
        """
        self.config = config
        self.invoker = invoker
        self.context = context or ExecutionContext()
        self.logger = FanoutLogger.get_instance()

        self._pending: Deque[WorkUnit] = deque()
        self._outcomes: List[ExecutionOutcome] = []
        self._slots: Set[asyncio.Task] = set()
        self._running = False
        self._executor: Optional[ThreadPoolExecutor] = None
        self._active = 0
        self._peak = 0

        # Callbacks
        self._on_unit_start: Optional[OnUnitStartCallback] = None
        self._on_unit_complete: Optional[OnUnitCompleteCallback] = None

        # Statistics
        self._stats = {
            "units_submitted": 0,
            "units_succeeded": 0,
            "units_failed": 0,
            "peak_concurrency": 0,
            "total_duration": 0.0,
        }

    def set_callbacks(
        self,
        on_unit_start: Optional[OnUnitStartCallback] = None,
        on_unit_complete: Optional[OnUnitCompleteCallback] = None,
    ):
        """
        Set callback functions for progress reporting.

        Args:
            on_unit_start: Called when a unit starts executing
            on_unit_complete: Called with the outcome of each unit
        """
        self._on_unit_start = on_unit_start
        self._on_unit_complete = on_unit_complete

    @property
    def pending(self) -> int:
        """Number of units waiting for a free slot."""
        return len(self._pending)

    @property
    def active(self) -> int:
        """Number of units currently executing."""
        return self._active

    def submit(self, unit: WorkUnit):
        """
        Queue a unit for execution.

        Never blocks. When called while the pool is running (from the
        event loop thread), an idle lane is started for the new unit.
        """
        self._pending.append(unit)
        self._stats["units_submitted"] += 1
        if self._running and len(self._slots) < self.config.max_concurrency:
            self._start_slot()

    async def run_to_completion(self) -> PoolResult:
        """
        Execute every queued unit and wait for the pool to drain.

        Returns:
            PoolResult with one outcome per submitted unit
        """
        if self._running:
            raise RuntimeError("worker pool is already running")

        total = len(self._pending)
        self.logger.info(
            "Starting parallel run",
            extra={
                "total_units": total,
                "max_concurrency": self.config.max_concurrency,
            }
        )

        start_time = time.time()
        self._running = True
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.max_concurrency,
            thread_name_prefix="fanout-unit",
        )
        try:
            for _ in range(min(self.config.max_concurrency, total)):
                self._start_slot()
            while self._slots:
                await asyncio.gather(*list(self._slots))
        finally:
            self._running = False
            self._executor.shutdown(wait=False)
            self._executor = None

        total_duration = time.time() - start_time
        self._stats["total_duration"] = total_duration
        self._stats["peak_concurrency"] = self._peak

        result = PoolResult(
            outcomes=list(self._outcomes),
            duration_seconds=total_duration,
            peak_concurrency=self._peak,
        )

        self.logger.info(
            "Parallel run complete",
            extra={
                "units_succeeded": self._stats["units_succeeded"],
                "units_failed": self._stats["units_failed"],
                "peak_concurrency": self._peak,
                "total_duration_seconds": round(total_duration, 2),
            }
        )
        return result

    def _start_slot(self):
        task = asyncio.get_running_loop().create_task(self._run_slot())
        self._slots.add(task)
        task.add_done_callback(self._slots.discard)

    async def _run_slot(self):
        """Drain the pending queue one unit at a time."""
        unit_executor.set(self._executor)
        while self._pending:
            unit = self._pending.popleft()
            outcome = await self._execute(unit)
            self._record(outcome)

    async def _execute(self, unit: WorkUnit) -> ExecutionOutcome:
        """
        Run a single unit against its own context snapshot.

        Args:
            unit: Work unit to run

        Returns:
            Execution outcome (never raises for callee failures)
        """
        self._active += 1
        self._peak = max(self._peak, self._active)
        started_at = datetime.now()
        self._notify(self._on_unit_start, unit)

        try:
            context = self.context.derive(unit.bindings)
            call = self.invoker.invoke(unit.target_name, unit.bindings, context)
            if self.config.unit_timeout is not None:
                await asyncio.wait_for(call, timeout=self.config.unit_timeout)
            else:
                await call
            return ExecutionOutcome(
                unit=unit,
                status=OutcomeStatus.SUCCESS,
                started_at=started_at,
                finished_at=datetime.now(),
            )

        except asyncio.TimeoutError:
            error_msg = f"Unit timed out after {self.config.unit_timeout}s"
            self.logger.warning(
                f"Work unit timed out: {unit.label}",
                extra={"timeout": self.config.unit_timeout}
            )
            return ExecutionOutcome(
                unit=unit,
                status=OutcomeStatus.FAILURE,
                started_at=started_at,
                finished_at=datetime.now(),
                error=error_msg,
            )

        except Exception as e:
            error_msg = str(e) or type(e).__name__
            self.logger.error(
                f"Work unit failed: {unit.label}",
                extra={"error": error_msg},
                exc_info=self.logger.is_verbose(),
            )
            return ExecutionOutcome(
                unit=unit,
                status=OutcomeStatus.FAILURE,
                started_at=started_at,
                finished_at=datetime.now(),
                error=error_msg,
            )

        finally:
            self._active -= 1

    def _record(self, outcome: ExecutionOutcome):
        self._outcomes.append(outcome)
        if outcome.success:
            self._stats["units_succeeded"] += 1
        else:
            self._stats["units_failed"] += 1
        self._notify(self._on_unit_complete, outcome)

    def _notify(self, callback: Optional[Callable[[Any], None]], payload: Any):
        if callback is None:
            return
        try:
            callback(payload)
        except Exception as e:
            self.logger.warning(f"Progress callback failed: {e}")

    def get_stats(self) -> Dict[str, Any]:
        """
        Get worker pool statistics.

        Returns:
            Dictionary with statistics
        """
        return dict(self._stats)
