"""In-process named targets."""

import asyncio
import inspect
from typing import Any, Callable, Dict, List, Optional

from ...domain.exceptions import UnitExecutionFailure
from ...domain.models.work_unit import ExecutionContext
from ...domain.services.invoker import Invokable
from ..parallel import unit_executor


TargetFunction = Callable[[Dict[str, str], ExecutionContext], Any]


class TargetRegistry(Invokable):
    """
    Maps target names to Python callables.

    Coroutine functions are awaited on the event loop. Plain functions
    run on the thread pool of the current worker pool run (the loop's
    default executor outside a run). A worker thread cannot be
    interrupted, so a cancelled call still waits for its function to
    return before giving up its slot.

    Example:
        registry = TargetRegistry()

        @registry.target("thumbnail")
        def make_thumbnail(bindings, context):
            ...
    """

    def __init__(self):
        self._targets: Dict[str, TargetFunction] = {}

    def register(self, name: str, fn: TargetFunction):
        """Register (or replace) a target."""
        self._targets[name] = fn

    def target(self, name: Optional[str] = None) -> Callable[[TargetFunction], TargetFunction]:
        """Decorator form of register(); defaults to the function name."""
        def decorator(fn: TargetFunction) -> TargetFunction:
            self.register(name or fn.__name__, fn)
            return fn
        return decorator

    def has_target(self, target_name: str) -> bool:
        return target_name in self._targets

    def target_names(self) -> List[str]:
        return sorted(self._targets)

    async def invoke(
        self,
        target_name: str,
        bindings: Dict[str, str],
        context: ExecutionContext,
    ) -> None:
        fn = self._targets.get(target_name)
        if fn is None:
            raise UnitExecutionFailure(f"Unknown target '{target_name}'")

        if inspect.iscoroutinefunction(fn):
            await fn(bindings, context)
            return

        loop = asyncio.get_running_loop()
        future = loop.run_in_executor(unit_executor.get(), fn, bindings, context)
        try:
            await asyncio.shield(future)
        except asyncio.CancelledError:
            await asyncio.gather(future, return_exceptions=True)
            raise
