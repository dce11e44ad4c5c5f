"""Callee invocation interface."""

from abc import ABC, abstractmethod
from typing import Dict

from ..models.work_unit import ExecutionContext


class Invokable(ABC):
    """
    Executes a named target with parameter bindings.

    Returning normally means success; raising any exception means the
    unit failed. Nothing else about the callee is assumed.
    """

    @abstractmethod
    async def invoke(
        self,
        target_name: str,
        bindings: Dict[str, str],
        context: ExecutionContext,
    ) -> None:
        """
        Run the target to completion.

        Args:
            target_name: Name of the target to run
            bindings: Parameter bindings of the work unit
            context: Independent context snapshot owned by this invocation
        """
        pass

    def has_target(self, target_name: str) -> bool:
        """Whether the target is known; invokers that cannot tell say yes."""
        return True
