"""Work unit, execution context and outcome models."""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class WorkUnit:
    """
    A fully bound invocation request.

    Immutable once built. Consumed exactly once by the worker pool.
    """
    target_name: str
    parameter_name: str
    parameter_value: str
    abs_path_parameter_name: Optional[str] = None
    abs_path_value: Optional[str] = None

    @property
    def bindings(self) -> Dict[str, str]:
        """Parameter bindings passed to the callee."""
        bindings = {}
        if self.abs_path_parameter_name and self.abs_path_value is not None:
            bindings[self.abs_path_parameter_name] = self.abs_path_value
        bindings[self.parameter_name] = self.parameter_value
        return bindings

    @property
    def label(self) -> str:
        """Human readable identity: target plus bound value."""
        return f"{self.target_name}[{self.parameter_name}={self.parameter_value}]"


@dataclass
class ExecutionContext:
    """
    Inheritable state handed to every callee invocation.

    Each unit gets its own deep copy, so concurrent units never see each
    other's bindings.
    """
    properties: Dict[str, str] = field(default_factory=dict)
    references: Dict[str, Any] = field(default_factory=dict)

    def snapshot(self) -> "ExecutionContext":
        """Return an independent deep copy of this context."""
        return ExecutionContext(
            properties=copy.deepcopy(self.properties),
            references=copy.deepcopy(self.references),
        )

    def derive(self, bindings: Dict[str, str]) -> "ExecutionContext":
        """
        Snapshot this context and apply bindings as overriding properties.

        Args:
            bindings: Parameter bindings of a work unit

        Returns:
            New context owned by a single invocation
        """
        child = self.snapshot()
        child.properties.update(bindings)
        return child


class OutcomeStatus(str, Enum):
    """Terminal state of a work unit."""
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass
class ExecutionOutcome:
    """Result of running a single work unit."""
    unit: WorkUnit
    status: OutcomeStatus
    started_at: datetime
    finished_at: datetime
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status is OutcomeStatus.SUCCESS

    @property
    def duration_seconds(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return {
            "target": self.unit.target_name,
            "bindings": self.unit.bindings,
            "status": self.status.value,
            "error": self.error,
            "started_at": self.started_at.isoformat(),
            "finished_at": self.finished_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
        }
