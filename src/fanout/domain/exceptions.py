"""Exception hierarchy for fanout."""

from typing import Any, Optional


class FanoutError(Exception):
    """Base class for all fanout errors."""


class ConfigurationError(FanoutError):
    """
    Raised when a run is misconfigured.

    Always raised synchronously, before any unit is dispatched.
    """


class EnumerationError(FanoutError):
    """Raised when an item source cannot be enumerated."""

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class UnitExecutionFailure(FanoutError):
    """
    Raised by an invoker when a single work unit fails.

    The worker pool records it as a failed outcome; it never aborts
    sibling units.
    """


class ParallelExecutionError(FanoutError):
    """
    Raised after the pool drained when one or more units failed.

    Attributes:
        summary: RunSummary of the whole run, including every failure
    """

    def __init__(self, summary: Any):
        self.summary = summary
        first = summary.first_failure
        message = f"{len(summary.failures)} of {summary.units_total} work units failed"
        if first is not None:
            message += f"; first failure: {first.unit.label}: {first.error}"
        super().__init__(message)
