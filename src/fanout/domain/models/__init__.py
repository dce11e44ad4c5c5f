"""Domain models."""

from .item_source import (
    ItemSource,
    ItemKind,
    SourceItem,
    DelimitedListSource,
    FileListSource,
    DirectoryScanSource,
)
from .work_unit import WorkUnit, ExecutionContext, ExecutionOutcome, OutcomeStatus
from .run_summary import RunSummary

__all__ = [
    "ItemSource",
    "ItemKind",
    "SourceItem",
    "DelimitedListSource",
    "FileListSource",
    "DirectoryScanSource",
    "WorkUnit",
    "ExecutionContext",
    "ExecutionOutcome",
    "OutcomeStatus",
    "RunSummary",
]
