"""Summary of a foreach-parallel run."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .work_unit import ExecutionOutcome


@dataclass
class RunSummary:
    """
    Counters and outcomes of one run.

    The entry/file/directory counters are filled during enumeration; the
    outcomes after the pool drained.
    """
    target: str
    list_driven: bool = False
    source_driven: bool = False
    list_entries_processed: int = 0
    files_processed: int = 0
    dirs_processed: int = 0
    items_skipped: int = 0
    outcomes: List[ExecutionOutcome] = field(default_factory=list)
    duration_seconds: float = 0.0
    peak_concurrency: int = 0

    @property
    def units_total(self) -> int:
        return len(self.outcomes)

    @property
    def failures(self) -> List[ExecutionOutcome]:
        return [o for o in self.outcomes if not o.success]

    @property
    def succeeded(self) -> int:
        return self.units_total - len(self.failures)

    @property
    def failed(self) -> bool:
        return bool(self.failures)

    @property
    def first_failure(self) -> Optional[ExecutionOutcome]:
        failures = self.failures
        return failures[0] if failures else None

    def report_lines(self) -> List[str]:
        """Processed-count lines, as shown at the end of a run."""
        lines = []
        if self.list_driven:
            noun = "entry" if self.list_entries_processed == 1 else "entries"
            lines.append(f"Processed {self.list_entries_processed} {noun} in list")
        if self.source_driven:
            lines.append(
                f"Processed {self.dirs_processed} directories and {self.files_processed} files"
            )
        return lines

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serialisable dictionary."""
        return {
            "target": self.target,
            "status": "failed" if self.failed else "succeeded",
            "list_entries_processed": self.list_entries_processed,
            "files_processed": self.files_processed,
            "dirs_processed": self.dirs_processed,
            "items_skipped": self.items_skipped,
            "units_total": self.units_total,
            "units_succeeded": self.succeeded,
            "units_failed": len(self.failures),
            "peak_concurrency": self.peak_concurrency,
            "duration_seconds": round(self.duration_seconds, 3),
        }
