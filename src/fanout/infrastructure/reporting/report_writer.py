"""Incremental JSON report of a foreach-parallel run."""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional
import json
import threading

from ...domain.models.run_summary import RunSummary
from ...domain.models.work_unit import ExecutionOutcome
from ..logging import FanoutLogger


class JSONReportWriter:
    """
    Writes the run report as outcomes arrive.

    The file is valid JSON after every write: the whole document is kept
    in memory and rewritten on each update, so a crashed run still leaves
    the outcomes recorded so far.
    """

    def __init__(self, output_file: Path):
        """
        Initialize writer.

        Args:
            output_file: Path to output file
        """
        self.output_file = output_file
        self.logger = FanoutLogger.get_instance()
        self._lock = threading.Lock()
        self._data: Dict[str, Any] = {
            "run_info": {},
            "progress": {},
            "outcomes": [],
        }

    def write_header(self, run_info: Dict[str, Any]):
        """Write the header with run information."""
        with self._lock:
            self._data["run_info"] = {
                **run_info,
                "status": "in_progress",
                "started_at": datetime.now().isoformat(),
            }
            self._data["progress"] = {
                "units_total": run_info.get("units_total", 0),
                "units_completed": 0,
                "units_failed": 0,
            }
            self._data["outcomes"] = []
            self._write_file()

    def write_outcome(self, outcome: ExecutionOutcome):
        """Append one unit outcome."""
        with self._lock:
            self._data["outcomes"].append(outcome.to_dict())
            progress = self._data["progress"]
            progress["units_completed"] = progress.get("units_completed", 0) + 1
            if not outcome.success:
                progress["units_failed"] = progress.get("units_failed", 0) + 1
            self._write_file()

    def write_footer(self, summary: RunSummary):
        """Write the footer with the final summary."""
        with self._lock:
            self._data["run_info"]["status"] = "failed" if summary.failed else "completed"
            self._data["run_info"]["completed_at"] = datetime.now().isoformat()
            self._data["summary"] = {
                **summary.to_dict(),
                "report": summary.report_lines(),
            }
            self._write_file()

    def finalize(self):
        """Finalize the JSON file."""
        with self._lock:
            self._write_file()
            self.logger.info(f"JSON report finalized: {self.output_file}")

    def _write_file(self):
        """Write the current data to file."""
        try:
            self.output_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.output_file, 'w', encoding='utf-8') as f:
                json.dump(self._data, f, indent=2, default=str)
        except OSError as e:
            self.logger.error(f"Failed to write JSON report: {e}")

    @property
    def data(self) -> Dict[str, Any]:
        """Copy of the current report document."""
        with self._lock:
            return json.loads(json.dumps(self._data, default=str))


def default_report_path(output_directory: str, name: str, now: Optional[datetime] = None) -> Path:
    """Timestamped report path inside the output directory."""
    timestamp = (now or datetime.now()).strftime("%Y%m%d_%H%M%S")
    return Path(output_directory) / f"fanout_{name}_{timestamp}.json"
