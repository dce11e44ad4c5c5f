"""Run reports."""

from .report_writer import JSONReportWriter, default_report_path

__all__ = ["JSONReportWriter", "default_report_path"]
