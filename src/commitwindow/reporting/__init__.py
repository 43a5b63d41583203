"""Report rendering."""

from commitwindow.reporting.report import ReportWriter, format_commit_line

__all__ = ["ReportWriter", "format_commit_line"]
