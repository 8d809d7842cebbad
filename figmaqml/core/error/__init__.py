"""Error micro API for figmaqml."""

from .lib import IssueReporter, TranspileError, report_issue

__all__ = ["IssueReporter", "TranspileError", "report_issue"]
