"""Shared infrastructure: logging and error reporting."""

from .error import IssueReporter, TranspileError, report_issue
from .log import get_logger, setup_logging

__all__ = [
    "IssueReporter",
    "TranspileError",
    "get_logger",
    "report_issue",
    "setup_logging",
]
