"""Transpile failure type and the issue-reporting seam.

Every hard failure inside the transpiler is a ``TranspileError``. Public
entry points never let it escape: they hand the message to the caller's
``IssueReporter`` callback (``is_fatal=True``) and return an empty default.
"""

from typing import Callable

from ..log import get_logger

__all__ = ["IssueReporter", "TranspileError", "report_issue"]

logger = get_logger(__name__)

IssueReporter = Callable[[str, bool], None]
"""Sink for caught failures: ``(message, is_fatal)``."""


class TranspileError(Exception):
    """A node, component or image could not be turned into markup."""

    def __init__(self, message: str):
        super().__init__(f"Transpile failure: {message}")
        self.message = message


def report_issue(reporter: IssueReporter, error: Exception | str, is_fatal: bool = True) -> None:
    """Log an issue and forward it to the caller's reporter.

    Args:
        reporter: Callback supplied by the caller.
        error: Caught exception or plain message.
        is_fatal: Whether the current top-level element was aborted.
    """
    message = str(error)
    if is_fatal:
        logger.error(message)
    else:
        logger.warning(message)
    reporter(message, is_fatal)
