from .init import SUMMARY_LEVEL, get_logger, log_summary, reset_logging, setup_logging
from .issue_log import IssueLogBuffer

__all__ = [
    "SUMMARY_LEVEL",
    "get_logger",
    "log_summary",
    "reset_logging",
    "setup_logging",
    "IssueLogBuffer",
]
