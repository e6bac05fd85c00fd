from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from rvmerge.models.validation_issue import ValidationIssue

"""Validation issue log (JSON Lines).

Issues collected during a merge are buffered and written on flush() as one
JSON object per line with the fixed keys timestamp, file, skipped, message.
Without an explicit path the file is ``logs/issues-YYYYMMDD-HHMMSS.log``
(UTC), chosen on first use.
"""

__all__ = [
    "IssueLogBuffer",
    "LOGS_DIR",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class IssueLogBuffer:
    def __init__(self, path: Path | None = None) -> None:
        self._issues: list[ValidationIssue] = []
        self._file_path: Path | None = path

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = LOGS_DIR / f"issues-{stamp}.log"
        return self._file_path

    def append(self, issue: ValidationIssue) -> None:
        self._issues.append(issue)

    def extend(self, issues: Iterable[ValidationIssue]) -> None:
        self._issues.extend(issues)

    def __len__(self) -> int:
        return len(self._issues)

    def flush(self) -> Path | None:
        """Append buffered issues to the log file; None when there was nothing to write."""
        if not self._issues:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        with fp.open("a", encoding="utf-8") as f:
            for issue in self._issues:
                f.write(issue.to_json_line(ts) + "\n")
        self._issues.clear()
        return fp
