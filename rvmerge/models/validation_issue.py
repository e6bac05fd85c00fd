from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime

"""ValidationIssue model.

Issues are the user-visible findings collected during a merge: missing
sheets or columns, rows with blank mandatory values, the extended validation
count limit, and unreadable files. ``skipped`` tells whether the finding
caused the file to be dropped from the merge.
"""

__all__ = [
    "ValidationIssue",
]


@dataclass(frozen=True)
class ValidationIssue:
    file_name: str
    skipped: bool
    message: str

    def to_json_line(self, timestamp: str | None = None) -> str:
        """Serialize as one JSON Lines record (timestamp, file, skipped, message)."""
        ts = timestamp or datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return json.dumps(
            {
                "timestamp": ts,
                "file": self.file_name,
                "skipped": self.skipped,
                "message": self.message,
            },
            ensure_ascii=False,
        )
