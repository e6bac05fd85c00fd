from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from rvmerge.models.extended_validation import ExtendedValidationResult
from rvmerge.models.validation_issue import ValidationIssue

"""Merge result models.

MergeResult aggregates everything the CLI needs for the SUMMARY line and the
issue report; SheetSummary carries per-sheet row accounting.
"""

__all__ = [
    "MergeStage",
    "SheetSummary",
    "MergeResult",
]


class MergeStage(Enum):
    VALIDATING = "validating"
    ANALYZING_COLUMNS = "analyzing_columns"
    EXTRACTING_ROWS = "extracting_rows"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SheetSummary:
    """Row accounting for one output sheet.

    ``source_rows`` counts non-blank data rows read from all files;
    ``dropped_rows`` those not written (blank mandatory values when skipping,
    extended validation failures, sampling).
    """
    sheet_name: str
    columns: int
    rows: int
    source_rows: int = 0
    dropped_rows: int = 0


@dataclass(frozen=True)
class MergeResult:
    files_supplied: int
    processed_files: list[str]
    sheets: list[SheetSummary]
    validation_issues: list[ValidationIssue]
    warnings: list[str]
    output_path: Path
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    stage: MergeStage = MergeStage.DONE
    anonymization_statistics: dict[str, int] = field(default_factory=dict)
    anonymization_statistics_by_file: dict[str, dict[str, int]] = field(default_factory=dict)
    extended_validation: ExtendedValidationResult | None = None
    anonymization_map_path: Path | None = None
    failed_validation_path: Path | None = None

    @property
    def files_processed(self) -> int:
        return len(self.processed_files)

    @property
    def skipped_files(self) -> int:
        return self.files_supplied - self.files_processed

    @property
    def total_rows(self) -> int:
        return sum(s.rows for s in self.sheets)

    @property
    def total_anonymized(self) -> int:
        return sum(self.anonymization_statistics.values())

    def sheet(self, name: str) -> SheetSummary | None:
        for s in self.sheets:
            if s.sheet_name == name:
                return s
        return None
