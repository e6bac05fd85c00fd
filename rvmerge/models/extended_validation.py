from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rvmerge.models.cell import CellValue

"""Extended (migration readiness) validation result models.

Extended validation runs over the primary sheet only and classifies each row
as accepted or failed with one FailureReason. Counters here are the figures
reported at the end of the run and the failure rows are what the
FailedValidation workbook is built from.
"""

__all__ = [
    "FailureReason",
    "ExtendedValidationFailure",
    "ExtendedValidationResult",
]


class FailureReason(Enum):
    MISSING_IDENTIFIER = "missing_identifier"
    MISSING_OS_CONFIGURATION = "missing_os_configuration"
    DUPLICATE_IDENTIFIER = "duplicate_identifier"
    COUNT_EXCEEDED = "count_exceeded"

    def describe(self, max_row_limit: int) -> str:
        if self is FailureReason.MISSING_IDENTIFIER:
            return "Missing VM UUID"
        if self is FailureReason.MISSING_OS_CONFIGURATION:
            return "Missing OS Configuration"
        if self is FailureReason.DUPLICATE_IDENTIFIER:
            return "Duplicate VM UUID"
        return f"VM Count Limit Exceeded (limit: {max_row_limit})"


@dataclass(frozen=True)
class ExtendedValidationFailure:
    row: tuple[CellValue, ...]
    reason: FailureReason


@dataclass
class ExtendedValidationResult:
    """Counters and failed rows for one run (single writer, not shared)."""
    max_row_limit: int
    missing_identifier: int = 0
    missing_os_configuration: int = 0
    duplicate_identifier: int = 0
    count_exceeded: int = 0
    total_processed: int = 0
    count_limit_reached: bool = False
    rows_skipped_after_limit_reached: int = 0
    failures: list[ExtendedValidationFailure] = field(default_factory=list)

    def record(self, failure: ExtendedValidationFailure) -> None:
        reason = failure.reason
        if reason is FailureReason.MISSING_IDENTIFIER:
            self.missing_identifier += 1
        elif reason is FailureReason.MISSING_OS_CONFIGURATION:
            self.missing_os_configuration += 1
        elif reason is FailureReason.DUPLICATE_IDENTIFIER:
            self.duplicate_identifier += 1
        else:
            self.count_exceeded += 1
            self.count_limit_reached = True
        self.failures.append(failure)

    @property
    def total_failed(self) -> int:
        return len(self.failures)

    def failures_by_reason(self) -> dict[FailureReason, list[ExtendedValidationFailure]]:
        """Failures grouped by reason, in FailureReason declaration order."""
        grouped: dict[FailureReason, list[ExtendedValidationFailure]] = {r: [] for r in FailureReason}
        for f in self.failures:
            grouped[f.reason].append(f)
        return {r: rows for r, rows in grouped.items() if rows}
