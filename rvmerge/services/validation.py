from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from rvmerge.excel.reader import Workbook, WorkbookReadError, read_excel_file
from rvmerge.models.cell import BLANK, CellValue
from rvmerge.models.config_models import MergeConfig
from rvmerge.models.extended_validation import (
    ExtendedValidationFailure,
    ExtendedValidationResult,
    FailureReason,
)
from rvmerge.models.validation_issue import ValidationIssue
from rvmerge.services.header_resolver import resolve_sheet

"""File-level, row-level and extended validation.

File level: the primary sheet must exist with all its mandatory columns
(the OS configuration column is exempt); optional sheets must exist unless
missing optional sheets are ignored, and must carry their mandatory columns.

Row level: every mandatory column except the OS configuration column must
be non-blank.

Extended: primary sheet rows need a unique non-blank identifier and a
non-blank OS configuration, up to a maximum number of accepted rows.
"""

__all__ = [
    "FileValidationResult",
    "validate_file",
    "validate_workbook",
    "mandatory_column_indices",
    "has_empty_mandatory_values",
    "ExtendedValidator",
]


@dataclass(frozen=True)
class FileValidationResult:
    file_name: str
    is_valid: bool
    has_primary_sheet: bool
    issues: list[ValidationIssue] = field(default_factory=list)


def validate_workbook(
    workbook: Workbook,
    config: MergeConfig,
    *,
    ignore_missing_optional_sheets: bool = False,
    skip_invalid_files: bool = False,
) -> FileValidationResult:
    """Check sheets and mandatory columns of a header-only workbook.

    ``skip_invalid_files`` decides the ``skipped`` flag of issues that make
    the file invalid (True when the file will be dropped).
    """
    name = workbook.name
    issues: list[ValidationIssue] = []
    primary = config.primary_sheet

    if not workbook.sheet_exists(primary):
        issues.append(ValidationIssue(
            name, skip_invalid_files, f"Missing essential '{primary}' sheet which is required for processing."
        ))
        return FileValidationResult(name, False, False, issues)

    is_valid = True
    primary_columns = resolve_sheet(workbook, primary, config)
    present = set(primary_columns.columns) if primary_columns else set()
    missing = [c for c in config.row_mandatory_columns(primary) if c not in present]
    if missing:
        issues.append(ValidationIssue(
            name, skip_invalid_files,
            f"'{primary}' sheet is missing mandatory column(s): {', '.join(missing)}",
        ))
        is_valid = False

    for sheet in config.optional_sheets:
        if not workbook.sheet_exists(sheet):
            if ignore_missing_optional_sheets:
                issues.append(ValidationIssue(name, False, f"Missing optional sheet '{sheet}'."))
            else:
                issues.append(ValidationIssue(name, skip_invalid_files, f"Missing optional sheet '{sheet}'"))
                is_valid = False
            continue

        columns = resolve_sheet(workbook, sheet, config)
        present = set(columns.columns) if columns else set()
        missing = [c for c in config.mandatory_columns(sheet) if c not in present]
        if not missing:
            continue
        if ignore_missing_optional_sheets:
            issues.append(ValidationIssue(
                name, False,
                f"Sheet '{sheet}' has missing column(s): {', '.join(missing)}. "
                "This sheet may be excluded from processing.",
            ))
        else:
            issues.append(ValidationIssue(
                name, skip_invalid_files,
                f"Sheet '{sheet}' is missing mandatory column(s): {', '.join(missing)}",
            ))
            is_valid = False

    return FileValidationResult(name, is_valid, True, issues)


def validate_file(
    path: Path,
    config: MergeConfig,
    *,
    ignore_missing_optional_sheets: bool = False,
    skip_invalid_files: bool = False,
) -> FileValidationResult:
    """Open ``path`` (headers only) and validate it. Unreadable files are invalid."""
    try:
        workbook = read_excel_file(path, config.sheet_names, header_only=True)
    except WorkbookReadError as e:
        issue = ValidationIssue(path.name, skip_invalid_files, f"Error validating file: {e}")
        return FileValidationResult(path.name, False, False, [issue])
    return validate_workbook(
        workbook,
        config,
        ignore_missing_optional_sheets=ignore_missing_optional_sheets,
        skip_invalid_files=skip_invalid_files,
    )


def mandatory_column_indices(
    output_columns: Sequence[str], sheet_name: str, config: MergeConfig
) -> list[int]:
    """Output positions of the row-checked mandatory columns that made it into the output."""
    index_of = {name: idx for idx, name in reversed(list(enumerate(output_columns)))}
    return [index_of[c] for c in config.row_mandatory_columns(sheet_name) if c in index_of]


def has_empty_mandatory_values(row: Sequence[CellValue], indices: Sequence[int]) -> bool:
    return any(0 <= idx < len(row) and row[idx].is_blank for idx in indices)


class ExtendedValidator:
    """Classifies primary sheet rows and keeps the run's counters.

    Checks run in a fixed order: count limit, identifier, OS configuration,
    duplicate identifier. Once the limit has been hit every further row is
    only counted as skipped.
    """

    def __init__(self, output_columns: Sequence[str], config: MergeConfig, max_row_limit: int) -> None:
        columns = list(output_columns)
        self._identifier_index = (
            columns.index(config.identifier_column) if config.identifier_column in columns else -1
        )
        self._os_index = (
            columns.index(config.os_configuration_column)
            if config.os_configuration_column in columns else -1
        )
        self.max_row_limit = max_row_limit
        self.result = ExtendedValidationResult(max_row_limit=max_row_limit)
        self._seen_identifiers: set[str] = set()

    def _cell(self, row: Sequence[CellValue], index: int) -> CellValue:
        # a column missing from the output counts as blank
        if 0 <= index < len(row):
            return row[index]
        return BLANK

    def classify(self, row: Sequence[CellValue]) -> FailureReason | None:
        if self.result.total_processed >= self.max_row_limit:
            return FailureReason.COUNT_EXCEEDED
        identifier = self._cell(row, self._identifier_index)
        if identifier.is_blank:
            return FailureReason.MISSING_IDENTIFIER
        if self._cell(row, self._os_index).is_blank:
            return FailureReason.MISSING_OS_CONFIGURATION
        if identifier.text in self._seen_identifiers:
            return FailureReason.DUPLICATE_IDENTIFIER
        return None

    def process(self, row: Sequence[CellValue]) -> bool:
        """Validate one row; True when the row is accepted into the merge."""
        if self.result.count_limit_reached:
            self.result.rows_skipped_after_limit_reached += 1
            return False
        reason = self.classify(row)
        if reason is None:
            self._seen_identifiers.add(self._cell(row, self._identifier_index).text)
            self.result.total_processed += 1
            return True
        self.result.record(ExtendedValidationFailure(row=tuple(row), reason=reason))
        return False
