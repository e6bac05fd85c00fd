from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path

from rvmerge.excel.writer import WorkbookWriter
from rvmerge.models.cell import CellValue
from rvmerge.models.extended_validation import ExtendedValidationResult
from rvmerge.models.sheet_table import SheetTable
from rvmerge.services.anonymizer import Anonymizer

"""Output emitter: merged workbook, anonymization map, failed validation rows."""

__all__ = [
    "anonymization_map_path",
    "failed_validation_path",
    "write_merged_workbook",
    "write_anonymization_map",
    "write_validation_failures",
]

logger = logging.getLogger(__name__)

MAP_HEADER = ("File", "Original Value", "Anonymized Value")
FAILURE_REASON_COLUMN = "Failure Reason"


def anonymization_map_path(output_path: Path) -> Path:
    return output_path.with_name(f"{output_path.stem}_AnonymizationMapping.xlsx")


def failed_validation_path(output_path: Path) -> Path:
    return output_path.with_name(f"{output_path.stem}_FailedValidation.xlsx")


def write_merged_workbook(output_path: Path, tables: Iterable[SheetTable]) -> Path:
    """Write one tab per table; tables without columns are left out."""
    writer = WorkbookWriter()
    for table in tables:
        if not table.columns:
            continue
        writer.create_sheet(table.sheet_name, table.columns)
        for row in table.rows:
            writer.append_row(table.sheet_name, row)
        logger.info("sheet %s: %d rows x %d columns", table.sheet_name, table.row_count, table.column_count)
    if not writer.sheet_names:
        raise ValueError("no sheets to write")
    return writer.save(output_path)


def write_anonymization_map(output_path: Path, anonymizer: Anonymizer) -> Path | None:
    """Write the pseudonym map next to ``output_path``; None when nothing was anonymized."""
    writer = WorkbookWriter()
    for label, entries in anonymizer.mapping_entries().items():
        if not entries:
            continue
        writer.create_sheet(label, MAP_HEADER)
        for entry in entries:
            writer.append_row(label, (
                CellValue.of_text(entry.file_name),
                CellValue.of_text(entry.original),
                CellValue.of_text(entry.pseudonym),
            ))
    if not writer.sheet_names:
        return None
    return writer.save(anonymization_map_path(output_path))


def write_validation_failures(
    output_path: Path,
    sheet_name: str,
    columns: Sequence[str],
    result: ExtendedValidationResult,
) -> Path | None:
    """Write rows rejected by extended validation, grouped by reason; None when there are none."""
    grouped = result.failures_by_reason()
    if not grouped:
        return None
    writer = WorkbookWriter()
    writer.create_sheet(sheet_name, [*columns, FAILURE_REASON_COLUMN])
    for reason, failures in grouped.items():
        description = CellValue.of_text(reason.describe(result.max_row_limit))
        for failure in failures:
            writer.append_row(sheet_name, (*failure.row, description))
    return writer.save(failed_validation_path(output_path))
