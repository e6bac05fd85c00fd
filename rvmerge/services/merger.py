from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path

from ..config.loader import load_merge_config
from ..excel.reader import Workbook, WorkbookReadError, read_excel_file
from ..models.cell import BLANK, CellValue
from ..models.column_mapping import FileColumnSet
from ..models.config_models import AnonymizationCategory, MergeConfig
from ..models.merge_options import MergeOptions
from ..models.merge_result import MergeResult, MergeStage, SheetSummary
from ..models.sheet_table import SheetTable
from ..models.validation_issue import ValidationIssue
from .anonymizer import Anonymizer
from .emitter import write_anonymization_map, write_merged_workbook, write_validation_failures
from .header_resolver import resolve_headers, resolve_sheet
from .progress import ProgressTracker
from .schema_aggregator import aggregate_columns, build_column_mapping
from .validation import (
    ExtendedValidator,
    has_empty_mandatory_values,
    mandatory_column_indices,
    validate_file,
)

"""Merge orchestrator.

A run goes through VALIDATING -> ANALYZING_COLUMNS -> EXTRACTING_ROWS ->
WRITING -> DONE (or FAILED from any stage). Column analysis is a full pass
over every file before any row is read, because each file's column mapping
depends on the columns common to all files. That pass is also the only read of
each file: extraction works from the workbooks it loaded, so a file that cannot
be read never contributes columns or rows.

Processing is sequential and deterministic: sheets in catalogue order (or
first-seen order with process_all_sheets), files in the order given. That
order fixes pseudonym numbering.
"""

__all__ = [
    "MergeError",
    "NoInputFilesError",
    "NoValidFilesError",
    "NoValidSheetsError",
    "FileReadError",
    "OutputWriteError",
    "scan_excel_files",
    "merge_files",
    "MergeRun",
]

logger = logging.getLogger(__name__)


class MergeError(Exception):
    """Fatal merge failure. ``issues`` holds what was collected before failing."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue] | None = None) -> None:
        super().__init__(message)
        self.issues: list[ValidationIssue] = list(issues or [])


class NoInputFilesError(MergeError):
    pass


class NoValidFilesError(MergeError):
    pass


class NoValidSheetsError(MergeError):
    pass


class FileReadError(MergeError):
    pass


class OutputWriteError(MergeError):
    pass


def scan_excel_files(directory: Path) -> list[Path]:
    """List .xlsx files in ``directory`` (non-recursive, sorted by name).

    Raises:
        MergeError: If the directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise MergeError(f"Directory not found: {directory}")
    if not directory.is_dir():
        raise MergeError(f"Path is not a directory: {directory}")
    try:
        files = [
            p for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() == ".xlsx" and not p.name.startswith("~$")
        ]
    except OSError as e:
        raise MergeError(f"Error reading directory {directory}: {e}") from e
    return sorted(files, key=lambda p: p.name.lower())


def merge_files(
    file_paths: Sequence[Path | str],
    output_path: Path | str,
    options: MergeOptions | None = None,
    config: MergeConfig | None = None,
) -> MergeResult:
    """Merge RVTools exports into one workbook at ``output_path``.

    Args:
        file_paths: Input workbooks, processed in the given order
        output_path: Merged workbook to write; companion files go beside it
        options: Run options (defaults when None)
        config: Sheet catalogue (bundled catalogue when None)

    Returns:
        MergeResult with per-sheet counts, issues and output paths

    Raises:
        MergeError: For fatal errors (no inputs, no valid files, nothing to
            write, unreadable file when invalid files are not skipped,
            output that cannot be written)
        ValueError: For contradictory options
    """
    run = MergeRun(
        [Path(p) for p in file_paths],
        Path(output_path),
        options or MergeOptions(),
        config or load_merge_config(),
    )
    return run.execute()


class MergeRun:
    """State of one merge run. Not reusable."""

    def __init__(
        self, file_paths: list[Path], output_path: Path, options: MergeOptions, config: MergeConfig
    ) -> None:
        options.validate()
        self.file_paths = file_paths
        self.output_path = output_path
        self.options = options
        self.config = config
        self.stage = MergeStage.VALIDATING

        self.valid_files: list[Path] = []
        self.issues: list[ValidationIssue] = []
        self.warnings: list[str] = []
        self.output_columns: dict[str, list[str]] = {}
        self.anonymize_columns: dict[str, dict[int, AnonymizationCategory]] = {}
        self.tables: dict[str, SheetTable] = {}
        self._workbooks: dict[Path, Workbook] = {}
        self._source_rows: dict[str, int] = {}
        self._dropped_rows: dict[str, int] = {}

        self.anonymizer = Anonymizer(config.anonymization) if options.anonymize_data else None
        self.extended: ExtendedValidator | None = None

        # primary-row sampling state
        self._primary_rows_included = 0
        self._included_identifiers: set[str] = set()
        self._included_hosts: set[str] = set()

    def _enter(self, stage: MergeStage) -> None:
        logger.debug("stage %s -> %s", self.stage.value, stage.value)
        self.stage = stage

    def execute(self) -> MergeResult:
        start_time = datetime.now(UTC)
        map_path: Path | None = None
        failures_path: Path | None = None
        try:
            self._enter(MergeStage.VALIDATING)
            self.validate_files()
            self._enter(MergeStage.ANALYZING_COLUMNS)
            self.analyze_columns()
            self._enter(MergeStage.EXTRACTING_ROWS)
            self.extract_rows()
            self._enter(MergeStage.WRITING)
            map_path, failures_path = self.write_outputs()
        except MergeError as e:
            self._enter(MergeStage.FAILED)
            if not e.issues:
                e.issues = list(self.issues)
            raise
        except Exception:
            self._enter(MergeStage.FAILED)
            raise
        self._enter(MergeStage.DONE)

        end_time = datetime.now(UTC)
        return MergeResult(
            files_supplied=len(self.file_paths),
            processed_files=[p.name for p in self.valid_files],
            sheets=[
                SheetSummary(
                    sheet_name=name,
                    columns=table.column_count,
                    rows=table.row_count,
                    source_rows=self._source_rows.get(name, 0),
                    dropped_rows=self._dropped_rows.get(name, 0),
                )
                for name, table in self.tables.items()
            ],
            validation_issues=list(self.issues),
            warnings=list(self.warnings),
            output_path=self.output_path,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            stage=self.stage,
            anonymization_statistics=self.anonymizer.statistics() if self.anonymizer else {},
            anonymization_statistics_by_file=(
                self.anonymizer.statistics_by_file() if self.anonymizer else {}
            ),
            extended_validation=self.extended.result if self.extended else None,
            anonymization_map_path=map_path,
            failed_validation_path=failures_path,
        )

    # -- stage 1 ---------------------------------------------------------

    def validate_files(self) -> None:
        if not self.file_paths:
            raise NoInputFilesError("No files specified for merging.")

        skip_invalid = self.options.skip_invalid_files
        has_primary = False
        with ProgressTracker(len(self.file_paths), description="Validating files") as progress:
            for path in self.file_paths:
                progress.start_file(path)
                outcome = validate_file(
                    path,
                    self.config,
                    ignore_missing_optional_sheets=self.options.effective_ignore_missing_optional_sheets,
                    skip_invalid_files=skip_invalid,
                )
                self.issues.extend(outcome.issues)
                if outcome.is_valid:
                    self.valid_files.append(path)
                    has_primary = True
                elif skip_invalid:
                    logger.warning("skipping invalid file %s", path.name)
                else:
                    # kept: contributes whatever it has
                    logger.warning("file %s failed validation; merging it anyway", path.name)
                    self.valid_files.append(path)
                    has_primary = has_primary or outcome.has_primary_sheet
                progress.finish_file()

        if not self.valid_files or not has_primary:
            raise NoValidFilesError("No valid files to process after validation.")
        logger.info("%d of %d files passed validation", len(self.valid_files), len(self.file_paths))

    # -- stage 2 ---------------------------------------------------------

    def _handle_read_failure(self, path: Path, error: WorkbookReadError) -> None:
        """Record an unreadable file; drop it when skipping, otherwise abort."""
        skip = self.options.skip_invalid_files
        self.issues.append(ValidationIssue(path.name, skip, f"Error reading file: {error}"))
        if not skip:
            raise FileReadError(str(error), self.issues) from error
        logger.warning("dropping unreadable file %s: %s", path.name, error)
        if path in self.valid_files:
            self.valid_files.remove(path)
        if not self.valid_files:
            raise NoValidFilesError("No valid files left to process.", self.issues)

    def _sheets_of_interest(self, discovered: list[str]) -> list[str]:
        if self.options.process_all_sheets:
            return discovered
        return self.config.sheet_names

    def analyze_columns(self) -> None:
        targets = None if self.options.process_all_sheets else self.config.sheet_names
        discovered: list[str] = []
        discovered_lower: set[str] = set()
        column_sets: dict[str, list[FileColumnSet]] = {}

        with ProgressTracker(len(self.valid_files), description="Analyzing columns") as progress:
            for path in list(self.valid_files):
                progress.start_file(path)
                try:
                    workbook = read_excel_file(path, targets)
                except WorkbookReadError as e:
                    self._handle_read_failure(path, e)
                    progress.finish_file()
                    continue
                self._workbooks[path] = workbook
                for name in workbook.sheet_names:
                    if name.lower() not in discovered_lower:
                        discovered_lower.add(name.lower())
                        # report configured sheets under their catalogue spelling
                        schema = self.config.sheet(name)
                        discovered.append(schema.name if schema else name)
                for sheet in self._sheets_of_interest(discovered):
                    file_columns = resolve_sheet(workbook, sheet, self.config)
                    if file_columns is not None:
                        column_sets.setdefault(sheet, []).append(file_columns)
                progress.finish_file()

        for sheet in self._sheets_of_interest(discovered):
            outcome = aggregate_columns(
                sheet,
                column_sets.get(sheet, []),
                self.config.sheet(sheet),
                only_mandatory_columns=self.options.only_mandatory_columns,
                include_source_file_name=self.options.include_source_file_name,
                source_file_column=self.config.source_file_column,
            )
            self.warnings.extend(outcome.warnings)
            if not outcome.columns:
                logger.info("sheet %s has no common columns; excluded from output", sheet)
                continue
            self.output_columns[sheet] = outcome.columns
            if self.anonymizer is not None:
                self.anonymize_columns[sheet] = self.anonymizer.column_categories(outcome.columns)
            logger.debug("sheet %s: %d output columns", sheet, len(outcome.columns))

        if not self.output_columns:
            raise NoValidSheetsError("No valid sheets found across the input files.", self.issues)

    # -- stage 3 ---------------------------------------------------------

    def extract_rows(self) -> None:
        primary = self.config.primary_sheet
        # primary first so sampling knows the included identifiers
        order = sorted(self.output_columns, key=lambda s: s != primary)
        for sheet in order:
            columns = self.output_columns[sheet]
            self.tables[sheet] = SheetTable(sheet_name=sheet, columns=list(columns))
            self._source_rows[sheet] = 0
            self._dropped_rows[sheet] = 0
            if self.options.enable_extended_validation and sheet == primary:
                self.extended = ExtendedValidator(columns, self.config, self.options.max_row_limit)

            with ProgressTracker(len(self.valid_files), description=f"Extracting {sheet}") as progress:
                for path in self.valid_files:
                    progress.start_file(path)
                    workbook = self._workbooks[path]
                    self._extract_sheet(sheet, workbook)
                    workbook.release(sheet)
                    progress.set_postfix(rows=self.tables[sheet].row_count)
                    progress.finish_file()

        self._workbooks.clear()
        # keep output tab order = analysis order
        self.tables = {s: self.tables[s] for s in self.output_columns}

    def _extract_sheet(self, sheet: str, workbook: Workbook) -> None:
        data = workbook.sheet(sheet)
        if data is None:
            return
        file_name = workbook.name
        columns = self.output_columns[sheet]
        table = self.tables[sheet]
        file_columns = resolve_headers(
            data.header_row(), self.config.aliases(sheet), file_name=file_name, sheet_name=sheet
        )
        mapping = build_column_mapping(file_columns, columns)
        mandatory = mandatory_column_indices(columns, sheet, self.config)
        categories = self.anonymize_columns.get(sheet, {})
        source_index = (
            columns.index(self.config.source_file_column)
            if self.options.include_source_file_name and self.config.source_file_column in columns
            else -1
        )
        is_primary = sheet == self.config.primary_sheet
        validator = self.extended if is_primary else None
        limit = self.options.max_primary_rows

        for row_number, raw in data.data_rows():
            if is_primary and limit is not None and self._primary_rows_included >= limit:
                break
            self._source_rows[sheet] += 1

            row: list[CellValue] = [BLANK] * len(columns)
            for m in mapping:
                if m.source_index <= len(raw):
                    row[m.output_index] = CellValue.from_raw(raw[m.source_index - 1])

            if has_empty_mandatory_values(row, mandatory):
                self.issues.append(ValidationIssue(
                    file_name,
                    False,
                    f"Row {row_number} in sheet '{sheet}' has empty value(s) in mandatory column(s) "
                    f"(excluding '{self.config.os_configuration_column}').",
                ))
                if self.options.skip_rows_with_empty_mandatory_values:
                    self._dropped_rows[sheet] += 1
                    continue

            if self.anonymizer is not None and categories:
                self.anonymizer.anonymize_row(row, categories, file_name)

            if source_index >= 0:
                row[source_index] = CellValue.of_text(file_name)

            if validator is not None:
                limit_reached_before = validator.result.count_limit_reached
                accepted = validator.process(row)
                if not limit_reached_before and validator.result.count_limit_reached:
                    self.issues.append(ValidationIssue(
                        file_name,
                        False,
                        f"VM count limit of {validator.max_row_limit:,} has been reached. "
                        "Additional VMs will not be included.",
                    ))
                if not accepted:
                    self._dropped_rows[sheet] += 1
                    continue

            if not self._sampling_accepts(sheet, row, columns):
                self._dropped_rows[sheet] += 1
                continue

            table.append(row)

    def _sampling_accepts(self, sheet: str, row: list[CellValue], columns: list[str]) -> bool:
        if self.options.max_primary_rows is None:
            return True
        identifier_col = self.config.identifier_column
        host_col = self.config.host_column
        id_index = columns.index(identifier_col) if identifier_col in columns else -1
        host_index = columns.index(host_col) if host_col in columns else -1

        if sheet == self.config.primary_sheet:
            self._primary_rows_included += 1
            if id_index >= 0 and not row[id_index].is_blank:
                self._included_identifiers.add(row[id_index].text)
            if host_index >= 0 and not row[host_index].is_blank:
                self._included_hosts.add(row[host_index].text)
            return True

        if id_index >= 0 and self._included_identifiers:
            value = row[id_index]
            return value.is_blank or value.text in self._included_identifiers
        if sheet.lower() == self.config.host_sheet.lower() and host_index >= 0 and self._included_hosts:
            value = row[host_index]
            return value.is_blank or value.text in self._included_hosts
        return True

    # -- stage 4 ---------------------------------------------------------

    def write_outputs(self) -> tuple[Path | None, Path | None]:
        """Write the merged workbook and its companions.

        Raises:
            OutputWriteError: If any output file cannot be written
        """
        logger.info("writing %s", self.output_path)
        try:
            write_merged_workbook(self.output_path, self.tables.values())

            map_path = None
            if self.anonymizer is not None:
                map_path = write_anonymization_map(self.output_path, self.anonymizer)
                if map_path is not None:
                    logger.info("anonymization map written to %s", map_path)

            failures_path = None
            if self.extended is not None:
                primary = self.config.primary_sheet
                failures_path = write_validation_failures(
                    self.output_path, primary, self.output_columns[primary], self.extended.result
                )
                if failures_path is not None:
                    logger.info("rows failing extended validation written to %s", failures_path)
        except OSError as e:
            raise OutputWriteError(f"Error writing output file: {e}", self.issues) from e
        return map_path, failures_path
