from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from rvmerge.config.loader import ConfigError, load_merge_config
from rvmerge.logging.init import log_summary, setup_logging
from rvmerge.logging.issue_log import IssueLogBuffer
from rvmerge.models.merge_options import DEFAULT_MAX_ROW_LIMIT, MergeOptions
from rvmerge.models.validation_issue import ValidationIssue
from rvmerge.services.merger import MergeError, merge_files, scan_excel_files
from rvmerge.services.summary import render_summary_line

"""CLI entrypoint.

rvtools-merge INPUT [OUTPUT]

INPUT is one .xlsx export or a directory of them. Exit codes: 0 when every
supplied file was merged, 2 when the merge succeeded but some files were
skipped, 1 on any fatal error.
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1

DEFAULT_OUTPUT = "merged-output.xlsx"


class InputPathError(Exception):
    pass


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="rvtools-merge",
        description="Merge multiple RVTools Excel exports into one workbook",
    )
    p.add_argument("input", help="RVTools .xlsx file or directory containing exports")
    p.add_argument("output", nargs="?", default=DEFAULT_OUTPUT, help=f"Merged workbook (default: {DEFAULT_OUTPUT})")
    p.add_argument("-i", "--ignore-missing-sheets", action="store_true",
                   help="Do not fail files that lack optional sheets")
    p.add_argument("-s", "--skip-invalid-files", action="store_true",
                   help="Drop invalid files instead of merging them")
    p.add_argument("-a", "--anonymize", action="store_true",
                   help="Replace VM, DNS, cluster, host, datacenter and IP values with pseudonyms")
    p.add_argument("-M", "--only-mandatory-columns", action="store_true",
                   help="Output only the mandatory columns of each sheet")
    p.add_argument("-f", "--include-source-filename", action="store_true",
                   help="Add a 'Source File' column")
    p.add_argument("-e", "--skip-empty-values", action="store_true",
                   help="Drop rows with empty mandatory values")
    p.add_argument("-z", "--extended-validation", action="store_true",
                   help="Enforce unique VM UUIDs, OS configuration and the VM count limit on vInfo")
    p.add_argument("--max-row-limit", type=int, default=DEFAULT_MAX_ROW_LIMIT,
                   help=f"VM count limit for extended validation (default: {DEFAULT_MAX_ROW_LIMIT})")
    p.add_argument("--max-primary-rows", type=int, default=None,
                   help="Sample only the first N vInfo rows and their related rows")
    p.add_argument("-A", "--all-sheets", action="store_true",
                   help="Merge every sheet found, not just the core sheets")
    p.add_argument("--config", type=Path, default=None, help="Custom sheet catalogue (YAML)")
    p.add_argument("--issue-log", type=Path, default=None, help="Write validation issues as JSON Lines")
    p.add_argument("-d", "--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _collect_input_files(input_path: Path) -> list[Path]:
    if input_path.is_file():
        if input_path.suffix.lower() != ".xlsx":
            raise InputPathError(f"not an .xlsx file: {input_path}")
        return [input_path]
    if input_path.is_dir():
        try:
            files = scan_excel_files(input_path)
        except MergeError as e:
            raise InputPathError(str(e)) from e
        if not files:
            raise InputPathError(f"no .xlsx files found in {input_path}")
        return files
    raise InputPathError(f"path not found: {input_path}")


def _options_from_args(args: argparse.Namespace) -> MergeOptions:
    return MergeOptions(
        ignore_missing_optional_sheets=args.ignore_missing_sheets,
        skip_invalid_files=args.skip_invalid_files,
        anonymize_data=args.anonymize,
        only_mandatory_columns=args.only_mandatory_columns,
        include_source_file_name=args.include_source_filename,
        skip_rows_with_empty_mandatory_values=args.skip_empty_values,
        enable_extended_validation=args.extended_validation,
        max_row_limit=args.max_row_limit,
        process_all_sheets=args.all_sheets,
        max_primary_rows=args.max_primary_rows,
    )


def _report_issues(logger: logging.Logger, issues: Sequence[ValidationIssue]) -> None:
    """Log issues grouped by file, dropping repeated messages."""
    by_file: dict[str, list[ValidationIssue]] = {}
    for issue in issues:
        by_file.setdefault(issue.file_name, []).append(issue)
    for file_name, file_issues in by_file.items():
        seen: set[str] = set()
        for issue in file_issues:
            if issue.message in seen:
                continue
            seen.add(issue.message)
            suffix = " (file skipped)" if issue.skipped else ""
            logger.warning(f"{file_name}: {issue.message}{suffix}")


def _flush_issue_log(logger: logging.Logger, path: Path | None, issues: Sequence[ValidationIssue]) -> None:
    if path is None:
        return
    buffer = IssueLogBuffer(path)
    buffer.extend(issues)
    try:
        written = buffer.flush()
    except OSError as e:
        logger.error(f"issue log: cannot write {path}: {e}")
        return
    if written is not None:
        logger.info(f"issues written to {written}")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # only read sys.argv when called without arguments (tests pass lists)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    try:
        files = _collect_input_files(Path(args.input))
    except InputPathError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    try:
        config = load_merge_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    options = _options_from_args(args)
    try:
        options.validate()
    except ValueError as e:
        logger.error(f"options: {e}")
        return EXIT_FATAL

    logger.info(f"Merging {len(files)} file(s) into {args.output}")
    try:
        result = merge_files(files, Path(args.output), options, config)
    except MergeError as e:
        _report_issues(logger, e.issues)
        _flush_issue_log(logger, args.issue_log, e.issues)
        logger.error(f"merge: {e}")
        return EXIT_FATAL

    _report_issues(logger, result.validation_issues)
    _flush_issue_log(logger, args.issue_log, result.validation_issues)

    for sheet in result.sheets:
        logger.info(f"{sheet.sheet_name}: {sheet.rows} rows, {sheet.columns} columns")
    for label, count in result.anonymization_statistics.items():
        if count:
            logger.info(f"anonymized {count} {label}")
    if result.extended_validation is not None:
        ev = result.extended_validation
        logger.info(
            f"extended validation: accepted={ev.total_processed} missing_uuid={ev.missing_identifier} "
            f"missing_os={ev.missing_os_configuration} duplicate_uuid={ev.duplicate_identifier} "
            f"limit_exceeded={ev.count_exceeded} skipped_after_limit={ev.rows_skipped_after_limit_reached}"
        )

    summary_line = render_summary_line(result)
    log_summary(summary_line[len("SUMMARY "):])

    if result.skipped_files > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
