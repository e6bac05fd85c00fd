from __future__ import annotations

from ..models.merge_result import MergeResult

"""SUMMARY line rendering.

Format:
SUMMARY files={processed}/{supplied} skipped_files={n} sheets={n} rows={n}
issues={n} anonymized={n} failed_validation={n} elapsed_sec={s}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: MergeResult) -> str:
    """Render the single SUMMARY line for a finished merge.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from pathlib import Path
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = MergeResult(files_supplied=3, processed_files=["a.xlsx", "b.xlsx"], sheets=[],
        ...                 validation_issues=[], warnings=[], output_path=Path("out.xlsx"),
        ...                 start_time=t, end_time=t, elapsed_seconds=2.0)
        >>> render_summary_line(r)
        'SUMMARY files=2/3 skipped_files=1 sheets=0 rows=0 issues=0 anonymized=0 failed_validation=0 elapsed_sec=2'
    """
    failed = result.extended_validation.total_failed if result.extended_validation else 0
    return (
        f"SUMMARY files={result.files_processed}/{result.files_supplied} "
        f"skipped_files={result.skipped_files} "
        f"sheets={len(result.sheets)} "
        f"rows={result.total_rows} "
        f"issues={len(result.validation_issues)} "
        f"anonymized={result.total_anonymized} "
        f"failed_validation={failed} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
