from __future__ import annotations

from dataclasses import dataclass

"""Run options for a merge (mirrors the CLI flags)."""

__all__ = [
    "MergeOptions",
    "DEFAULT_MAX_ROW_LIMIT",
]

DEFAULT_MAX_ROW_LIMIT = 20000


@dataclass(frozen=True)
class MergeOptions:
    ignore_missing_optional_sheets: bool = False
    skip_invalid_files: bool = False
    anonymize_data: bool = False
    only_mandatory_columns: bool = False
    include_source_file_name: bool = False
    skip_rows_with_empty_mandatory_values: bool = False
    enable_extended_validation: bool = False
    max_row_limit: int = DEFAULT_MAX_ROW_LIMIT
    process_all_sheets: bool = False
    max_primary_rows: int | None = None  # sample the first N vInfo rows

    @property
    def effective_ignore_missing_optional_sheets(self) -> bool:
        # discovering every sheet makes "missing optional sheet" meaningless
        return self.ignore_missing_optional_sheets or self.process_all_sheets

    def validate(self) -> None:
        """Reject contradictory or out-of-range combinations.

        Raises:
            ValueError: If an option value is invalid
        """
        if self.max_row_limit < 1:
            raise ValueError(f"max_row_limit must be >= 1 (got {self.max_row_limit})")
        if self.max_primary_rows is not None and self.max_primary_rows < 1:
            raise ValueError(f"max_primary_rows must be >= 1 (got {self.max_primary_rows})")
        if self.anonymize_data and self.process_all_sheets:
            raise ValueError("anonymization cannot be combined with processing all sheets")
