"""Domain models for the RVTools merge engine."""

from .cell import BLANK, CellKind, CellValue, RowRecord
from .column_mapping import ColumnMapping, FileColumnSet
from .config_models import AnonymizationCategory, MergeConfig, SheetSchema
from .extended_validation import (
    ExtendedValidationFailure,
    ExtendedValidationResult,
    FailureReason,
)
from .merge_options import DEFAULT_MAX_ROW_LIMIT, MergeOptions
from .merge_result import MergeResult, MergeStage, SheetSummary
from .sheet_table import SheetTable
from .validation_issue import ValidationIssue

__all__ = [
    "BLANK",
    "CellKind",
    "CellValue",
    "RowRecord",
    "ColumnMapping",
    "FileColumnSet",
    "AnonymizationCategory",
    "MergeConfig",
    "SheetSchema",
    "ExtendedValidationFailure",
    "ExtendedValidationResult",
    "FailureReason",
    "DEFAULT_MAX_ROW_LIMIT",
    "MergeOptions",
    "MergeResult",
    "MergeStage",
    "SheetSummary",
    "SheetTable",
    "ValidationIssue",
]
