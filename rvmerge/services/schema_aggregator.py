from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field

from rvmerge.models.column_mapping import ColumnMapping, FileColumnSet
from rvmerge.models.config_models import SheetSchema

"""Output column selection and source -> output column mapping.

The output columns of a sheet are the columns present in every contributing
file (order of the first file), optionally narrowed to the mandatory
columns, optionally followed by the synthetic source-file column.
"""

__all__ = [
    "AggregationResult",
    "intersect_columns",
    "aggregate_columns",
    "build_column_mapping",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AggregationResult:
    columns: list[str]
    warnings: list[str] = field(default_factory=list)


def intersect_columns(column_sets: Sequence[FileColumnSet]) -> list[str]:
    """Columns common to all sets, deduplicated, in the first set's order."""
    if not column_sets:
        return []
    others = [set(cs.columns) for cs in column_sets[1:]]
    result: list[str] = []
    seen: set[str] = set()
    for column in column_sets[0].columns:
        if column in seen:
            continue
        if all(column in o for o in others):
            result.append(column)
            seen.add(column)
    return result


def aggregate_columns(
    sheet_name: str,
    column_sets: Sequence[FileColumnSet],
    schema: SheetSchema | None,
    *,
    only_mandatory_columns: bool = False,
    include_source_file_name: bool = False,
    source_file_column: str = "Source File",
) -> AggregationResult:
    """Decide the output columns of one sheet.

    Returns an empty column list when no file contributed the sheet or
    nothing is common to all contributors; the sheet is then not written.
    """
    if not column_sets:
        return AggregationResult(columns=[])

    common = intersect_columns(column_sets)
    mandatory = schema.mandatory_columns if schema is not None else ()

    if only_mandatory_columns and schema is not None:
        common_set = set(common)
        columns = [c for c in mandatory if c in common_set]
    else:
        columns = common

    warnings: list[str] = []
    present = set(columns)
    for column in mandatory:
        if column not in present:
            missing_in = [cs.file_name for cs in column_sets if column not in cs]
            warnings.append(
                f"Sheet '{sheet_name}': mandatory column '{column}' is not present in all files "
                f"(missing in: {', '.join(missing_in)}) and will be excluded from the output."
            )

    if include_source_file_name and columns and source_file_column not in present:
        columns = [*columns, source_file_column]

    for w in warnings:
        logger.warning(w)
    return AggregationResult(columns=columns, warnings=warnings)


def build_column_mapping(file_columns: FileColumnSet, output_columns: Sequence[str]) -> list[ColumnMapping]:
    """Map each physical source column onto its output position.

    A source header whose canonical name is not an output column falls back
    to its raw header text. Duplicate output names all map to the first
    matching output index.
    """
    index_of: dict[str, int] = {}
    for idx, name in enumerate(output_columns):
        index_of.setdefault(name, idx)

    mappings: list[ColumnMapping] = []
    for canonical, position, raw in zip(
        file_columns.columns, file_columns.positions, file_columns.raw_headers, strict=True
    ):
        target = index_of.get(canonical)
        if target is None and raw != canonical:
            target = index_of.get(raw)
        if target is not None:
            mappings.append(ColumnMapping(source_index=position, output_index=target))
    return mappings
