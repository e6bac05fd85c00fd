from __future__ import annotations

from collections.abc import Mapping, Sequence

from rvmerge.excel.reader import Workbook
from rvmerge.models.column_mapping import FileColumnSet
from rvmerge.models.config_models import MergeConfig

"""Header resolution: raw header row -> canonical column names.

RVTools versions differ in header spelling (``vInfoVMName`` vs ``VM``); the
sheet's alias table folds them onto one canonical name. Unknown headers are
kept verbatim and blank header cells are ignored.
"""

__all__ = [
    "resolve_headers",
    "resolve_sheet",
]


def resolve_headers(
    raw_headers: Sequence[str],
    aliases: Mapping[str, str] | None = None,
    *,
    file_name: str = "",
    sheet_name: str = "",
) -> FileColumnSet:
    aliases = aliases or {}
    columns: list[str] = []
    positions: list[int] = []
    raws: list[str] = []
    for position, raw in enumerate(raw_headers, start=1):
        if not raw or not raw.strip():
            continue
        columns.append(aliases.get(raw, raw))
        positions.append(position)
        raws.append(raw)
    return FileColumnSet(
        file_name=file_name,
        sheet_name=sheet_name,
        columns=tuple(columns),
        positions=tuple(positions),
        raw_headers=tuple(raws),
    )


def resolve_sheet(workbook: Workbook, sheet_name: str, config: MergeConfig) -> FileColumnSet | None:
    """Resolve the header of ``sheet_name`` in ``workbook``; None if the sheet is absent or not loaded."""
    data = workbook.sheet(sheet_name)
    if data is None:
        return None
    return resolve_headers(
        data.header_row(),
        config.aliases(sheet_name),
        file_name=workbook.name,
        sheet_name=sheet_name,
    )
