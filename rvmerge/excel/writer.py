from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path

import pandas as pd
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from rvmerge.models.cell import CellValue

"""Workbook writer.

Sheets are assembled in memory (header row + typed rows) and saved in one go
through pandas' openpyxl engine. Header cells are bold and column widths
are sized to the content.
"""

__all__ = [
    "WorkbookWriter",
]

_MAX_COLUMN_WIDTH = 60
_WIDTH_SAMPLE_ROWS = 500


class WorkbookWriter:
    def __init__(self) -> None:
        self._sheets: dict[str, list[list[object]]] = {}

    @property
    def sheet_names(self) -> list[str]:
        return list(self._sheets)

    def create_sheet(self, name: str, header: Sequence[str]) -> None:
        if name in self._sheets:
            raise ValueError(f"sheet '{name}' already exists")
        self._sheets[name] = [list(header)]

    def write_cell(self, sheet: str, row: int, column: int, value: CellValue) -> None:
        """Set the cell at 1-based (row, column), growing the sheet as needed."""
        rows = self._sheets[sheet]
        while len(rows) < row:
            rows.append([])
        target = rows[row - 1]
        while len(target) < column:
            target.append(None)
        target[column - 1] = value.to_python()

    def append_row(self, sheet: str, values: Iterable[CellValue]) -> None:
        self._sheets[sheet].append([v.to_python() for v in values])

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for name, rows in self._sheets.items():
                pd.DataFrame(rows).to_excel(writer, sheet_name=name, header=False, index=False)
                ws = writer.sheets[name]
                for cell in ws[1]:
                    cell.font = Font(bold=True)
                for idx, width in enumerate(_column_widths(rows), start=1):
                    ws.column_dimensions[get_column_letter(idx)].width = width
        return path


def _column_widths(rows: list[list[object]]) -> list[int]:
    widths: list[int] = []
    for row in rows[:_WIDTH_SAMPLE_ROWS]:
        for idx, value in enumerate(row):
            length = 0 if value is None else len(str(value))
            if idx >= len(widths):
                widths.append(length)
            elif length > widths[idx]:
                widths[idx] = length
    return [min(w + 2, _MAX_COLUMN_WIDTH) for w in widths]
