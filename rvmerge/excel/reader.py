from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import pandas as pd

from rvmerge.models.cell import BLANK, CellValue

"""Workbook reader.

RVTools exports have the header on row 1 and data from row 2. Sheets are read
raw (header=None, dtype=object) so cell types survive untouched and no string
such as "NA" or "null" is turned into NaN. Every read opens and closes the
file; nothing keeps a handle across merge stages.
"""

__all__ = [
    "WorkbookReadError",
    "SheetData",
    "Workbook",
    "read_excel_file",
]


class WorkbookReadError(Exception):
    """Raised when a workbook cannot be opened or parsed."""


def _is_blank_raw(value: Any) -> bool:
    return CellValue.from_raw(value).is_blank


@dataclass
class SheetData:
    """Raw rows of one sheet; ``rows[0]`` is the header row."""
    sheet_name: str
    rows: list[list[Any]] = field(default_factory=list)

    @property
    def last_row(self) -> int:
        return len(self.rows)

    @property
    def last_column(self) -> int:
        return max((len(r) for r in self.rows), default=0)

    def header_row(self) -> list[str]:
        if not self.rows:
            return []
        return [CellValue.from_raw(v).text for v in self.rows[0]]

    def cell(self, row: int, column: int) -> CellValue:
        """Cell at 1-based (row, column); BLANK outside the used range."""
        if row < 1 or row > len(self.rows):
            return BLANK
        values = self.rows[row - 1]
        if column < 1 or column > len(values):
            return BLANK
        return CellValue.from_raw(values[column - 1])

    def data_rows(self) -> Iterator[tuple[int, list[Any]]]:
        """Yield (excel_row_number, raw values) for data rows, skipping all-blank rows."""
        for offset, values in enumerate(self.rows[1:]):
            if all(_is_blank_raw(v) for v in values):
                continue
            yield offset + 2, values


@dataclass
class Workbook:
    path: Path
    sheet_names: list[str]
    sheets: dict[str, SheetData] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.path.name

    def find_sheet(self, name: str) -> str | None:
        """Actual sheet name matching ``name`` case-insensitively."""
        lowered = name.lower()
        for actual in self.sheet_names:
            if actual.lower() == lowered:
                return actual
        return None

    def sheet_exists(self, name: str) -> bool:
        return self.find_sheet(name) is not None

    def sheet(self, name: str) -> SheetData | None:
        actual = self.find_sheet(name)
        if actual is None:
            return None
        return self.sheets.get(actual)

    def release(self, name: str) -> None:
        """Drop the loaded rows of ``name``; the sheet stays listed."""
        actual = self.find_sheet(name)
        if actual is not None:
            self.sheets.pop(actual, None)


def read_excel_file(
    path: Path, target_sheets: Iterable[str] | None = None, *, header_only: bool = False
) -> Workbook:
    """Read an .xlsx workbook.

    Parameters
    ----------
    path: workbook to read
    target_sheets: sheets to load (case-insensitive); all sheets when None.
        Sheet names are always listed even if their contents are not loaded.
    header_only: load just row 1 of each sheet

    Raises
    ------
    WorkbookReadError: the file is missing, locked, corrupt or not a workbook
    """
    wanted = None if target_sheets is None else {s.lower() for s in target_sheets}
    try:
        with pd.ExcelFile(path, engine="openpyxl") as xls:
            names = [str(n) for n in xls.sheet_names]
            workbook = Workbook(path=Path(path), sheet_names=names)
            for name in xls.sheet_names:
                if wanted is not None and str(name).lower() not in wanted:
                    continue
                df = xls.parse(
                    name,
                    header=None,
                    nrows=1 if header_only else None,
                    dtype=object,
                    keep_default_na=False,
                    na_values=[],
                )
                workbook.sheets[str(name)] = SheetData(
                    sheet_name=str(name),
                    rows=df.astype(object).values.tolist(),
                )
    except Exception as e:
        raise WorkbookReadError(f"cannot read workbook '{Path(path).name}': {e}") from e
    return workbook
