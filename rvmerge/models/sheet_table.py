from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from rvmerge.models.cell import CellValue

"""In-memory merged sheet: output header plus accumulated rows."""

__all__ = [
    "SheetTable",
]


@dataclass
class SheetTable:
    sheet_name: str
    columns: list[str]
    rows: list[tuple[CellValue, ...]] = field(default_factory=list)

    def append(self, row: Iterable[CellValue]) -> None:
        record = tuple(row)
        if len(record) != len(self.columns):
            raise ValueError(
                f"row width {len(record)} does not match {len(self.columns)} columns of '{self.sheet_name}'"
            )
        self.rows.append(record)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.columns)
