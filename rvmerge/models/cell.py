from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime, time
from enum import Enum
from typing import Any

import numpy as np
import pandas as pd

"""Typed cell values carried through the merge pipeline.

Raw values coming out of pandas/openpyxl are normalised into a small tagged
variant so that blank detection, text rendering (used for anonymisation keys
and duplicate detection) and write-back all behave the same regardless of the
Excel cell type.
"""

__all__ = [
    "CellKind",
    "CellValue",
    "BLANK",
    "RowRecord",
]


class CellKind(Enum):
    BLANK = "blank"
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class CellValue:
    """A single spreadsheet cell value.

    Attributes:
        kind: Which variant the value holds
        value: The payload (None for BLANK)
    """
    kind: CellKind
    value: str | int | float | datetime | bool | None = None

    @staticmethod
    def of_text(text: str) -> CellValue:
        if text == "":
            return BLANK
        return CellValue(CellKind.TEXT, text)

    @staticmethod
    def from_raw(raw: Any) -> CellValue:
        """Convert a raw pandas/openpyxl cell value into a CellValue.

        Empty strings, None, NaN and NaT all map to BLANK. Whitespace-only
        strings stay TEXT (is_blank still reports them as blank).
        """
        if raw is None or raw is pd.NaT or raw is pd.NA:
            return BLANK
        # bool before int: bool is an int subclass
        if isinstance(raw, (bool, np.bool_)):
            return CellValue(CellKind.BOOLEAN, bool(raw))
        if isinstance(raw, pd.Timestamp):
            return CellValue(CellKind.DATE, raw.to_pydatetime())
        if isinstance(raw, datetime):
            return CellValue(CellKind.DATE, raw)
        if isinstance(raw, date):
            return CellValue(CellKind.DATE, datetime(raw.year, raw.month, raw.day))
        if isinstance(raw, time):
            return CellValue(CellKind.TEXT, raw.isoformat())
        if isinstance(raw, (int, np.integer)):
            return CellValue(CellKind.NUMBER, int(raw))
        if isinstance(raw, (float, np.floating)):
            if math.isnan(raw):
                return BLANK
            return CellValue(CellKind.NUMBER, float(raw))
        return CellValue.of_text(str(raw))

    @property
    def is_blank(self) -> bool:
        if self.kind is CellKind.BLANK:
            return True
        return self.kind is CellKind.TEXT and str(self.value).strip() == ""

    @property
    def text(self) -> str:
        """Canonical string rendering of the value."""
        if self.kind is CellKind.BLANK:
            return ""
        if self.kind is CellKind.BOOLEAN:
            return "TRUE" if self.value else "FALSE"
        if self.kind is CellKind.NUMBER:
            if isinstance(self.value, float) and self.value.is_integer():
                return str(int(self.value))
            return str(self.value)
        if self.kind is CellKind.DATE:
            assert isinstance(self.value, datetime)
            return self.value.isoformat(sep=" ")
        return str(self.value)

    def to_python(self) -> str | int | float | datetime | bool | None:
        """Value suitable for handing to the workbook writer."""
        if self.kind is CellKind.BLANK:
            return None
        return self.value

    def __str__(self) -> str:
        return self.text


BLANK = CellValue(CellKind.BLANK)

# One merged row, indexed by output column position. Tuples once appended to a
# SheetTable; lists while still being filled.
RowRecord = list[CellValue]
