from __future__ import annotations

from dataclasses import dataclass

"""Per-file column sets and source -> output column mappings."""

__all__ = [
    "FileColumnSet",
    "ColumnMapping",
]


@dataclass(frozen=True)
class FileColumnSet:
    """Canonical header of one sheet in one file.

    ``columns[i]`` is the canonical name of the header found at physical
    (1-based) column ``positions[i]``; ``raw_headers[i]`` is the text as it
    appeared in the file. Blank header cells are not represented.
    """
    file_name: str
    sheet_name: str
    columns: tuple[str, ...]
    positions: tuple[int, ...]
    raw_headers: tuple[str, ...]

    def __contains__(self, column: object) -> bool:
        return column in self.columns

    def __len__(self) -> int:
        return len(self.columns)


@dataclass(frozen=True)
class ColumnMapping:
    """One source column feeding one output column.

    Attributes:
        source_index: 1-based physical column in the source sheet
        output_index: 0-based position in the sheet's output column list
    """
    source_index: int
    output_index: int
