from __future__ import annotations

from collections.abc import MutableSequence, Sequence
from dataclasses import dataclass

from rvmerge.models.cell import CellValue
from rvmerge.models.config_models import AnonymizationCategory

"""Deterministic pseudonymisation of identifying columns.

Each category (VMs, Hosts, ...) owns one original -> pseudonym map shared by
every file and sheet of the run, so the same host name becomes the same
``hostN`` in vInfo and vHost. Pseudonyms are numbered in first-seen order;
blank values are never mapped.
"""

__all__ = [
    "MappingEntry",
    "Anonymizer",
]


@dataclass(frozen=True)
class MappingEntry:
    file_name: str  # file in which the original value was first seen
    original: str
    pseudonym: str


class Anonymizer:
    def __init__(self, categories: Sequence[AnonymizationCategory]) -> None:
        self._categories = list(categories)
        self._maps: dict[str, dict[str, str]] = {c.label: {} for c in self._categories}
        self._first_seen: dict[str, dict[str, str]] = {c.label: {} for c in self._categories}
        self._per_file: dict[str, dict[str, int]] = {c.label: {} for c in self._categories}

    @property
    def categories(self) -> list[AnonymizationCategory]:
        return list(self._categories)

    def column_categories(self, output_columns: Sequence[str]) -> dict[int, AnonymizationCategory]:
        """Output index -> category, using the first occurrence of each category column."""
        result: dict[int, AnonymizationCategory] = {}
        columns = list(output_columns)
        for category in self._categories:
            if category.column in columns:
                result[columns.index(category.column)] = category
        return result

    def anonymize(
        self,
        value: CellValue,
        column_index: int,
        column_categories: dict[int, AnonymizationCategory],
        file_name: str = "",
    ) -> CellValue:
        category = column_categories.get(column_index)
        if category is None or value.is_blank:
            return value
        mapping = self._maps[category.label]
        original = value.text
        pseudonym = mapping.get(original)
        if pseudonym is None:
            pseudonym = f"{category.prefix}{len(mapping) + 1}"
            mapping[original] = pseudonym
            self._first_seen[category.label][original] = file_name
            per_file = self._per_file[category.label]
            per_file[file_name] = per_file.get(file_name, 0) + 1
        return CellValue.of_text(pseudonym)

    def anonymize_row(
        self,
        row: MutableSequence[CellValue],
        column_categories: dict[int, AnonymizationCategory],
        file_name: str = "",
    ) -> None:
        """Replace the category cells of ``row`` in place."""
        for index in column_categories:
            if index < len(row):
                row[index] = self.anonymize(row[index], index, column_categories, file_name)

    def statistics(self) -> dict[str, int]:
        """Distinct values anonymised per category label."""
        return {label: len(mapping) for label, mapping in self._maps.items()}

    def statistics_by_file(self) -> dict[str, dict[str, int]]:
        return {label: dict(counts) for label, counts in self._per_file.items()}

    def mapping_entries(self) -> dict[str, list[MappingEntry]]:
        """Entries per category label, in pseudonym allocation order."""
        entries: dict[str, list[MappingEntry]] = {}
        for label, mapping in self._maps.items():
            seen = self._first_seen[label]
            entries[label] = [
                MappingEntry(file_name=seen.get(original, ""), original=original, pseudonym=pseudonym)
                for original, pseudonym in mapping.items()
            ]
        return entries
