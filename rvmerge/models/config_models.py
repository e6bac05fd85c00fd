from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

"""Configuration dataclasses for the RVTools merge engine.

These are built by rvmerge.config.loader from the bundled sheets.yml (or a
user supplied override) and are treated as read-only catalogue data by every
stage of the merge.
"""

__all__ = [
    "SheetSchema",
    "AnonymizationCategory",
    "MergeConfig",
]


@dataclass(frozen=True)
class SheetSchema:
    """Catalogue entry for one known RVTools sheet.

    Attributes:
        name: Sheet name as exported by RVTools (matched case-insensitively)
        mandatory_columns: Canonical columns the sheet must provide, in order
        aliases: Raw header -> canonical column name (read-only view)
    """
    name: str
    mandatory_columns: tuple[str, ...]
    aliases: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))


@dataclass(frozen=True)
class AnonymizationCategory:
    """A column whose values are replaced by pseudonyms (e.g. VM -> vm1)."""
    column: str
    prefix: str
    label: str


@dataclass(frozen=True)
class MergeConfig:
    """Complete sheet catalogue plus the well-known column names.

    The first entry of ``sheets`` is the primary sheet (vInfo); the rest are
    optional sheets validated when present.
    """
    sheets: tuple[SheetSchema, ...]
    anonymization: tuple[AnonymizationCategory, ...]
    identifier_column: str = "VM UUID"
    os_configuration_column: str = "OS according to the configuration file"
    host_column: str = "Host"
    host_sheet: str = "vHost"
    source_file_column: str = "Source File"

    @property
    def primary_sheet(self) -> str:
        return self.sheets[0].name

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    @property
    def optional_sheets(self) -> list[str]:
        return [s.name for s in self.sheets[1:]]

    def sheet(self, name: str) -> SheetSchema | None:
        """Look up a sheet schema by name (case-insensitive)."""
        lowered = name.lower()
        for schema in self.sheets:
            if schema.name.lower() == lowered:
                return schema
        return None

    def mandatory_columns(self, sheet_name: str) -> tuple[str, ...]:
        schema = self.sheet(sheet_name)
        return schema.mandatory_columns if schema else ()

    def row_mandatory_columns(self, sheet_name: str) -> tuple[str, ...]:
        """Mandatory columns checked per row; the OS configuration column is exempt."""
        return tuple(
            c for c in self.mandatory_columns(sheet_name)
            if c != self.os_configuration_column
        )

    def aliases(self, sheet_name: str) -> Mapping[str, str]:
        schema = self.sheet(sheet_name)
        return schema.aliases if schema else MappingProxyType({})
