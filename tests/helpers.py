"""Workbook builders shared by the test suites."""
from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd

VINFO_COLUMNS = [
    "VM",
    "Powerstate",
    "Template",
    "SRM Placeholder",
    "CPUs",
    "Memory",
    "NICs",
    "Disks",
    "Provisioned MiB",
    "In Use MiB",
    "Creation Date",
    "OS according to the configuration file",
    "VM UUID",
    "DNS Name",
    "Primary IP Address",
    "Datacenter",
    "Cluster",
    "Host",
]
VHOST_COLUMNS = [
    "Host", "Datacenter", "Cluster", "CPU Model", "Speed", "# CPU", "Cores per CPU",
    "# Cores", "CPU usage %", "# Memory", "Memory usage %",
]
VPARTITION_COLUMNS = ["VM", "VM UUID", "Disk", "Capacity MiB", "Consumed MiB"]
VMEMORY_COLUMNS = ["VM", "VM UUID", "Size MiB", "Reservation"]


def vinfo_row(index: int, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "VM": f"vm-{index:03d}",
        "Powerstate": "poweredOn",
        "Template": False,
        "SRM Placeholder": False,
        "CPUs": 2,
        "Memory": 4096,
        "NICs": 1,
        "Disks": 1,
        "Provisioned MiB": 40960,
        "In Use MiB": 10240,
        "Creation Date": datetime(2024, 1, 15, 8, 30),
        "OS according to the configuration file": "Ubuntu Linux (64-bit)",
        "VM UUID": f"uuid-{index:04d}",
        "DNS Name": f"vm-{index:03d}.corp.local",
        "Primary IP Address": f"10.0.0.{index}",
        "Datacenter": "dc-01",
        "Cluster": "cluster-a",
        "Host": "esx-01",
    }
    row.update(overrides)
    return row


def vhost_row(host: str = "esx-01", **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "Host": host, "Datacenter": "dc-01", "Cluster": "cluster-a", "CPU Model": "Xeon Gold",
        "Speed": 2900, "# CPU": 2, "Cores per CPU": 24, "# Cores": 48, "CPU usage %": 35,
        "# Memory": 786432, "Memory usage %": 60,
    }
    row.update(overrides)
    return row


def vpartition_row(index: int, disk: str = "C:\\", **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {
        "VM": f"vm-{index:03d}", "VM UUID": f"uuid-{index:04d}", "Disk": disk,
        "Capacity MiB": 40960, "Consumed MiB": 20480,
    }
    row.update(overrides)
    return row


def vmemory_row(index: int, **overrides: Any) -> dict[str, Any]:
    row: dict[str, Any] = {"VM": f"vm-{index:03d}", "VM UUID": f"uuid-{index:04d}", "Size MiB": 4096, "Reservation": 0}
    row.update(overrides)
    return row


class ExportFactory:
    """Writes RVTools-shaped workbooks into a directory.

    ``sheets`` maps sheet name -> (header, rows); each row is a dict keyed by
    header (missing keys are written as empty cells) or a plain list.
    """

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def write(self, name: str, sheets: dict[str, tuple[Sequence[str], Sequence[Any]]]) -> Path:
        path = self.directory / name
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for sheet_name, (header, rows) in sheets.items():
                data: list[list[Any]] = [list(header)]
                for row in rows:
                    if isinstance(row, dict):
                        data.append([row.get(h) for h in header])
                    else:
                        data.append(list(row))
                pd.DataFrame(data).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
        return path

    def export(
        self,
        name: str,
        vms: Sequence[dict[str, Any]] | None = None,
        *,
        vinfo_columns: Sequence[str] = VINFO_COLUMNS,
        hosts: Sequence[dict[str, Any]] | None = None,
        partitions: Sequence[dict[str, Any]] | None = None,
        memory: Sequence[dict[str, Any]] | None = None,
        omit_sheets: Sequence[str] = (),
        extra_sheets: dict[str, tuple[Sequence[str], Sequence[Any]]] | None = None,
    ) -> Path:
        """Complete export with all four core sheets unless omitted."""
        vms = list(vms) if vms is not None else [vinfo_row(i) for i in range(1, 4)]
        sheets: dict[str, tuple[Sequence[str], Sequence[Any]]] = {
            "vInfo": (vinfo_columns, vms),
            "vHost": (VHOST_COLUMNS, hosts if hosts is not None else [vhost_row()]),
            "vPartition": (
                VPARTITION_COLUMNS,
                partitions if partitions is not None else [vpartition_row(i) for i in range(1, len(vms) + 1)],
            ),
            "vMemory": (
                VMEMORY_COLUMNS,
                memory if memory is not None else [vmemory_row(i) for i in range(1, len(vms) + 1)],
            ),
        }
        for omitted in omit_sheets:
            sheets.pop(omitted)
        if extra_sheets:
            sheets.update(extra_sheets)
        return self.write(name, sheets)


def read_sheet(path: Path, sheet: str) -> pd.DataFrame:
    """Read a written workbook sheet with header row 1, keeping 'NA'-like strings."""
    return pd.read_excel(path, sheet_name=sheet, keep_default_na=False, na_values=[""])
