from __future__ import annotations

from pathlib import Path

from rvmerge.models.merge_options import MergeOptions
from rvmerge.services.merger import merge_files
from tests.helpers import (
    VINFO_COLUMNS,
    read_sheet,
    vhost_row,
    vinfo_row,
    vmemory_row,
    vpartition_row,
)

LEGACY = {
    "VM": "vInfoVMName",
    "VM UUID": "vInfoUUID",
    "Powerstate": "vInfoPowerstate",
    "CPUs": "vInfoCPUs",
    "Memory": "vInfoMemory",
    "Host": "vInfoHost",
}


def test_primary_sampling_keeps_related_rows(exports, output_path: Path):
    a = exports.export("a.xlsx", [vinfo_row(i) for i in range(1, 4)])
    b_vms = [vinfo_row(i, Host="esx-02") for i in range(4, 7)]
    b = exports.export(
        "b.xlsx",
        b_vms,
        hosts=[vhost_row("esx-02")],
        partitions=[vpartition_row(i) for i in range(4, 7)],
        memory=[vmemory_row(i) for i in range(4, 7)],
    )

    result = merge_files([a, b], output_path, MergeOptions(max_primary_rows=2))

    assert list(read_sheet(output_path, "vInfo")["VM UUID"]) == ["uuid-0001", "uuid-0002"]
    assert list(read_sheet(output_path, "vPartition")["VM UUID"]) == ["uuid-0001", "uuid-0002"]
    assert list(read_sheet(output_path, "vMemory")["VM UUID"]) == ["uuid-0001", "uuid-0002"]
    assert list(read_sheet(output_path, "vHost")["Host"]) == ["esx-01"]
    assert result.sheet("vPartition").dropped_rows == 4


def test_all_sheets_mode_merges_unknown_sheets(exports, output_path: Path):
    network = (["VM", "Network"], [["vm-001", "LAN"]])
    a = exports.export("a.xlsx", extra_sheets={"vNetwork": network})
    b = exports.export(
        "b.xlsx",
        [vinfo_row(4)],
        omit_sheets=("vMemory",),
        extra_sheets={"vNetwork": network, "vSnapshot": (["VM", "Name"], [["vm-004", "before-patch"]])},
    )

    result = merge_files([a, b], output_path, MergeOptions(process_all_sheets=True))

    assert [s.sheet_name for s in result.sheets] == [
        "vInfo", "vHost", "vPartition", "vMemory", "vNetwork", "vSnapshot",
    ]
    assert result.sheet("vNetwork").rows == 2
    assert result.sheet("vSnapshot").rows == 1
    assert result.sheet("vMemory").rows == 3
    assert result.skipped_files == 0


def test_legacy_headers_are_folded_onto_canonical_names(exports, output_path: Path):
    legacy_columns = [LEGACY.get(c, c) for c in VINFO_COLUMNS]
    legacy_rows = [{LEGACY.get(k, k): v for k, v in vinfo_row(i).items()} for i in (4, 5)]
    a = exports.export("a.xlsx")
    b = exports.export("b.xlsx", legacy_rows, vinfo_columns=legacy_columns)

    result = merge_files([a, b], output_path)

    df = read_sheet(output_path, "vInfo")
    assert list(df.columns) == VINFO_COLUMNS
    assert list(df["VM"]) == ["vm-001", "vm-002", "vm-003", "vm-004", "vm-005"]
    assert result.warnings == []


def test_source_file_column(exports, output_path: Path):
    a = exports.export("a.xlsx", [vinfo_row(1)])
    b = exports.export("b.xlsx", [vinfo_row(2)])

    merge_files([a, b], output_path, MergeOptions(include_source_file_name=True))

    df = read_sheet(output_path, "vInfo")
    assert df.columns[-1] == "Source File"
    assert list(df["Source File"]) == ["a.xlsx", "b.xlsx"]
    assert read_sheet(output_path, "vHost").columns[-1] == "Source File"


def test_only_mandatory_columns(exports, output_path: Path, merge_config):
    a = exports.export("a.xlsx")
    merge_files([a], output_path, MergeOptions(only_mandatory_columns=True))
    df = read_sheet(output_path, "vInfo")
    assert tuple(df.columns) == merge_config.mandatory_columns("vInfo")
    assert "DNS Name" not in df.columns


def test_case_insensitive_sheet_names(exports, output_path: Path):
    a = exports.export("a.xlsx")
    b = exports.write("b.xlsx", {
        "VINFO": (VINFO_COLUMNS, [vinfo_row(4)]),
        "vhost": (list(vhost_row()), [vhost_row()]),
        "VPartition": (list(vpartition_row(4)), [vpartition_row(4)]),
        "vmemory": (list(vmemory_row(4)), [vmemory_row(4)]),
    })
    result = merge_files([a, b], output_path)
    assert [s.sheet_name for s in result.sheets] == ["vInfo", "vHost", "vPartition", "vMemory"]
    assert result.sheet("vInfo").rows == 4
