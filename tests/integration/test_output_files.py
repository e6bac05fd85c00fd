from __future__ import annotations

from pathlib import Path

import openpyxl

from rvmerge.models.merge_options import MergeOptions
from rvmerge.services.merger import merge_files
from tests.helpers import vinfo_row

OS_COLUMN = "OS according to the configuration file"


def test_anonymization_map_file(exports, output_path: Path):
    a = exports.export("a.xlsx", [vinfo_row(1, VM="web-01"), vinfo_row(2, VM="db-01")])
    b = exports.export("b.xlsx", [vinfo_row(3, VM="web-01", Host="esx-02")])

    result = merge_files([a, b], output_path, MergeOptions(anonymize_data=True))

    map_path = output_path.with_name("merged_AnonymizationMapping.xlsx")
    assert result.anonymization_map_path == map_path
    wb = openpyxl.load_workbook(map_path)
    assert wb.sheetnames == ["VMs", "DNS Names", "Clusters", "Hosts", "Datacenters", "IP Addresses"]

    vms = list(wb["VMs"].iter_rows(values_only=True))
    assert vms[0] == ("File", "Original Value", "Anonymized Value")
    assert vms[1:3] == [("a.xlsx", "web-01", "vm1"), ("a.xlsx", "db-01", "vm2")]

    hosts = list(wb["Hosts"].iter_rows(values_only=True))[1:]
    assert hosts == [("a.xlsx", "esx-01", "host1"), ("b.xlsx", "esx-02", "host2")]
    assert result.anonymization_statistics_by_file["Hosts"] == {"a.xlsx": 1, "b.xlsx": 1}


def test_no_map_without_anonymization(exports, output_path: Path):
    a = exports.export("a.xlsx")
    result = merge_files([a], output_path)
    assert result.anonymization_map_path is None
    assert not output_path.with_name("merged_AnonymizationMapping.xlsx").exists()


def test_failed_validation_file(exports, output_path: Path):
    a = exports.export("a.xlsx", [
        vinfo_row(1),
        vinfo_row(2, **{"VM UUID": "uuid-0001"}),
        vinfo_row(3, **{OS_COLUMN: None}),
        vinfo_row(4, **{"VM UUID": None}),
    ])

    result = merge_files([a], output_path, MergeOptions(enable_extended_validation=True))

    failures_path = output_path.with_name("merged_FailedValidation.xlsx")
    assert result.failed_validation_path == failures_path
    ws = openpyxl.load_workbook(failures_path)["vInfo"]
    rows = list(ws.iter_rows(values_only=True))
    header = rows[0]
    assert header[-1] == "Failure Reason"
    reason_by_vm = {r[header.index("VM")]: r[-1] for r in rows[1:]}
    assert reason_by_vm == {
        "vm-004": "Missing VM UUID",
        "vm-003": "Missing OS Configuration",
        "vm-002": "Duplicate VM UUID",
    }
    # grouped in reason order
    assert [r[header.index("VM")] for r in rows[1:]] == ["vm-004", "vm-003", "vm-002"]
    assert result.sheet("vInfo").rows == 1


def test_no_failures_file_when_all_rows_pass(exports, output_path: Path):
    a = exports.export("a.xlsx")
    result = merge_files([a], output_path, MergeOptions(enable_extended_validation=True))
    assert result.failed_validation_path is None
    assert result.extended_validation.total_failed == 0
    assert not output_path.with_name("merged_FailedValidation.xlsx").exists()
