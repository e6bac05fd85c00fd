from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest

from rvmerge.excel.reader import WorkbookReadError, read_excel_file
from rvmerge.models.cell import CellKind


def test_reads_all_sheets(exports):
    path = exports.export("a.xlsx")
    wb = read_excel_file(path)
    assert wb.name == "a.xlsx"
    assert wb.sheet_names == ["vInfo", "vHost", "vPartition", "vMemory"]
    vinfo = wb.sheet("vinfo")
    assert vinfo is not None
    assert vinfo.header_row()[0] == "VM"
    assert vinfo.last_row == 4


def test_target_sheets_limit_loading(exports):
    path = exports.export("a.xlsx")
    wb = read_excel_file(path, ["VHOST"])
    assert wb.sheet_exists("vInfo")
    assert wb.sheet("vInfo") is None
    assert wb.sheet("vHost") is not None


def test_header_only(exports):
    path = exports.export("a.xlsx")
    wb = read_excel_file(path, header_only=True)
    assert wb.sheet("vInfo").last_row == 1


def test_cell_types_survive(exports):
    path = exports.write("typed.xlsx", {
        "vInfo": (["Name", "Count", "Flag", "When", "Text"], [["web", 3, True, datetime(2024, 5, 1), "NA"]]),
    })
    data = read_excel_file(path).sheet("vInfo")
    assert data.cell(2, 1).text == "web"
    assert data.cell(2, 2).kind is CellKind.NUMBER
    assert data.cell(2, 3).kind is CellKind.BOOLEAN
    assert data.cell(2, 4).kind is CellKind.DATE
    assert data.cell(2, 5).text == "NA"
    assert data.cell(99, 1).is_blank
    assert data.cell(2, 99).is_blank


def test_data_rows_skip_blank_rows(exports):
    path = exports.write("gaps.xlsx", {
        "vInfo": (["VM", "CPUs"], [["a", 1], [None, None], ["b", 2]]),
    })
    data = read_excel_file(path).sheet("vInfo")
    assert [(n, r[0]) for n, r in data.data_rows()] == [(2, "a"), (4, "b")]


def test_missing_file_raises(tmp_path: Path):
    with pytest.raises(WorkbookReadError, match="missing.xlsx"):
        read_excel_file(tmp_path / "missing.xlsx")


def test_corrupt_file_raises(tmp_path: Path):
    p = tmp_path / "corrupt.xlsx"
    p.write_bytes(b"PK\x03\x04 not really a zip")
    with pytest.raises(WorkbookReadError):
        read_excel_file(p)


def test_release_drops_rows_but_keeps_listing(exports):
    path = exports.export("a.xlsx")
    wb = read_excel_file(path)
    wb.release("VINFO")
    assert wb.sheet("vInfo") is None
    assert wb.sheet_exists("vInfo")
    assert wb.sheet("vHost") is not None
