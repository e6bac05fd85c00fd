from __future__ import annotations

from rvmerge.models.cell import BLANK, CellValue
from rvmerge.models.config_models import AnonymizationCategory
from rvmerge.services.anonymizer import Anonymizer, MappingEntry

CATEGORIES = [
    AnonymizationCategory(column="VM", prefix="vm", label="VMs"),
    AnonymizationCategory(column="Host", prefix="host", label="Hosts"),
]


def _text(values: list[str]) -> list[CellValue]:
    return [CellValue.of_text(v) for v in values]


def test_column_categories_first_occurrence():
    anon = Anonymizer(CATEGORIES)
    cats = anon.column_categories(["Host", "CPUs", "VM", "Host"])
    assert {i: c.label for i, c in cats.items()} == {2: "VMs", 0: "Hosts"}


def test_pseudonyms_are_stable_and_sequential():
    anon = Anonymizer(CATEGORIES)
    cats = anon.column_categories(["VM", "Host"])
    rows = [_text(["web", "esx-a"]), _text(["db", "esx-a"]), _text(["web", "esx-b"])]
    for row in rows:
        anon.anonymize_row(row, cats, "a.xlsx")
    assert [[c.text for c in r] for r in rows] == [
        ["vm1", "host1"],
        ["vm2", "host1"],
        ["vm1", "host2"],
    ]
    assert anon.statistics() == {"VMs": 2, "Hosts": 2}


def test_mapping_shared_across_sheets():
    """The same host in vInfo and vHost gets the same pseudonym."""
    anon = Anonymizer(CATEGORIES)
    vinfo = _text(["web", "esx-a"])
    anon.anonymize_row(vinfo, anon.column_categories(["VM", "Host"]), "a.xlsx")
    vhost = _text(["esx-a", "Xeon"])
    anon.anonymize_row(vhost, anon.column_categories(["Host", "CPU Model"]), "b.xlsx")
    assert vhost[0].text == "host1"
    assert vhost[1].text == "Xeon"


def test_blank_values_pass_through():
    anon = Anonymizer(CATEGORIES)
    cats = anon.column_categories(["VM"])
    assert anon.anonymize(BLANK, 0, cats) is BLANK
    spaces = CellValue.of_text("  ")
    assert anon.anonymize(spaces, 0, cats) is spaces
    assert anon.statistics()["VMs"] == 0


def test_non_text_values_keyed_by_text():
    anon = Anonymizer(CATEGORIES)
    cats = anon.column_categories(["VM"])
    assert anon.anonymize(CellValue.from_raw(101), 0, cats).text == "vm1"
    assert anon.anonymize(CellValue.from_raw(101.0), 0, cats).text == "vm1"


def test_per_file_statistics_and_entries():
    anon = Anonymizer(CATEGORIES)
    cats = anon.column_categories(["VM"])
    anon.anonymize(CellValue.of_text("web"), 0, cats, "a.xlsx")
    anon.anonymize(CellValue.of_text("web"), 0, cats, "b.xlsx")
    anon.anonymize(CellValue.of_text("db"), 0, cats, "b.xlsx")
    assert anon.statistics_by_file() == {"VMs": {"a.xlsx": 1, "b.xlsx": 1}, "Hosts": {}}
    assert anon.mapping_entries()["VMs"] == [
        MappingEntry(file_name="a.xlsx", original="web", pseudonym="vm1"),
        MappingEntry(file_name="b.xlsx", original="db", pseudonym="vm2"),
    ]
