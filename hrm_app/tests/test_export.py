import csv
import math

from openpyxl import load_workbook

from hrm_app.engine.excel_writer import write_csv, write_workbook


HEADER = ["Temperature", "A_Raw", "A_Normalized"]
ROWS = [[60.0, 100.0, float("nan")], [60.5, 90.0, float("inf")]]


def test_csv_blanks_non_finite_cells(tmp_path):
    out = write_csv(tmp_path / "nested" / "export.csv", HEADER, ROWS)

    with out.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows[0] == HEADER
    assert rows[1] == ["60.0", "100.0", ""]
    assert rows[2] == ["60.5", "90.0", ""]
    assert not math.isnan(ROWS[0][0])


def test_workbook_contains_curves_summary_and_audit(tmp_path):
    out = write_workbook(
        tmp_path / "export.xlsx",
        HEADER,
        ROWS,
        tm_summary=[{"sample": "A", "tm": 75.5, "visible": True}],
        settings={"smoothing_window": 5, "manual_regions": None},
        audit=["Session start: now", "=SUM(A1)"],
    )

    wb = load_workbook(out)
    assert wb.sheetnames == ["Melt_Curves", "Tm_Summary", "Settings", "Audit_Log"]
    curves = list(wb["Melt_Curves"].iter_rows(values_only=True))
    assert curves[0] == tuple(HEADER)
    assert curves[1] == (60.0, 100.0, None)

    summary = list(wb["Tm_Summary"].iter_rows(values_only=True))
    assert summary == [("sample", "tm", "visible"), ("A", 75.5, True)]

    audit = list(wb["Audit_Log"].iter_rows(values_only=True))
    assert audit[2] == (2, "'=SUM(A1)")


def test_workbook_without_summary_marks_empty_sheet(tmp_path):
    out = write_workbook(tmp_path / "empty.xlsx", HEADER, [])
    wb = load_workbook(out)
    assert wb["Tm_Summary"]["A1"].value == "No entries"
