import csv

import pytest

from certificate_maker.errors import NameSourceError
from utils.helpers import (
    MAX_STEM_BYTES,
    create_sample_csv,
    format_csv_report,
    inspect_csv,
    output_filename,
    read_name_rows,
    sanitize_filename,
)


@pytest.mark.parametrize("raw, expected", [
    ("Alice Johnson", "Alice_Johnson"),
    ("Mary   Ann  Lee", "Mary_Ann_Lee"),
    ("  padded  ", "padded"),
    ("../etc/passwd", "etcpasswd"),
    ("..\\windows\\system32", "windowssystem32"),
    ('a:b*c?d"e<f>g|h', "abcdefgh"),
    ("line\nbreak\ttab", "linebreaktab"),
    ("Jos\u00e9 Garc\u00eda", "Jos\u00e9_Garc\u00eda"),
    (".hidden", "hidden"),
])
def test_sanitize_filename(raw, expected):
    assert sanitize_filename(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "///", "...", None])
def test_sanitize_filename_falls_back_when_nothing_is_left(raw):
    assert sanitize_filename(raw) == "name"


def test_sanitize_filename_never_contains_separators():
    stem = sanitize_filename("../../a/b\\c")
    assert "/" not in stem and "\\" not in stem
    assert not stem.startswith(".")


def test_sanitize_filename_composes_unicode():
    decomposed = "Jose\u0301"
    assert sanitize_filename(decomposed) == "Jos\u00e9"


def test_output_filename_includes_row_index():
    assert output_filename("Bob Smith", 2, "png") == "Bob_Smith_2.png"
    # Same name on two rows never collides
    assert output_filename("Ann", 0, "jpg") != output_filename("Ann", 1, "jpg")


def test_read_name_rows_keeps_blank_rows(names_csv):
    path = names_csv(["Alice Johnson", "", "  Bob Smith  "])
    rows = read_name_rows(path)

    assert [index for index, _ in rows] == [0, 1, 2]
    assert [value for _, value in rows] == ["Alice Johnson", "", "Bob Smith"]
    assert rows[1] == (1, "")


def test_read_name_rows_header_is_case_insensitive(names_csv):
    path = names_csv(["a@example.com,Alice", "b@example.com,Bob"], header="Email,NAME")
    rows = read_name_rows(path)
    assert [value for _, value in rows] == ["Alice", "Bob"]


def test_read_name_rows_short_row_is_blank(names_csv):
    path = names_csv(["a@example.com,Alice", "b@example.com"], header="Email,Name")
    rows = read_name_rows(path)
    assert rows[1] == (1, "")


def test_read_name_rows_handles_utf8_bom(tmp_path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffName\nZoë\n".encode("utf-8"))
    rows = read_name_rows(str(path))
    assert rows[0][1] == "Zoë"


def test_read_name_rows_missing_column(names_csv):
    path = names_csv(["alice@example.com"], header="Email")
    with pytest.raises(NameSourceError, match="No 'Name' column"):
        read_name_rows(path)


def test_read_name_rows_missing_file(tmp_path):
    with pytest.raises(NameSourceError, match="not found"):
        read_name_rows(str(tmp_path / "missing.csv"))


def test_read_name_rows_rejects_other_extensions(names_csv):
    path = names_csv(["Alice"], filename="names.txt")
    with pytest.raises(NameSourceError, match=".csv"):
        read_name_rows(path)


def test_read_name_rows_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    with pytest.raises(NameSourceError, match="empty"):
        read_name_rows(str(path))


def test_create_sample_csv(tmp_path):
    path = tmp_path / "nested" / "sample.csv"
    result = create_sample_csv(str(path), ["Alice Johnson", "Bob Smith"])

    assert result == str(path)
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows == [["Name"], ["Alice Johnson"], ["Bob Smith"]]

    rows = read_name_rows(str(path))
    assert [value for _, value in rows] == ["Alice Johnson", "Bob Smith"]


def test_sanitize_filename_limits_length():
    stem = sanitize_filename("A" * 300)
    assert stem == "A" * MAX_STEM_BYTES
    assert len(output_filename("A" * 300, 12345, "png").encode("utf-8")) < 255


def test_sanitize_filename_truncation_keeps_whole_characters():
    # Two bytes per character in UTF-8, so the byte limit falls mid-character
    stem = sanitize_filename("\u00e9" * 150 + "x")
    assert len(stem.encode("utf-8")) <= MAX_STEM_BYTES
    assert stem == "\u00e9" * (MAX_STEM_BYTES // 2)

    stem = sanitize_filename("x" + "\u00e9" * 150)
    assert len(stem.encode("utf-8")) == MAX_STEM_BYTES - 1


def test_sanitize_filename_truncation_drops_trailing_separator():
    stem = sanitize_filename("A" * (MAX_STEM_BYTES - 1) + " Smith")
    assert stem == "A" * (MAX_STEM_BYTES - 1)


def test_inspect_csv(names_csv):
    path = names_csv(["a@example.com,Alice", "b@example.com,Bob"], header="Email,Name")
    info = inspect_csv(path)

    assert info["line_count"] == 3
    assert info["header_line"] == "Email,Name"
    assert info["first_data_line"] == "a@example.com,Alice"
    assert info["headers"] == ["Email", "Name"]
    assert info["column_count"] == 2
    assert info["name_column"] == 1
    assert info["parse_error"] is None
    assert not info["truncated"]
    assert info["size_bytes"] > 0


def test_inspect_csv_reports_missing_name_column(names_csv):
    path = names_csv(["alice@example.com"], header="Email;Name")
    info = inspect_csv(path)
    assert info["headers"] == ["Email;Name"]
    assert info["name_column"] is None
    assert "Name column: not found" in format_csv_report(info)


def test_inspect_csv_truncates_preview(names_csv):
    path = names_csv(["Person %d" % i for i in range(100)])
    info = inspect_csv(path, preview_chars=50)
    assert len(info["preview"]) == 50
    assert info["truncated"]
    assert "... (truncated)" in format_csv_report(info)


def test_inspect_csv_empty_file(tmp_path):
    path = tmp_path / "empty.csv"
    path.write_text("", encoding="utf-8")
    info = inspect_csv(str(path))
    assert info["line_count"] == 0
    assert info["parse_error"] == "no header row"
    assert "Failed to parse headers" in format_csv_report(info)


def test_inspect_csv_missing_file(tmp_path):
    with pytest.raises(NameSourceError):
        inspect_csv(str(tmp_path / "missing.csv"))


def test_format_csv_report(names_csv):
    path = names_csv(["Alice"])
    report = format_csv_report(inspect_csv(path))
    assert report.startswith("=== CSV File Debug Info ===")
    assert "Total lines: 2" in report
    assert "First line (header): 'Name'" in report
    assert "Parsed headers: ['Name']" in report
    assert "Number of columns: 1" in report
    assert "Name column: index 0" in report
