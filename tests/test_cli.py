import os

import pytest

import main


@pytest.fixture
def generate_args(font_path, white_png, output_dir):
    def _args(csv_path, *extra):
        return ["generate", "--csv", csv_path, "--template", white_png, "--font", font_path,
                "--size", "60", "--output-dir", output_dir, "--parallelism", "2", *extra]
    return _args


def test_generate(generate_args, names_csv, output_dir, capsys):
    csv_path = names_csv(["Alice Johnson", "Bob Smith"])
    assert main.main(generate_args(csv_path)) == main.EXIT_OK

    out = capsys.readouterr().out
    assert "Generated 2 of 2 certificates" in out
    assert sorted(os.listdir(output_dir)) == ["Alice_Johnson_0.png", "Bob_Smith_1.png"]


def test_generate_with_skipped_row(generate_args, names_csv, capsys):
    csv_path = names_csv(["Alice Johnson", "", "Bob Smith"])
    assert main.main(generate_args(csv_path, "--color", "blue", "--position", "center@200,100")) \
        == main.EXIT_ROW_FAILURES
    out = capsys.readouterr().out
    assert "row 1: RowSkipped" in out


def test_generate_bad_color(generate_args, names_csv, output_dir, capsys):
    csv_path = names_csv(["Alice"])
    assert main.main(generate_args(csv_path, "--color", "#12")) == main.EXIT_FATAL
    assert "Error:" in capsys.readouterr().err
    assert not os.path.exists(output_dir)


def test_generate_missing_csv(generate_args, tmp_path, capsys):
    assert main.main(generate_args(str(tmp_path / "missing.csv"))) == main.EXIT_FATAL
    assert "CSV file not found" in capsys.readouterr().err


def test_generate_missing_template(font_path, names_csv, output_dir, tmp_path, capsys):
    csv_path = names_csv(["Alice"])
    code = main.main(["generate", "--csv", csv_path, "--template", str(tmp_path / "missing.png"),
                      "--font", font_path, "--output-dir", output_dir])
    assert code == main.EXIT_FATAL
    assert "Failed to load template" in capsys.readouterr().err


def test_single(font_path, white_png, tmp_path, capsys):
    target = tmp_path / "single.jpg"
    code = main.main(["single", "--template", white_png, "--font", font_path, "--text", "Ann",
                      "--output", str(target), "--position", "10,10"])
    assert code == main.EXIT_OK
    assert target.exists()
    assert "Saved to:" in capsys.readouterr().out


def test_single_blank_text(font_path, white_png, tmp_path):
    code = main.main(["single", "--template", white_png, "--font", font_path, "--text", "  ",
                      "--output", str(tmp_path / "x.png")])
    assert code == main.EXIT_FATAL


def test_analyze_continues_after_failure(white_png, font_path, tmp_path, capsys):
    code = main.main(["analyze", str(tmp_path / "missing.png"), white_png, font_path])
    assert code == main.EXIT_ROW_FAILURES

    captured = capsys.readouterr()
    assert "=== Image File Analysis ===" in captured.out
    assert "=== Font File Analysis ===" in captured.out
    assert "missing.png" in captured.err


def test_sample_csv(tmp_path, capsys):
    path = tmp_path / "samples" / "names.csv"
    assert main.main(["sample-csv", str(path)]) == main.EXIT_OK
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "Name"
    assert "Alice Johnson" in lines


def test_no_command_prints_help(capsys):
    assert main.main([]) == main.EXIT_FATAL
    assert "usage:" in capsys.readouterr().out


def test_bad_size_is_rejected_by_parser(font_path, white_png, tmp_path):
    with pytest.raises(SystemExit):
        main.main(["single", "--template", white_png, "--font", font_path, "--text", "A",
                   "--output", str(tmp_path / "x.png"), "--size", "big"])


def test_generate_rejects_non_finite_size(font_path, white_png, names_csv, output_dir, capsys):
    csv_path = names_csv(["Alice"])
    code = main.main(["generate", "--csv", csv_path, "--template", white_png, "--font", font_path,
                      "--size", "nan", "--output-dir", output_dir])
    assert code == main.EXIT_FATAL
    assert "finite" in capsys.readouterr().err
    assert not os.path.exists(output_dir)


def test_debug_csv(names_csv, capsys):
    path = names_csv(["Alice Johnson", "Bob Smith"])
    assert main.main(["debug-csv", path]) == main.EXIT_OK

    out = capsys.readouterr().out
    assert "=== CSV File Debug Info ===" in out
    assert "Total lines: 3" in out
    assert "Parsed headers: ['Name']" in out
    assert "Name column: index 0" in out


def test_debug_csv_without_name_column(names_csv, capsys):
    path = names_csv(["alice,30"], header="Person,Age")
    assert main.main(["debug-csv", path]) == main.EXIT_ROW_FAILURES
    assert "Name column: not found" in capsys.readouterr().out


def test_debug_csv_missing_file(tmp_path, capsys):
    assert main.main(["debug-csv", str(tmp_path / "missing.csv")]) == main.EXIT_FATAL
    assert "Error:" in capsys.readouterr().err
