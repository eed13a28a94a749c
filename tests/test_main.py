import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from main import cli

SOURCE = "const char* h(int count);\nint g(int x);\n"
CXX = ["--extra-arg=-xc++", "--extra-arg=-std=c++17"]
MEMBERS = ["--granularity", "members"]


@pytest.fixture
def header(tmp_path: Path) -> Path:
    p = tmp_path / "api.hh"
    p.write_text(SOURCE, encoding="utf-8")
    return p


def run(*args: str):
    return CliRunner().invoke(cli, [*args, *MEMBERS, *CXX])


def test_export_macro_is_required(header):
    result = run(header.as_posix())
    assert result.exit_code == 1
    assert "export macro is required" in result.output


def test_reports_unexported_declarations(header):
    result = run("--export-macro", "EXPORT", "--ignore", "g", header.as_posix())
    assert result.exit_code == 0, result.output
    assert result.output.splitlines() == [
        f"{header.resolve().as_posix()}:1:1: remark: unexported public interface 'h'"
    ]
    assert header.read_text(encoding="utf-8") == SOURCE


def test_json_output(header):
    result = run("--export-macro", "EXPORT", "--format", "json", header.as_posix())
    assert result.exit_code == 0, result.output
    records = [json.loads(line) for line in result.output.splitlines()]
    assert [r["subject"] for r in records] == ["h", "g"]
    assert records[1]["location"]["line"] == 2
    assert records[1]["edit"]["offset"] == SOURCE.index("int g")


def test_apply_without_destination_leaves_file_untouched(header):
    result = run("--export-macro", "EXPORT", "--apply-fixits", header.as_posix())
    assert result.exit_code == 1
    assert header.read_text(encoding="utf-8") == SOURCE


def test_apply_in_place(header):
    result = run("--export-macro", "EXPORT", "--apply-fixits", "--inplace", header.as_posix())
    assert result.exit_code == 0, result.output
    assert header.read_text(encoding="utf-8") == (
        "EXPORT const char* h(int count);\nEXPORT int g(int x);\n"
    )


def test_apply_to_sibling(header):
    result = run(
        "--export-macro",
        "EXPORT",
        "--apply-fixits",
        "--output-template",
        "{stem}.fixed{suffix}",
        header.as_posix(),
    )
    assert result.exit_code == 0, result.output
    assert header.read_text(encoding="utf-8") == SOURCE
    sibling = header.with_name("api.fixed.hh")
    assert sibling.read_text(encoding="utf-8").startswith("EXPORT const char* h")


def test_bad_output_template_is_a_configuration_error(header):
    result = run(
        "--export-macro",
        "EXPORT",
        "--apply-fixits",
        "--output-template",
        "out/{name}",
        header.as_posix(),
    )
    assert result.exit_code == 1
    assert header.read_text(encoding="utf-8") == SOURCE


def test_ignore_file(tmp_path: Path, header):
    names = tmp_path / "ignored.txt"
    names.write_text("# generated\nh\n\ng\n", encoding="utf-8")
    result = run("--export-macro", "EXPORT", "--ignore-file", names.as_posix(), header.as_posix())
    assert result.exit_code == 0, result.output
    assert result.output == ""


def test_missing_source_is_a_usage_error(tmp_path: Path):
    result = run("--export-macro", "EXPORT", (tmp_path / "absent.hh").as_posix())
    assert result.exit_code == 2


def test_granularity_must_be_chosen(header):
    result = CliRunner().invoke(cli, ["--export-macro", "EXPORT", header.as_posix(), *CXX])
    assert result.exit_code == 2
    assert "--granularity" in result.output


def test_project_below_a_lib_directory(tmp_path: Path):
    root = tmp_path / "lib" / "proj"
    (root / "include").mkdir(parents=True)
    (root / "lib").mkdir()
    public = root / "include" / "api.hh"
    public.write_text(SOURCE, encoding="utf-8")
    internal = root / "lib" / "impl.hh"
    internal.write_text(SOURCE, encoding="utf-8")

    result = run(
        "--export-macro",
        "EXPORT",
        "--source-root",
        root.as_posix(),
        public.as_posix(),
        internal.as_posix(),
    )

    assert result.exit_code == 0, result.output
    assert [line.rsplit(" ", 1)[1] for line in result.output.splitlines()] == ["'h'", "'g'"]
    assert all(line.startswith(public.resolve().as_posix()) for line in result.output.splitlines())
