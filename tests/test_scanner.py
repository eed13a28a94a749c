import dataclasses
from pathlib import Path

from decls import Access, DeclKind, ExportState
from idt_config import AnnotationGranularity, IdtConfig, PatchMode, WriteTarget
from ignore_registry import IgnoreRegistry
import scanner

from conftest import make_decl

SOURCE = "const char* h(int count);\nint g(int x);\n"


def apply_config(**overrides) -> IdtConfig:
    fields = dict(
        export_macro="EXPORT",
        granularity=AnnotationGranularity.MEMBERS,
        ignored=IgnoreRegistry.empty(),
        mode=PatchMode.APPLY,
        write_target=WriteTarget.IN_PLACE,
        internal_path_globs=(),
    )
    fields.update(overrides)
    return IdtConfig(**fields)


def header_decls(header: Path):
    return [
        make_decl(DeclKind.FUNCTION, "h", file=header.as_posix(), offset=0),
        make_decl(DeclKind.FUNCTION, "g", file=header.as_posix(), offset=SOURCE.index("int g")),
    ]


def test_two_declarations_in_one_file_are_both_annotated(tmp_path: Path):
    header = tmp_path / "api.hh"
    header.write_text(SOURCE, encoding="utf-8")

    report = scanner.audit([("api.hh", header_decls(header))], apply_config())

    assert report.ok
    assert [d.render().split(": ", 1)[1] for d in report.diagnostics] == [
        "remark: unexported public interface 'h'",
        "remark: unexported public interface 'g'",
    ]
    assert header.read_text(encoding="utf-8") == (
        "EXPORT const char* h(int count);\nEXPORT int g(int x);\n"
    )


def test_header_shared_by_two_units_is_annotated_once(tmp_path: Path):
    header = tmp_path / "api.hh"
    header.write_text(SOURCE, encoding="utf-8")

    report = scanner.audit(
        [("a.cc", header_decls(header)), ("b.cc", header_decls(header))], apply_config()
    )

    assert report.ok
    assert len(report.diagnostics) == 4
    assert header.read_text(encoding="utf-8").count("EXPORT") == 2


def test_patched_declarations_are_not_flagged_again(tmp_path: Path):
    header = tmp_path / "api.hh"
    header.write_text(SOURCE, encoding="utf-8")
    config = apply_config()
    scanner.audit([("api.hh", header_decls(header))], config)

    # What the syntax tree reports after the macro has been added.
    annotated = [
        dataclasses.replace(d, export_state=ExportState.EXPORTED) for d in header_decls(header)
    ]
    report = scanner.audit([("api.hh", annotated)], config)
    assert report.diagnostics == []


def test_ignored_names_produce_no_diagnostics(tmp_path: Path):
    header = tmp_path / "api.hh"
    header.write_text(SOURCE, encoding="utf-8")
    config = apply_config(ignored=IgnoreRegistry.with_builtins(["g"]), mode=PatchMode.REPORT_ONLY)

    report = scanner.audit([("api.hh", header_decls(header))], config)

    assert [d.subject for d in report.diagnostics] == ["h"]
    assert header.read_text(encoding="utf-8") == SOURCE


def test_exported_private_member_is_reported_without_edit(tmp_path: Path):
    decl = make_decl(
        DeclKind.METHOD,
        "helper",
        file=(tmp_path / "api.hh").as_posix(),
        access=Access.PRIVATE,
        export_state=ExportState.EXPORTED,
    )
    report = scanner.audit([("api.hh", [decl])], apply_config(mode=PatchMode.REPORT_ONLY))
    (diagnostic,) = report.diagnostics
    assert diagnostic.message == "exported private interface 'helper'"
    assert diagnostic.edit is None
    assert report.units[0].edits == []


def test_unresolved_sibling_target_makes_the_run_fail(tmp_path: Path):
    header = tmp_path / "api.hh"
    header.write_text(SOURCE, encoding="utf-8")

    report = scanner.audit(
        [("api.hh", header_decls(header))], apply_config(write_target=WriteTarget.SIBLING)
    )

    assert not report.ok
    assert header.read_text(encoding="utf-8") == SOURCE


def test_parse_args_fall_back_to_extra_args(tmp_path: Path):
    assert scanner.parse_args_for(tmp_path / "a.cc", None, ["-std=c++17"]) == ["-std=c++17"]
