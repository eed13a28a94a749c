"""Runs the export policy over one or more translation units.

Each unit is folded through classify -> diagnose independently; the edits
of all units are merged into a single PatchEngine once every unit has been
scanned, and committed at the end of the run.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Sequence

from clang.cindex import (  # type: ignore
    Diagnostic as ClangDiagnostic,
    Index,
    TranslationUnitLoadError,
)

from cindex_helpers import create_clang_index, parse_translation_unit
from clang_decls import descriptors_for
from classifier import classify
import compilation_database
from decls import DeclDescriptor
from idt_config import IdtConfig
from patch_engine import CommitReport, Edit, OverlapError, PatchEngine
from reporter import Diagnostic, diagnose


@dataclass
class UnitResult:
    source: str
    diagnostics: list[Diagnostic] = field(default_factory=list)
    # Compiler errors, or the reason the unit could not be parsed at all.
    errors: list[str] = field(default_factory=list)

    @property
    def edits(self) -> list[Edit]:
        return [d.edit for d in self.diagnostics if d.edit is not None]


@dataclass
class ScanReport:
    units: list[UnitResult]
    overlaps: list[OverlapError]
    commit: CommitReport

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [d for unit in self.units for d in unit.diagnostics]

    @property
    def ok(self) -> bool:
        return not self.overlaps and self.commit.ok and not any(u.errors for u in self.units)


def scan_declarations(
    source: str, decls: Iterable[DeclDescriptor], config: IdtConfig
) -> UnitResult:
    result = UnitResult(source)
    for decl in decls:
        diagnostic = diagnose(decl, classify(decl, config))
        if diagnostic is not None:
            result.diagnostics.append(diagnostic)
    return result


def merge_and_commit(units: list[UnitResult], config: IdtConfig) -> ScanReport:
    overlaps = []
    with PatchEngine.from_config(config) as engine:
        for unit in units:
            for edit in unit.edits:
                try:
                    engine.record(edit)
                except OverlapError as e:
                    overlaps.append(e)
    assert engine.last_report is not None
    return ScanReport(units, overlaps, engine.last_report)


def audit(
    units: Iterable[tuple[str, Iterable[DeclDescriptor]]], config: IdtConfig
) -> ScanReport:
    """Scan already-extracted declarations, one iterable per unit."""
    results = [scan_declarations(src, decls, config) for src, decls in units]
    return merge_and_commit(results, config)


def parse_args_for(
    source: Path,
    compdb: compilation_database.CompileCommands | None,
    extra_args: Sequence[str],
) -> list[str]:
    if compdb is not None:
        cmds = compdb.get_commands_for_path(source.resolve())
        if cmds:
            # Several commands for one file differ at most in output
            # location for our purposes; the first is as good as any.
            return [*cmds[0].get_parse_args(), *extra_args]
    return list(extra_args)


def scan_source(
    index: Index,
    source: Path,
    config: IdtConfig,
    compdb: compilation_database.CompileCommands | None = None,
    extra_args: Sequence[str] = (),
) -> UnitResult:
    args = parse_args_for(source, compdb, extra_args)
    try:
        tu = parse_translation_unit(index, source.as_posix(), args)
    except TranslationUnitLoadError as e:
        return UnitResult(source.as_posix(), errors=[f"unable to parse: {e}"])

    result = scan_declarations(source.as_posix(), descriptors_for(tu), config)
    for d in tu.diagnostics:
        if d.severity >= ClangDiagnostic.Error:
            result.errors.append(d.format())
    return result


def scan_sources(
    sources: Sequence[Path],
    config: IdtConfig,
    compdb: compilation_database.CompileCommands | None = None,
    extra_args: Sequence[str] = (),
    libclang_path: Path | None = None,
) -> ScanReport:
    index = create_clang_index(libclang_path)
    units = [scan_source(index, src, config, compdb, extra_args) for src in sources]
    return merge_and_commit(units, config)
