import sys
from pathlib import Path

import click

from idt_config import (
    AnnotationGranularity,
    ConfigurationError,
    DEFAULT_INTERNAL_PATH_GLOBS,
    IdtConfig,
    PatchMode,
    SiblingNaming,
    WriteTarget,
)
from ignore_registry import IgnoreRegistry, read_name_file, split_name_list
import compilation_database
import scanner


def build_config(
    export_macro: str | None,
    granularity: str,
    apply_fixits: bool = False,
    inplace: bool = False,
    output_template: str | None = None,
    ignore: tuple[str, ...] = (),
    ignore_file: Path | None = None,
    internal_path: tuple[str, ...] = (),
    source_root: Path | None = None,
) -> IdtConfig:
    """Build the run's configuration from command line values.

    Raises ConfigurationError for missing or malformed values."""
    names = split_name_list(ignore)
    if ignore_file is not None:
        try:
            names.extend(read_name_file(ignore_file))
        except OSError as e:
            raise ConfigurationError(f"Unable to read ignore file {ignore_file}: {e}") from e

    return IdtConfig(
        export_macro=export_macro or "",
        granularity=AnnotationGranularity(granularity),
        ignored=IgnoreRegistry.with_builtins(names),
        mode=PatchMode.APPLY if apply_fixits else PatchMode.REPORT_ONLY,
        write_target=WriteTarget.IN_PLACE if inplace else WriteTarget.SIBLING,
        sibling_naming=SiblingNaming(output_template) if output_template else None,
        internal_path_globs=DEFAULT_INTERNAL_PATH_GLOBS + tuple(internal_path),
        source_root=(source_root or Path.cwd()).resolve(),
    )


def echo_report(report: scanner.ScanReport, output_format: str) -> None:
    for unit in report.units:
        for error in unit.errors:
            click.echo(f"{unit.source}: error: {error}", err=True)
        for diagnostic in unit.diagnostics:
            if output_format == "json":
                click.echo(diagnostic.to_json())
            else:
                click.echo(diagnostic.render())

    for overlap in report.overlaps:
        click.echo(f"error: {overlap}", err=True)
    for failure in report.commit.failures:
        click.echo(f"error: unable to rewrite {failure.file}: {failure.error}", err=True)
    for original, written in report.commit.written.items():
        if original != written:
            click.echo(f"wrote {written}", err=True)


@click.command()
@click.argument(
    "sources",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option("--export-macro", help="The macro to decorate interfaces with.")
@click.option(
    "--apply-fixits", is_flag=True, help="Apply suggested changes to decorate interfaces."
)
@click.option("--inplace", is_flag=True, help="Apply suggested changes in-place.")
@click.option(
    "--output-template",
    help="Name for rewritten files when not in-place, e.g. '{stem}.fixed{suffix}'.",
)
@click.option(
    "--ignore",
    multiple=True,
    metavar="NAME[,NAME...]",
    help="Ignore one or more functions. May be repeated.",
)
@click.option(
    "--ignore-file",
    type=click.Path(path_type=Path),
    help="File listing names to ignore, one per line.",
)
@click.option(
    "--internal-path",
    multiple=True,
    metavar="GLOB",
    help="Additional path glob for implementation-internal files. May be repeated.",
)
@click.option(
    "--source-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory internal path globs are relative to. Defaults to the current directory.",
)
@click.option(
    "--granularity",
    type=click.Choice([g.value for g in AnnotationGranularity]),
    required=True,
    help="Annotate functions and methods individually, or annotate records instead.",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    show_default=True,
)
@click.option(
    "-p",
    "build_path",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Directory containing compile_commands.json.",
)
@click.option("--extra-arg", multiple=True, help="Additional argument for the parser.")
@click.option(
    "--libclang", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None
)
def cli(
    sources,
    export_macro,
    apply_fixits,
    inplace,
    output_template,
    ignore,
    ignore_file,
    internal_path,
    source_root,
    granularity,
    output_format,
    build_path,
    extra_arg,
    libclang,
):
    """Find declarations missing an export annotation, and optionally add it."""
    try:
        config = build_config(
            export_macro,
            granularity,
            apply_fixits=apply_fixits,
            inplace=inplace,
            output_template=output_template,
            ignore=ignore,
            ignore_file=ignore_file,
            internal_path=internal_path,
            source_root=source_root,
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    compdb = None
    if build_path is not None:
        compdb = compilation_database.CompileCommands.from_directory(build_path)

    report = scanner.scan_sources(
        list(sources), config, compdb=compdb, extra_args=extra_arg, libclang_path=libclang
    )
    echo_report(report, output_format)
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
