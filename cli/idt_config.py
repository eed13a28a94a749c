from dataclasses import dataclass, field
from enum import Enum
import fnmatch
from pathlib import Path

from idt_types import FilePathStr, PathGlob
from ignore_registry import IgnoreRegistry

# Paths matching any of these are implementation details of the library
# (internal sources, tool sources) or machine-generated definition lists
# which are textually included rather than compiled against. They are
# matched against the path relative to the source root.
DEFAULT_INTERNAL_PATH_GLOBS: tuple[PathGlob, ...] = (
    "lib/*",
    "*/lib/*",
    "tools/*",
    "*/tools/*",
    "*.def",
    "*.inc",
)


class ConfigurationError(ValueError):
    pass


class AnnotationGranularity(Enum):
    # Each function and method carries its own annotation; records never do.
    MEMBERS = "members"
    # Records carry the annotation and their methods inherit it.
    RECORD = "record"


class PatchMode(Enum):
    REPORT_ONLY = "report-only"
    APPLY = "apply"


class WriteTarget(Enum):
    IN_PLACE = "in-place"
    SIBLING = "sibling"


@dataclass(frozen=True)
class SiblingNaming:
    """Names the output file written next to a rewritten source.

    `template` is a `str.format` string with the fields `stem`, `suffix`
    and `name` of the original path, e.g. "{stem}.fixed{suffix}"."""

    template: str

    def __post_init__(self):
        try:
            rendered = self.template.format(stem="x", suffix=".h", name="x.h")
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigurationError(f"Invalid output template {self.template!r}: {e}") from e
        if not rendered or "/" in rendered:
            raise ConfigurationError(
                f"Output template {self.template!r} must name a file in the same directory"
            )

    def sibling_of(self, path: Path) -> Path:
        name = self.template.format(stem=path.stem, suffix=path.suffix, name=path.name)
        return path.with_name(name)


@dataclass(frozen=True)
class IdtConfig:
    export_macro: str
    granularity: AnnotationGranularity
    ignored: IgnoreRegistry = field(default_factory=IgnoreRegistry.with_builtins)
    mode: PatchMode = PatchMode.REPORT_ONLY
    write_target: WriteTarget = WriteTarget.SIBLING
    sibling_naming: SiblingNaming | None = None
    internal_path_globs: tuple[PathGlob, ...] = DEFAULT_INTERNAL_PATH_GLOBS
    source_root: Path = field(default_factory=lambda: Path.cwd().resolve())

    def __post_init__(self):
        if not self.export_macro:
            raise ConfigurationError("An export macro is required (--export-macro)")
        if any(c.isspace() for c in self.export_macro):
            raise ConfigurationError(
                f"Export macro must be a single token, got {self.export_macro!r}"
            )

    @property
    def insertion_text(self) -> str:
        return self.export_macro + " "

    def project_relative(self, path: FilePathStr) -> Path:
        """`path` relative to the source root. Outside the root only the file
        name is kept, so that directories above the project never count."""
        p = Path(path)
        if not p.is_absolute():
            return p
        try:
            return p.relative_to(self.source_root)
        except ValueError:
            return Path(p.name)

    def is_internal_path(self, path: FilePathStr) -> bool:
        posix = self.project_relative(path).as_posix()
        return any(fnmatch.fnmatchcase(posix, glob) for glob in self.internal_path_globs)
