import bisect
from dataclasses import dataclass, field
import os
from pathlib import Path
import shutil
import tempfile

from dataclasses_json import dataclass_json

from idt_config import IdtConfig, PatchMode, SiblingNaming, WriteTarget
from idt_types import FilePathStr


@dataclass_json
@dataclass(frozen=True, order=True)
class Edit:
    """Insert `text` at byte `offset` of `file`."""

    file: FilePathStr
    offset: int
    text: str


class PatchError(Exception):
    def __init__(self, file: FilePathStr, message: str):
        super().__init__(f"{file}: {message}")
        self.file = file


class OverlapError(PatchError):
    pass


class WriteTargetUnresolved(PatchError):
    pass


class EditOutOfBoundsError(PatchError):
    pass


@dataclass
class FileFailure:
    file: FilePathStr
    error: Exception


@dataclass
class CommitReport:
    # original path -> path actually written
    written: dict[FilePathStr, FilePathStr] = field(default_factory=dict)
    failures: list[FileFailure] = field(default_factory=list)
    # files whose edits were dropped after an overlap
    abandoned: list[FilePathStr] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures and not self.abandoned


def apply_edits(file: FilePathStr, content: bytes, edits: list[Edit]) -> bytes:
    """Apply insertions in descending offset order, so that each edit's
    offset is still valid with respect to the original content."""
    for edit in sorted(edits, key=lambda e: e.offset, reverse=True):
        if edit.offset < 0 or edit.offset > len(content):
            raise EditOutOfBoundsError(
                file, f"edit at offset {edit.offset} is outside the file ({len(content)} bytes)"
            )
        content = content[: edit.offset] + edit.text.encode() + content[edit.offset :]
    return content


def write_atomically(dest: Path, content: bytes, mode_from: Path | None = None) -> None:
    """Write `content` to a temporary file beside `dest`, then move it into
    place, so `dest` is never left half-written."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{dest.name}.", dir=dest.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(content)
        if mode_from is not None and mode_from.exists():
            shutil.copymode(mode_from, tmp)
        os.replace(tmp, dest)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise


class PatchEngine:
    """
    Owns the edits suggested during a run, grouped per file and kept in
    ascending offset order.

    In report-only mode the edits only back the suggestions shown in
    diagnostics and `commit()` does nothing. In apply mode `commit()`
    rewrites every file with edits, either in place or into a sibling file
    named by a caller-supplied `SiblingNaming`.

    Can be used as a context manager; edits are committed when the block
    exits without an exception, and the result is kept in `last_report`.
    """

    def __init__(
        self,
        mode: PatchMode = PatchMode.REPORT_ONLY,
        write_target: WriteTarget = WriteTarget.IN_PLACE,
        sibling_naming: SiblingNaming | None = None,
    ):
        self.mode = mode
        self.write_target = write_target
        self.sibling_naming = sibling_naming
        self.edits: dict[FilePathStr, list[Edit]] = {}
        self.abandoned: dict[FilePathStr, OverlapError] = {}
        self.last_report: CommitReport | None = None

    @classmethod
    def from_config(cls, config: IdtConfig) -> "PatchEngine":
        return cls(config.mode, config.write_target, config.sibling_naming)

    def record(self, edit: Edit) -> bool:
        """Add `edit` to its file's edit set.

        Returns False if an identical edit was already recorded (the same
        header reached from more than one translation unit), or if the
        file was abandoned after an earlier overlap. Raises OverlapError if
        a different edit already targets the same offset."""
        if edit.file in self.abandoned:
            return False
        file_edits = self.edits.setdefault(edit.file, [])
        offsets = [e.offset for e in file_edits]
        i = bisect.bisect_left(offsets, edit.offset)
        if i < len(file_edits) and file_edits[i].offset == edit.offset:
            if file_edits[i] == edit:
                return False
            err = OverlapError(
                edit.file,
                f"conflicting edits at offset {edit.offset}: "
                f"{file_edits[i].text!r} and {edit.text!r}",
            )
            self.abandoned[edit.file] = err
            del self.edits[edit.file]
            raise err
        file_edits.insert(i, edit)
        return True

    def edits_for(self, file: FilePathStr) -> list[Edit]:
        return list(self.edits.get(file, []))

    def destination_for(self, file: FilePathStr) -> Path:
        original = Path(file)
        if self.write_target == WriteTarget.IN_PLACE:
            return original
        if self.sibling_naming is None:
            raise WriteTargetUnresolved(
                file, "no output naming strategy given for non-in-place rewrite"
            )
        dest = self.sibling_naming.sibling_of(original)
        if dest.resolve() == original.resolve():
            raise WriteTargetUnresolved(
                file, f"output template {self.sibling_naming.template!r} names the original file"
            )
        return dest

    def commit(self) -> CommitReport:
        report = CommitReport(abandoned=sorted(self.abandoned))
        if self.mode != PatchMode.APPLY:
            return report

        for file, file_edits in sorted(self.edits.items()):
            try:
                dest = self.destination_for(file)
                content = Path(file).read_bytes()
                write_atomically(dest, apply_edits(file, content, file_edits), Path(file))
            except (PatchError, OSError) as e:
                report.failures.append(FileFailure(file, e))
                continue
            report.written[file] = dest.as_posix()
        return report

    def discard(self) -> None:
        self.edits.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None:
            self.discard()
            return False  # propagate exception

        self.last_report = self.commit()
