from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from idt_types import DeclName

# Compiler builtins and intrinsics which show up as bare forward declarations
# in otherwise well-annotated headers.
BUILTIN_IGNORED_NAMES: frozenset[DeclName] = frozenset(
    {
        "_BitScanForward",
        "_BitScanForward64",
        "_BitScanReverse",
        "_BitScanReverse64",
        "__builtin_strlen",
    }
)


def split_name_list(values: Iterable[str]) -> list[DeclName]:
    """Flatten `--ignore f,g --ignore h` style values into `[f, g, h]`."""
    names = []
    for value in values:
        names.extend(part.strip() for part in value.split(",") if part.strip())
    return names


def read_name_file(path: Path) -> list[DeclName]:
    """One name per line; blank lines and `#` comments are skipped."""
    names = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            names.append(line)
    return names


@dataclass(frozen=True)
class IgnoreRegistry:
    """Declaration names exempt from analysis. Matching is exact and
    case-sensitive against the unqualified name."""

    names: frozenset[DeclName]

    @classmethod
    def with_builtins(cls, user_names: Iterable[DeclName] = ()) -> "IgnoreRegistry":
        return cls(BUILTIN_IGNORED_NAMES | frozenset(user_names))

    @classmethod
    def empty(cls) -> "IgnoreRegistry":
        return cls(frozenset())

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __len__(self) -> int:
        return len(self.names)
