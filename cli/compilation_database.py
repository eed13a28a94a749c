from __future__ import annotations

import json
from pathlib import Path
import shlex
from dataclasses import dataclass

# See https://clang.llvm.org/docs/JSONCompilationDatabase.html


@dataclass
class CompileCommand:
    """Represents a single compile command entry from compile_commands.json"""

    # Required fields
    directory: str
    file: str

    # Either command OR arguments is required (but not both)
    command: str | None = None
    arguments: list[str] | None = None

    # Optional fields
    output: str | None = None

    def __post_init__(self):
        if self.command is None and self.arguments is None:
            raise ValueError("Either 'command' or 'arguments' must be provided")
        if self.command is not None and self.arguments is not None:
            raise ValueError("Cannot specify both 'command' and 'arguments'")

    @property
    def directory_path(self) -> Path:
        return Path(self.directory)

    @property
    def absolute_file_path(self) -> Path:
        return (self.directory_path / self.file).resolve()

    def get_command_parts(self) -> list[str]:
        """Get command as a list of arguments, regardless of original format"""
        if self.arguments:
            return self.arguments
        elif self.command:
            return shlex.split(self.command)
        return []

    def get_parse_args(self) -> list[str]:
        """Arguments suitable for `Index.parse`: the compiler executable,
        `-c`, the output file and the source file itself are dropped, and
        relative include directories are anchored at the command's directory."""
        parts = self.get_command_parts()[1:]
        source = self.absolute_file_path.resolve()
        args: list[str] = []
        i = 0
        while i < len(parts):
            arg = parts[i]
            i += 1
            if arg == "-c":
                continue
            if arg == "-o":
                i += 1
                continue
            if arg.startswith("-o") and len(arg) > 2:
                continue
            if not arg.startswith("-") and (self.directory_path / arg).resolve() == source:
                continue
            if arg.startswith("-I") and len(arg) > 2 and not Path(arg[2:]).is_absolute():
                arg = "-I" + (self.directory_path / arg[2:]).as_posix()
            args.append(arg)
        return args


@dataclass
class CompileCommands:
    """Represents the entire compile_commands.json file"""

    commands: list[CompileCommand]

    @classmethod
    def from_json_file(cls, file_path: str | Path) -> CompileCommands:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def from_directory(cls, dir: str | Path) -> CompileCommands:
        return cls.from_json_file(Path(dir) / "compile_commands.json")

    @classmethod
    def from_dict(cls, data: list[dict]) -> CompileCommands:
        commands = [CompileCommand(**entry) for entry in data]
        return cls(commands=commands)

    def get_source_files(self) -> list[Path]:
        """Get all unique source files (as absolute paths), in database order"""
        return list(dict.fromkeys(cmd.absolute_file_path for cmd in self.commands))

    def get_commands_for_path(self, path: Path) -> list[CompileCommand]:
        """Get all commands for a specific source file, which should be an absolute path."""
        assert path.is_absolute(), (
            "To avoid ambiguity from duplicate file names, queried path must be absolute"
        )
        return [cmd for cmd in self.commands if cmd.absolute_file_path == path]
