"""Compilation database loading.

Two flavours are supported, mirroring what compiler tooling accepts:

- A JSON compilation database (``compile_commands.json``), loaded from a
  file or from a build directory containing one.
- A fixed database built from the arguments given after ``--`` on the
  command line, which answers every file with the same command.
"""

import json
import os
import shlex
from dataclasses import dataclass
from pathlib import Path

from codebrowser.utils.logging import logger

from .config import FIXED_DATABASE_EXECUTABLE
from .exceptions import CompilationDatabaseError
from .projects import canonicalize

COMPILE_COMMANDS_FILE = "compile_commands.json"


@dataclass(frozen=True)
class CompileCommand:
    """One compile command: working directory, main file and argv."""

    directory: str
    filename: str
    arguments: tuple[str, ...]


class CompilationDatabase:
    """In-memory JSON compilation database keyed by canonical file path."""

    def __init__(self, commands: list[CompileCommand] | None = None, source: str = "<memory>"):
        self.source = source
        self._by_file: dict[str, list[CompileCommand]] = {}
        for command in commands or []:
            self._by_file.setdefault(command.filename, []).append(command)
        self._sorted_files = sorted(self._by_file)

    @classmethod
    def from_file(cls, path: str | Path) -> "CompilationDatabase":
        path = Path(path)
        try:
            with open(path, encoding="utf-8") as f:
                entries = json.load(f)
        except OSError as e:
            raise CompilationDatabaseError(f"Cannot read compilation database {path}: {e}") from e
        except json.JSONDecodeError as e:
            raise CompilationDatabaseError(f"Malformed compilation database {path}: {e}") from e

        if not isinstance(entries, list):
            raise CompilationDatabaseError(
                f"Malformed compilation database {path}: expected a list of entries"
            )

        commands = [_parse_entry(entry, index, path) for index, entry in enumerate(entries)]
        logger.info(f"Loaded {len(commands)} compile commands from {path}")
        return cls(commands, source=str(path))

    @classmethod
    def from_directory(cls, build_dir: str | Path) -> "CompilationDatabase":
        candidate = Path(build_dir) / COMPILE_COMMANDS_FILE
        if not candidate.is_file():
            raise CompilationDatabaseError(f"No {COMPILE_COMMANDS_FILE} found in {build_dir}")
        return cls.from_file(candidate)

    @classmethod
    def load(cls, build_path: str | Path) -> "CompilationDatabase":
        """Load from a build directory or directly from a JSON file."""
        build_path = Path(build_path)
        if not build_path.exists():
            raise CompilationDatabaseError(f"Build path does not exist: {build_path}")
        if build_path.is_dir():
            logger.debug(f"Build path is a directory, looking for {COMPILE_COMMANDS_FILE}: {build_path}")
            return cls.from_directory(build_path)
        return cls.from_file(build_path)

    def commands_for(self, path: str) -> list[CompileCommand]:
        return list(self._by_file.get(canonicalize(path), ()))

    def all_files(self) -> list[str]:
        """Every file with a command, sorted."""
        return list(self._sorted_files)

    def __len__(self) -> int:
        return len(self._sorted_files)


class FixedCompilationDatabase(CompilationDatabase):
    """Database answering every file with the command given inline."""

    def __init__(self, arguments: list[str], directory: str | None = None):
        super().__init__([], source="<command line>")
        self.arguments = tuple(arguments)
        self.directory = directory or os.getcwd()

    def commands_for(self, path: str) -> list[CompileCommand]:
        filename = canonicalize(path)
        argv = (FIXED_DATABASE_EXECUTABLE, *self.arguments, filename)
        return [CompileCommand(self.directory, filename, argv)]


def _parse_entry(entry: object, index: int, path: Path) -> CompileCommand:
    if not isinstance(entry, dict):
        raise CompilationDatabaseError(f"{path}: entry {index} is not an object")

    directory = entry.get("directory")
    filename = entry.get("file")
    if not isinstance(directory, str) or not isinstance(filename, str):
        raise CompilationDatabaseError(f"{path}: entry {index} needs 'directory' and 'file'")

    if "arguments" in entry:
        arguments = entry["arguments"]
        if not isinstance(arguments, list) or not all(isinstance(a, str) for a in arguments):
            raise CompilationDatabaseError(f"{path}: entry {index} has invalid 'arguments'")
    elif "command" in entry:
        try:
            arguments = shlex.split(entry["command"], posix=True)
        except ValueError as e:
            raise CompilationDatabaseError(f"{path}: entry {index} has unparsable 'command': {e}") from e
    else:
        raise CompilationDatabaseError(f"{path}: entry {index} has neither 'arguments' nor 'command'")

    if not os.path.isabs(filename):
        filename = os.path.join(directory, filename)

    return CompileCommand(
        directory=directory,
        filename=canonicalize(filename),
        arguments=tuple(arguments),
    )
