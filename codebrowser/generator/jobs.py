"""Job construction: one resolved compile command per source file.

A Job is built either from the file's own compilation-database entry or,
for files the database does not know, from the command of the
lexicographically nearest known file ("recovery"). Recovery is a heuristic:
the borrowed command may be wrong, and the resulting job is still dispatched
and allowed to fail.
"""

import bisect
import os
import platform
from dataclasses import dataclass
from enum import Enum

from codebrowser.utils.logging import logger

from .compile_db import CompilationDatabase, CompileCommand
from .config import (
    COLOR_DIAGNOSTICS_PREFIXES,
    DOC_SOURCE_HEADER_SUFFIX,
    DOC_SOURCE_LANGUAGE_FLAG,
    MACRO_FLAGS,
    NO_STDINC_FLAGS,
    OUTPUT_MODE_FLAGS,
    SAVE_TEMPS_PREFIXES,
    SYNTAX_ONLY_FLAG,
    SYSTEM_INCLUDE_FLAG,
    TOLERANCE_FLAGS,
    WINDOWS_SYSTEM_INCLUDE_FLAG,
)
from .projects import canonicalize


class SourceStatus(Enum):
    """Where a job's command came from."""

    IN_DATABASE = "in_database"
    RECOVERED = "recovered"
    PROCESS_FULL_DIRECTORY = "process_full_directory"


@dataclass(frozen=True)
class Job:
    """A fully resolved unit of work. Consumed exactly once."""

    absolute_path: str
    working_directory: str
    command_tokens: tuple[str, ...]
    source_status: SourceStatus
    # Set when the dispatcher already claimed the page for this file
    page_claimed: bool = False

    @property
    def unit_id(self) -> str:
        """Identity used by the processed-set guard."""
        return self.absolute_path


def _is_absolute(arg: str) -> bool:
    return arg.startswith("/") or os.path.isabs(arg)


def absolutize_paths(arguments: list[str], directory: str) -> tuple[list[str], bool]:
    """Make include directories and positional path arguments absolute.

    Returns the rewritten arguments and whether ``-nostdinc``/``-nostdinc++``
    was present. ``-I`` directories are rewritten unconditionally,
    positional arguments only when the joined path exists.
    """
    args = list(arguments)
    previous_is_dash_i = False
    previous_needs_macro = False
    has_no_stdinc = False

    for i, arg in enumerate(args):
        if previous_is_dash_i and arg and not _is_absolute(arg):
            args[i] = f"{directory}/{arg}"
            previous_is_dash_i = False
            continue
        if arg == "-I":
            previous_is_dash_i = True
            continue
        if arg in NO_STDINC_FLAGS:
            has_no_stdinc = True
            continue
        if arg in MACRO_FLAGS:
            previous_needs_macro = True
            continue
        if previous_needs_macro:
            # -D NAME / -U NAME: the value is never a path
            previous_needs_macro = False
            continue
        previous_is_dash_i = False
        if not arg:
            continue
        if arg.startswith("-I") and not _is_absolute(arg[2:]):
            args[i] = f"-I{directory}/{arg[2:]}"
            continue
        if arg.startswith("-") or _is_absolute(arg):
            continue
        possible_path = f"{directory}/{arg}"
        if os.path.exists(possible_path):
            args[i] = possible_path

    return args, has_no_stdinc


def syntax_only(arguments: list[str]) -> list[str]:
    """Drop output-producing flags and request a syntax-only run."""
    adjusted: list[str] = []
    has_syntax_only = False
    for arg in arguments:
        if arg.startswith(SAVE_TEMPS_PREFIXES):
            continue
        if arg not in OUTPUT_MODE_FLAGS and not arg.startswith(COLOR_DIAGNOSTICS_PREFIXES):
            adjusted.append(arg)
        elif adjusted and adjusted[-1] == "-Xclang":
            # A stripped flag takes its -Xclang prefix with it
            adjusted.pop()
        if arg == SYNTAX_ONLY_FLAG:
            has_syntax_only = True
    if not has_syntax_only:
        adjusted.append(SYNTAX_ONLY_FLAG)
    return adjusted


def strip_output(arguments: list[str]) -> list[str]:
    """Remove ``-o FILE`` and ``-oFILE``."""
    adjusted: list[str] = []
    skip_next = False
    for arg in arguments:
        if skip_next:
            skip_next = False
            continue
        if not arg.startswith("-o"):
            adjusted.append(arg)
        if arg == "-o":
            skip_next = True
    return adjusted


class JobBuilder:
    """Turns compile commands into Jobs, recovering commands when needed."""

    def __init__(
        self,
        database: CompilationDatabase,
        builtin_includes: str,
        doc_extensions: list[str] | None = None,
        windows: bool | None = None,
    ):
        self.database = database
        self.builtin_includes = builtin_includes
        self.doc_extensions = tuple(doc_extensions or ())
        self.windows = platform.system() == "Windows" if windows is None else windows
        self._known_files = database.all_files()

    def adjust(self, arguments: list[str] | tuple[str, ...], directory: str) -> list[str]:
        """Normalize a raw command for the unit processor."""
        args, has_no_stdinc = absolutize_paths(list(arguments), directory)
        args = syntax_only(args)
        args = strip_output(args)

        if not has_no_stdinc:
            args.append(WINDOWS_SYSTEM_INCLUDE_FLAG if self.windows else SYSTEM_INCLUDE_FLAG)
            args.append(self.builtin_includes)

        args.extend(TOLERANCE_FLAGS)
        return args

    def build(self, command: CompileCommand, file: str, status: SourceStatus) -> Job:
        tokens = self.adjust(command.arguments, command.directory)
        logger.debug(f"Adjusted command for {file}: {tokens}")
        return Job(
            absolute_path=file,
            working_directory=command.directory,
            command_tokens=tuple(tokens),
            source_status=status,
        )

    def direct(self, file: str, whole_directory: bool = False) -> Job | None:
        """Job from the file's own database entry, or None if it has none."""
        commands = self.database.commands_for(file)
        if not commands:
            return None
        status = SourceStatus.PROCESS_FULL_DIRECTORY if whole_directory else SourceStatus.IN_DATABASE
        return self.build(commands[0], file, status)

    def nearest_known_file(self, file: str) -> str | None:
        """First known file not less than ``file``; wraps to the first entry."""
        if not self._known_files:
            return None
        index = bisect.bisect_left(self._known_files, file)
        if index == len(self._known_files):
            index = 0
        return self._known_files[index]

    def recover(self, file: str, whole_directory: bool = False) -> Job | None:
        """Job for a file the database does not cover directly.

        The file's own entry is used if it has one (headers are delayed even
        when listed). Otherwise the nearest known file's command is borrowed
        with its path substituted. Returns None when no command exists.
        """
        commands = self.database.commands_for(file)
        borrowed_from = file
        if not commands:
            nearest = self.nearest_known_file(file)
            if nearest is None:
                return None
            commands = self.database.commands_for(nearest)
            if not commands:
                return None
            borrowed_from = nearest
            logger.debug(f"Borrowing compile command of {nearest} for {file}")

        command = commands[0]
        arguments = list(command.arguments)
        if borrowed_from != file:
            arguments = self._substitute(arguments, command.directory, borrowed_from, file)

        if file.endswith(self.doc_extensions):
            arguments.insert(1, DOC_SOURCE_LANGUAGE_FLAG)
            stem = file[: -len(os.path.splitext(file)[1])]
            arguments.extend(["-include", stem + DOC_SOURCE_HEADER_SUFFIX])

        status = SourceStatus.PROCESS_FULL_DIRECTORY if whole_directory else SourceStatus.RECOVERED
        recovered = CompileCommand(command.directory, file, tuple(arguments))
        return self.build(recovered, file, status)

    @staticmethod
    def _substitute(arguments: list[str], directory: str, original: str, target: str) -> list[str]:
        """Replace every occurrence of ``original`` with ``target``.

        Tokens naming ``original`` relative to ``directory`` are replaced
        too. A match inside a longer token is substituted but logged, since it
        may not be a path at all.
        """
        substituted = []
        for arg in arguments:
            if arg == original:
                substituted.append(target)
            elif arg and not arg.startswith("-") and not _is_absolute(arg) \
                    and canonicalize(os.path.join(directory, arg)) == original:
                substituted.append(target)
            elif original in arg:
                logger.warning(
                    f"Ambiguous substitution of {original} inside argument '{arg}' for {target}"
                )
                substituted.append(arg.replace(original, target))
            else:
                substituted.append(arg)
        return substituted
