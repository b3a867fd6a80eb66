"""Source discovery: which files a run processes, and in which mode."""

import os
from dataclasses import dataclass, field

from codebrowser.utils.logging import logger

from .compile_db import CompilationDatabase
from .exceptions import ConfigurationError
from .projects import ProjectInfo, ProjectRegistry, canonicalize


@dataclass
class SourceSelection:
    """Ordered input files of a run."""

    files: list[str] = field(default_factory=list)
    # Set when a single directory was given: every file below it is a source
    whole_directory: bool = False
    directory: str = ""


def walk_directory(root: str) -> list[str]:
    """Every file below ``root``, sorted. Names starting with ``.`` are skipped."""
    files = []
    for dirpath, dirnames, filenames in os.walk(root):
        # Hidden directories are not descended
        dirnames[:] = [d for d in dirnames if not d.startswith(".")]
        for filename in filenames:
            if filename.startswith("."):
                continue
            files.append(canonicalize(os.path.join(dirpath, filename)))
    files.sort()
    return files


def collect_sources(
    sources: list[str],
    database: CompilationDatabase,
    registry: ProjectRegistry,
    process_all: bool = False,
    has_project_specs: bool = False,
) -> SourceSelection:
    """Resolve the positional sources and ``-a`` into the run's input files.

    Raises ConfigurationError for conflicting or missing input. In
    whole-directory mode without any ``-p`` project, a project named after
    the directory is registered.
    """
    if process_all and sources:
        raise ConfigurationError("Cannot use both sources and '-a'")

    if process_all:
        sources = database.all_files()
        logger.info(f"Processing all {len(sources)} files of {database.source}")

    if not sources:
        raise ConfigurationError("No source files. Please pass source files as argument, or use '-a'")

    selection = SourceSelection(files=list(sources))

    if len(sources) == 1 and os.path.isdir(sources[0]):
        directory = canonicalize(sources[0])
        selection = SourceSelection(
            files=walk_directory(directory),
            whole_directory=True,
            directory=directory,
        )
        logger.info(f"Processing whole directory {directory} ({len(selection.files)} files)")

        if not has_project_specs:
            name = os.path.basename(directory)
            registry.register(ProjectInfo(name=name, source_path=directory))

    if not has_project_specs and not selection.whole_directory:
        raise ConfigurationError("You must specify a project name and directory with '-p name:directory'")

    return selection
