"""Code browser generation: project ownership, job building and dispatch."""

from .compile_db import CompilationDatabase, CompileCommand, FixedCompilationDatabase
from .dedup import ProcessedSet
from .dispatcher import Dispatcher
from .exceptions import (
    CodeBrowserError,
    CompilationDatabaseError,
    ConfigurationError,
    ProjectSpecError,
)
from .jobs import Job, JobBuilder, SourceStatus
from .output import OutputAggregator, StreamKind
from .processor import GenerationContext, UnitProcessor, load_processor
from .projects import ProjectInfo, ProjectRegistry, ProjectType
from .runner import run_generation

__all__ = [
    "CompilationDatabase",
    "CompileCommand",
    "FixedCompilationDatabase",
    "ProcessedSet",
    "Dispatcher",
    "CodeBrowserError",
    "CompilationDatabaseError",
    "ConfigurationError",
    "ProjectSpecError",
    "Job",
    "JobBuilder",
    "SourceStatus",
    "OutputAggregator",
    "StreamKind",
    "GenerationContext",
    "UnitProcessor",
    "load_processor",
    "ProjectInfo",
    "ProjectRegistry",
    "ProjectType",
    "run_generation",
]
