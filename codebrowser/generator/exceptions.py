"""Custom exceptions for the generator package.

Configuration problems are detected before any unit is scheduled and abort
the run. Per-file problems are never raised past the dispatcher.
"""


class CodeBrowserError(Exception):
    """Base class for every error raised by the generator."""


class ConfigurationError(CodeBrowserError):
    """Invalid command line or run setup; the run must not start."""


class ProjectSpecError(ConfigurationError):
    """A ``-p``/``-e`` project specification could not be parsed or registered.

    Attributes:
        spec: The raw specification string given on the command line
    """

    def __init__(self, message: str, spec: str):
        super().__init__(message)
        self.spec = spec


class CompilationDatabaseError(ConfigurationError):
    """The compilation database is missing, unreadable or malformed."""
