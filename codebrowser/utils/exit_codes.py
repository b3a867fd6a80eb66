"""Centralized exit codes for the cbgen CLI."""


class ExitCodes:
    """Standard exit codes for cbgen commands."""

    SUCCESS = 0

    CONFIGURATION_ERROR = 1

    UNITS_FAILED = 2

