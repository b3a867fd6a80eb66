"""codebrowser utilities package."""

from .constants import (
    DEFAULT_DATA_PATH,
    ERROR_LOG_FILE,
    FILE_INDEX_NAME,
    FN_SEARCH_DIR_NAME,
    OTHER_INDEX_NAME,
    REFS_DIR_NAME,
    STATE_DIR,
)
from .error_handler import handle_exceptions
from .exit_codes import ExitCodes
from .logging import logger

__all__ = [
    "DEFAULT_DATA_PATH",
    "ERROR_LOG_FILE",
    "FILE_INDEX_NAME",
    "FN_SEARCH_DIR_NAME",
    "OTHER_INDEX_NAME",
    "REFS_DIR_NAME",
    "STATE_DIR",
    "handle_exceptions",
    "ExitCodes",
    "logger",
]
