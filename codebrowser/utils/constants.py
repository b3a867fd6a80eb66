"""Paths and defaults shared across the codebrowser utilities."""

from pathlib import Path

# Working state directory (config overrides, error log), relative to the cwd
STATE_DIR = Path("./.codebrowser")

ERROR_LOG_FILE = STATE_DIR / "error.log"
CONFIG_FILE_NAME = "config.json"

# Output layout under the output root
FILE_INDEX_NAME = "fileIndex"
OTHER_INDEX_NAME = "otherIndex"
REFS_DIR_NAME = "refs"
MACRO_REFS_DIR_NAME = "_M"
FN_SEARCH_DIR_NAME = "fnSearch"

DEFAULT_DATA_PATH = "../data"
