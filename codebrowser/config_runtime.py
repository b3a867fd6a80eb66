"""Runtime configuration for cbgen - centralized configuration management."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from codebrowser.utils.constants import CONFIG_FILE_NAME, DEFAULT_DATA_PATH
from codebrowser.utils.logging import logger

DEFAULTS = {
    "paths": {
        # Directory holding the builtin compiler headers bundle
        "builtin_includes": "/builtins",
        "data_path": DEFAULT_DATA_PATH,
    },
    "limits": {
        "workers": os.cpu_count() or 1,
        "progress_every": 1,
    },
    "extensions": {
        "headers": [".h", ".H", ".hh", ".hpp"],
        "doc_sources": [".qdoc"],
    },
    "system_projects": {
        "include": "/usr/include/",
    },
}

_SECTIONS = ("paths", "limits", "extensions", "system_projects")


def load_runtime_config(root: str = ".") -> dict[str, Any]:
    """
    Load runtime configuration from .codebrowser/config.json and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (CODEBROWSER_<SECTION>_<KEY>)
    2. .codebrowser/config.json file
    3. Built-in defaults

    Args:
        root: Directory to look for the .codebrowser config directory in

    Returns:
        Configuration dictionary with merged values
    """
    cfg = copy.deepcopy(DEFAULTS)

    path = Path(root) / ".codebrowser" / CONFIG_FILE_NAME
    try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                user = json.load(f)

            if isinstance(user, dict):
                for section in _SECTIONS:
                    if section not in user or not isinstance(user[section], dict):
                        continue
                    for key, value in user[section].items():
                        if section == "system_projects":
                            # Open-ended mapping of project name -> root path
                            if isinstance(value, str):
                                cfg[section][key] = value
                        elif key in cfg[section] and isinstance(value, type(cfg[section][key])):
                            cfg[section][key] = value
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Could not load config file from {path}: {e}")
        logger.info("Continuing with default configuration")

    for section in ("paths", "limits", "extensions"):
        for key in cfg[section]:
            env_var = f"CODEBROWSER_{section.upper()}_{key.upper()}"
            if env_var not in os.environ:
                continue
            value = os.environ[env_var]
            default_value = cfg[section][key]
            try:
                if isinstance(default_value, int):
                    cfg[section][key] = int(value)
                elif isinstance(default_value, list):
                    cfg[section][key] = [v.strip() for v in value.split(",") if v.strip()]
                else:
                    cfg[section][key] = value
            except ValueError as e:
                logger.warning(f"Invalid value for environment variable {env_var}: '{value}' - {e}")
                logger.info(f"Using default value: {default_value}")

    if cfg["limits"]["workers"] < 1:
        logger.warning(f"limits.workers must be positive, got {cfg['limits']['workers']}; using 1")
        cfg["limits"]["workers"] = 1

    return cfg
