"""Centralized error handler for cbgen commands.

Expected generator errors (bad input, unusable compilation database) become
plain click errors. Anything else is a bug: its traceback goes to the loguru
sinks and to ``.codebrowser/error.log`` before click reports it.
"""

import traceback
from collections.abc import Callable
from datetime import datetime
from functools import wraps
from typing import Any

import click

from codebrowser.utils.logging import logger

from .constants import ERROR_LOG_FILE, STATE_DIR


def _append_error_log(command: str, error: BaseException) -> None:
    STATE_DIR.mkdir(parents=True, exist_ok=True)
    separator = "-" * 72
    with open(ERROR_LOG_FILE, "a", encoding="utf-8") as f:
        f.write(f"{separator}\n{datetime.now().isoformat()} cbgen {command}\n{separator}\n")
        f.write("".join(traceback.format_exception(type(error), error, error.__traceback__)))
        f.write("\n")


def handle_exceptions(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator turning command failures into click errors."""

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        # Imported here: the generator package imports this module's siblings
        from codebrowser.generator.exceptions import CodeBrowserError

        try:
            return func(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.Abort):
            raise
        except CodeBrowserError as e:
            logger.error("{cmd}: {err}", cmd=func.__name__, err=str(e))
            raise click.ClickException(str(e)) from e
        except Exception as e:
            logger.opt(exception=True).error(
                "Command '{cmd}' crashed: {err}",
                cmd=func.__name__,
                err=str(e),
            )
            _append_error_log(func.__name__, e)
            raise click.ClickException(
                f"{type(e).__name__}: {e}\n\nFull traceback logged to: {ERROR_LOG_FILE}"
            ) from e

    return wrapper
