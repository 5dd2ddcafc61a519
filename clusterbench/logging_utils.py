from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

_console = Console()

LOGGER_NAMES = [
    "clusterbench",
    "clusterbench.cli",
    "clusterbench.pipeline",
    "clusterbench.runner",
    "clusterbench.stages",
    "clusterbench.toolchain",
    "clusterbench.workdir",
    "clusterbench.relabel",
]


def get_logger(name: str = "clusterbench", level: str | None = None) -> logging.Logger:
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = RichHandler(
            console=_console, show_time=False, show_path=False)
        logger.addHandler(handler)
        logger.setLevel((level or "INFO").upper())
    elif level is not None:
        logger.setLevel(level.upper())
    logger.propagate = False
    return logger


def set_global_log_level(level: str) -> None:
    for logger_name in LOGGER_NAMES:
        get_logger(logger_name).setLevel(level.upper())


def stage_header(title: str) -> None:
    _console.rule(f"[bold]{title}")
