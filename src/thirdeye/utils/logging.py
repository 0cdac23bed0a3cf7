"""Rotating logger setup for the desktop shell."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Iterable, Union

# uvicorn serves the UI bridge inside the shell process
BRIDGE_SERVER_LOGGERS = ("uvicorn",)


def resolve_level(level: Union[int, str]) -> int:
    """Map a TTE_LOG_LEVEL style name ("info", "debug") to a logging level."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logger(
    name: str = "thirdeye",
    log_file: Union[str, Path] = "./logs/shell.log",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
    level: Union[int, str] = logging.INFO,
    also_capture: Iterable[str] = (),
) -> logging.Logger:
    """Setup the shell log: one rotating file plus the console.

    Component loggers (thirdeye.process, thirdeye.update, ...) propagate to
    `name`; the loggers in also_capture get the same file handler so bridge
    server errors end up in the shell log too.

    Args:
        name: Root logger name for the shell
        log_file: Path to log file (parent directory is created)
        max_bytes: Max size before rotation
        backup_count: Number of rotated files to keep
        level: Logging level or level name ("info", "debug")
        also_capture: Extra logger names routed into the file handler

    Returns:
        Configured logger instance
    """
    level = resolve_level(level)
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Already configured
    if logger.handlers:
        return logger

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    file_handler = RotatingFileHandler(
        log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    logger.addHandler(file_handler)
    logger.addHandler(console_handler)

    for extra in also_capture:
        extra_logger = logging.getLogger(extra)
        if file_handler not in extra_logger.handlers:
            extra_logger.addHandler(file_handler)

    return logger
