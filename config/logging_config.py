"""Process logging: console, rotating files, and per-area log files."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Logger name -> dedicated file, in addition to the main log
AREA_LOGS = {
    "tools.agent_sdk_client": "llm_calls.log",
    "session": "sessions.log",
}

# Third-party loggers held at WARNING unless running at DEBUG
NOISY_LOGGERS = ("httpx", "httpcore", "websockets", "claude_agent_sdk")


def _rotating(path: Path, level: int, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(str(path), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def setup_logging(
    level: int = logging.INFO,
    log_dir: Optional[str | Path] = None,
    console_enabled: bool = True,
) -> None:
    """Configure the root logger for the CLI and the session server.

    Args:
        level: Logging level for the console and the main log.
        log_dir: Directory for log files. Defaults to ./data/logs.
        console_enabled: Whether to also log to stderr.
    """
    log_dir = Path(log_dir or "./data/logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    # Re-init replaces handlers rather than stacking them
    root_logger.handlers.clear()

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)
    root_logger.addHandler(_rotating(log_dir / "lifebook.log", level, formatter))

    for name, filename in AREA_LOGS.items():
        area_logger = logging.getLogger(name)
        area_logger.handlers.clear()
        area_logger.setLevel(logging.DEBUG)
        area_logger.addHandler(_rotating(log_dir / filename, logging.DEBUG, formatter))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level if level <= logging.DEBUG else logging.WARNING)

    logging.getLogger(__name__).debug("Logging initialized: level=%s, dir=%s", level, log_dir)
