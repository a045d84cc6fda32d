from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

LOG_FILE_NAME = "buyerlens.log"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"
CONSOLE_HANDLER_NAME = "buyerlens.console"


def is_console_handler(h: logging.Handler) -> bool:
    return h.name == CONSOLE_HANDLER_NAME


def setup_logging(settings) -> Path | None:
    """Configure console logging, plus a rotating file under LOG_DIR when it is set.

    Returns the log file path, or None when only console logging is active.
    """
    level = logging.getLevelName(settings.LOG_LEVEL.upper())
    if not isinstance(level, int):
        level = logging.INFO

    fmt = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    root = logging.getLogger()
    root.setLevel(level)
    if not any(is_console_handler(h) for h in root.handlers):
        console = logging.StreamHandler()
        console.set_name(CONSOLE_HANDLER_NAME)
        console.setFormatter(fmt)
        root.addHandler(console)

    log_path = None
    if settings.LOG_DIR:
        log_dir = Path(settings.LOG_DIR).expanduser()
        log_dir.mkdir(parents=True, exist_ok=True)
        log_path = log_dir / LOG_FILE_NAME
        # avoid duplicate handlers on reload
        if not any(getattr(h, "baseFilename", "").endswith(LOG_FILE_NAME) for h in root.handlers):
            handler = logging.handlers.RotatingFileHandler(
                log_path, maxBytes=5_000_000, backupCount=3, encoding="utf-8"
            )
            handler.setFormatter(fmt)
            root.addHandler(handler)
            handlers.append(handler)

    # uvicorn installs its own handlers; route its records to the file as well
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        if lg.propagate:
            continue
        for handler in handlers:
            lg.addHandler(handler)

    return log_path
