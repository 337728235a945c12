# src/config/logging_config.py

"""Per-run timestamped logging configuration for import_scout.

Every launch writes a dedicated log file inside ``logs/`` named after
the launch time (e.g. ``logs/run_20261019_153045.log``).  All
``import_scout.*`` loggers (providers, completion client, pipeline)
propagate into it, so one request's fan-out and synthesis steps can be
read back in order.

The SDK transports used underneath (``anthropic``, ``httpx``) are
capped at WARNING so request-level chatter does not drown the
pipeline's own records.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "import_scout"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(threadName)s | %(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_NOISY_LIBRARIES: tuple[str, ...] = ("anthropic", "httpx", "httpcore")


def _attach(
    logger: logging.Logger,
    handler: logging.Handler,
    level: int,
    fmt: str,
) -> None:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt=_TIMESTAMP_FORMAT))
    logger.addHandler(handler)


def _active_log_file(logger: logging.Logger) -> Path | None:
    """The file an already-configured logger is writing to, if any."""
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(console_level: int = logging.WARNING) -> Path:
    """Configure the ``import_scout`` logger tree for this run.

    Safe to call more than once: later calls add no handlers and return
    the file chosen by the first call.

    Args:
        console_level: Minimum level echoed to stderr.  The run file
            always records DEBUG and above.

    Returns:
        Path of the log file for this run.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    existing = _active_log_file(root_logger)
    if existing is not None:
        return existing

    run_dir: Path = Settings.LOGS_DIR
    run_dir.mkdir(parents=True, exist_ok=True)
    started = datetime.now().strftime("%Y%m%d_%H%M%S")
    run_file = run_dir / f"run_{started}.log"

    _attach(
        root_logger,
        logging.FileHandler(run_file, encoding="utf-8"),
        logging.DEBUG,
        _FILE_FORMAT,
    )
    _attach(
        root_logger,
        logging.StreamHandler(sys.stderr),
        console_level,
        _CONSOLE_FORMAT,
    )

    for name in _NOISY_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info("Run log: %s", run_file)
    return run_file
