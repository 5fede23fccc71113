# ebay_research/config/logging_config.py

"""Run log for fetch and analysis commands.

Every CLI invocation writes ``logs/run_YYYYmmdd_HHMMSS.log``.  The
``ebay_research`` logger and its children (``.ebay``, ``.fx``, ``.sheets``,
``.fetch``, ``.store``, ``.trend``) log there at DEBUG, so one batch run
keeps its API retries, sheet flushes and snapshot inserts together.

Warnings from the Google API client are copied into the same file: a
rejected ``batchUpdate`` otherwise only shows up on stderr.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from ebay_research.config.settings import Settings

PROJECT_LOGGER = "ebay_research"
RUN_HANDLER_NAME = "ebay_research.run_file"

# Third-party loggers whose warnings belong in the run log
THIRD_PARTY_LOGGERS = ("googleapiclient",)

# Formats ----------------------------------------------------------------

_DETAILED_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s:%(funcName)s:%(lineno)d | "
    "%(message)s"
)

_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_level(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.WARNING


def _existing_log_file(logger: logging.Logger) -> Path | None:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)
    return None


def setup_logging(verbose: bool = False) -> Path:
    """Initialise the ``ebay_research`` logger for the current run.

    A second call keeps the run's file and only re-applies *verbose* to
    the console handler.

    Args:
        verbose: Echo DEBUG records on stderr (``--verbose``).

    Returns:
        Path of the log file this run writes to.
    """
    root_logger = logging.getLogger(PROJECT_LOGGER)
    root_logger.setLevel(logging.DEBUG)

    current = _existing_log_file(root_logger)
    if current is not None:
        for handler in root_logger.handlers:
            if not isinstance(handler, logging.FileHandler):
                handler.setLevel(_console_level(verbose))
        return current

    logs_dir: Path = Settings.LOGS_DIR
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = logs_dir / f"run_{timestamp}.log"

    # --- Run file (DEBUG+) ---------------------------------------------
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.set_name(RUN_HANDLER_NAME)
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_DETAILED_FORMAT, datefmt=_DATE_FORMAT)
    )

    # --- stderr (WARNING+, DEBUG with --verbose) -----------------------
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level(verbose))
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )

    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    # --- Google client warnings into the run file ----------------------
    for name in THIRD_PARTY_LOGGERS:
        third_party = logging.getLogger(name)
        for stale in [h for h in third_party.handlers if h.name == RUN_HANDLER_NAME]:
            third_party.removeHandler(stale)
        third_party.addHandler(file_handler)
        if third_party.level == logging.NOTSET:
            third_party.setLevel(logging.WARNING)

    root_logger.info("Logging initialised, log file: %s", log_file)
    return log_file
