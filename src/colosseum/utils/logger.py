"""Logging configuration for Colosseum.

``setup_logger`` installs the process-wide handlers. ``attach_match_log``
adds a file per match that only receives records mentioning that match id,
so a single match can be replayed from its own log.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Dict

DETAILED_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_match_handlers: Dict[str, logging.Handler] = {}


class MatchLogFilter(logging.Filter):
    """Pass only records whose message mentions one match."""

    def __init__(self, match_id: str):
        super().__init__()
        self.match_id = match_id

    def filter(self, record: logging.LogRecord) -> bool:
        return self.match_id in record.getMessage()


def setup_logger(
    verbose: bool = True,
    save_to_file: bool = True,
    log_dir: str = "data/matches",
) -> logging.Logger:
    """
    Configure logging for the application.

    Args:
        verbose: If True, set level to DEBUG, otherwise INFO
        save_to_file: If True, also log the whole session to a timestamped file
        log_dir: Directory for session and per-match log files

    Returns:
        Configured root logger
    """
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.handlers.clear()

    # Console shows engine events only
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    console_handler.addFilter(lambda record: record.name.startswith("colosseum"))
    logger.addHandler(console_handler)

    if save_to_file:
        try:
            session_file = _log_path(log_dir, "session")
            file_handler = logging.FileHandler(session_file)
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter(DETAILED_FORMAT, datefmt="%H:%M:%S"))
            logger.addHandler(file_handler)
            logger.info(f"Logging to file: {session_file}")
        except OSError as e:
            logger.error(f"Failed to create file handler: {e}")

    return logger


def attach_match_log(match_id: str, log_dir: str = "data/matches") -> Path:
    """Start writing records about ``match_id`` to ``<log_dir>/<match_id>_<ts>.log``.

    Attaching the same match twice keeps the first file.
    """
    existing = _match_handlers.get(match_id)
    if existing is not None:
        return Path(existing.baseFilename)

    path = _log_path(log_dir, match_id)
    handler = logging.FileHandler(path)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(DETAILED_FORMAT))
    handler.addFilter(MatchLogFilter(match_id))
    logging.getLogger("colosseum").addHandler(handler)
    _match_handlers[match_id] = handler
    return path


def detach_match_log(match_id: str) -> None:
    """Stop the per-match log for ``match_id`` and close its file."""
    handler = _match_handlers.pop(match_id, None)
    if handler is None:
        return
    logging.getLogger("colosseum").removeHandler(handler)
    handler.close()


def _log_path(log_dir: str, stem: str) -> Path:
    path = Path(log_dir)
    path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return path / f"{stem}_{timestamp}.log"
