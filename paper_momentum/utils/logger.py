"""
Logging configuration for the paper trading engine
Uses loguru for colorized console output, a rotating engine log and a trade journal
"""

import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from .config import get_config

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
JOURNAL_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {message}"


def _is_trade(record) -> bool:
    return bool(record["extra"].get("trade"))


def setup_logger(
    level: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = None,
    journal_file: Optional[Union[str, Path]] = None,
):
    """
    Configure loguru sinks for a session run.

    Three sinks are installed: stderr at ``level``, a rotating engine log and
    a trade journal that only receives records bound with ``trade=True``
    (opens, scalings and exits from the position ledger).

    Args:
        level: Log level (defaults to the configured level)
        log_file: Engine log path (defaults to logs/paper_momentum.log)
        journal_file: Trade journal path (defaults to logs/trades.log)
    """
    config = get_config()
    level = (level or config.log_level).upper()

    logger.remove()

    logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)

    log_path = log_file or config.logs_dir / "paper_momentum.log"
    logger.add(
        log_path,
        rotation="10 MB",
        retention="30 days",
        compression="zip",
        format=FILE_FORMAT,
        level=level,
    )

    # The journal keeps every fill regardless of the console level
    journal_path = journal_file or config.logs_dir / "trades.log"
    logger.add(
        journal_path,
        rotation="1 week",
        retention="90 days",
        format=JOURNAL_FORMAT,
        level="INFO",
        filter=_is_trade,
    )

    logger.debug(f"Logging at {level} to {log_path}, trades to {journal_path}")
    return logger
