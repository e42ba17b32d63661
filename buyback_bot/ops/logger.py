"""Logging for the bot: Rich console output plus an optional debug log file."""
import logging
from pathlib import Path

from rich.logging import RichHandler

LOGGER_NAME = "buyback_bot"
FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Client libraries that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "tweepy", "solana")


def setup_logger(config) -> logging.Logger:
    """
    Configure the ``buyback_bot`` logger tree once per process.

    Modules log through children such as ``buyback_bot.fees``; the console
    shows INFO and up, the file (``bot.log_file``, empty to disable) gets DEBUG.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.bot.log_level.upper(), logging.INFO))
    if logger.handlers:
        return logger

    logger.propagate = False
    console = RichHandler(rich_tracebacks=True, markup=False, show_path=False)
    console.setLevel(logging.INFO)
    logger.addHandler(console)

    if config.bot.log_file:
        log_path = Path(config.bot.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
        logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
