from typing import Dict, Literal
import logging
import sys
import traceback

from xformpy.config import CONFIG


class LogColors:
    OKBLUE = '\033[94m'
    OKCYAN = '\033[96m'
    OKGREEN = '\033[92m'
    WARNING = '\033[93m'
    FAIL = '\033[91m'
    ENDC = '\033[0m'  # Reset color
    BOLD = '\033[1m'


class LevelColorFormatter(logging.Formatter):
    """ Logging formatter that colors the whole record based on its level """
    log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    def __init__(self, info_color: str) -> None:
        super().__init__(self.log_format)
        self.level_colors: Dict[int, str] = {
            logging.DEBUG: LogColors.OKCYAN,
            logging.INFO: info_color,
            logging.WARNING: LogColors.WARNING,
            logging.ERROR: LogColors.FAIL,
            logging.CRITICAL: LogColors.BOLD + LogColors.FAIL,
        }

    def format(self, record: logging.LogRecord) -> str:
        color = self.level_colors.get(record.levelno, LogColors.ENDC)
        message = super().format(record)
        return f"{color}{message}{LogColors.ENDC}"


class Formatter():
    @classmethod
    def get_formatter(cls, formatter: str) -> logging.Formatter:
        if formatter == "pipeline":
            return LevelColorFormatter(LogColors.OKGREEN)
        elif formatter == "system":
            return LevelColorFormatter(LogColors.OKCYAN)
        elif formatter == "module":
            return LevelColorFormatter(LogColors.OKBLUE)
        else:
            raise ValueError(f"Invalid formatter: {formatter}")


def setup_logging(
    name=__name__,
    verbose: str = "WARNING",
    formatter: Literal["system", "pipeline", "module"] = "module"
) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(verbose)

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(verbose)
    handler.setFormatter(Formatter.get_formatter(formatter))

    logger.addHandler(handler)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger for a package module, configured from the library config."""
    return setup_logging(name, verbose=CONFIG.log_level, formatter=CONFIG.log_formatter)


def log_exception(logger: logging.Logger, message: str) -> None:
    """
    Logs an error message along with the file name and line number where the error occurred.
    """
    exc_type, exc_value, exc_traceback = sys.exc_info()
    tb = traceback.extract_tb(exc_traceback)
    if tb:
        # Get the last entry from the traceback
        filename, line, func, text = tb[-1]
        logger.error(f"{message} - Exception occurred in {filename}, line {line}: {exc_value}")
    else:
        logger.error(f"{message} - {exc_value}")
