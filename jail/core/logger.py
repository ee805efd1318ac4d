"""Console and file logging for jail.

Modules log through ``get_logger(__name__)``. All of them live below the
``jail`` logger, which is where the optional file handler is attached.
"""
import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "jail"
LOG_FILE_NAME = "jail.log"
FALLBACK_LOG_FILE = Path("/tmp") / LOG_FILE_NAME

FILE_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

console = Console()


def _level(verbose: bool) -> int:
    return logging.DEBUG if verbose else logging.INFO


def _existing_file_handler(logger: logging.Logger) -> Optional[logging.FileHandler]:
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return handler
    return None


def setup_file_logging(
    log_file: Optional[Union[str, Path]] = None,
    verbose: bool = False,
    data_dir: Optional[Path] = None,
) -> Path:
    """Mirror jail logs into a file.

    Args:
        log_file: Explicit log file (defaults to <data_dir>/jail.log)
        verbose: Record DEBUG messages too
        data_dir: Data root for the default location; resolved from the
            environment when omitted

    Returns:
        The file actually written to. An unwritable location falls back to
        /tmp/jail.log; repeated calls keep the first file.
    """
    root = logging.getLogger(ROOT_LOGGER)
    existing = _existing_file_handler(root)
    if existing is not None:
        return Path(existing.baseFilename)

    if log_file is None:
        if data_dir is None:
            from jail.core.config import JailConfig
            data_dir = JailConfig.load().data_dir
        log_file = Path(data_dir) / LOG_FILE_NAME

    target = Path(log_file)
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(target)
    except OSError:
        target = FALLBACK_LOG_FILE
        handler = logging.FileHandler(target)

    handler.setLevel(_level(verbose))
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(handler)
    root.setLevel(_level(verbose))

    root.info(f"jail logging initialized: {target}")
    return target


def set_verbose(verbose: bool) -> None:
    """Switch every jail logger between INFO and DEBUG."""
    level = _level(verbose)
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
            continue
        if isinstance(logger, logging.Logger):
            logger.setLevel(level)


def get_logger(name: str) -> logging.Logger:
    """Logger for a jail module, printing through the shared rich console.

    File output is separate; see setup_file_logging().
    """
    logger = logging.getLogger(name)
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        handler = RichHandler(console=console, show_path=False, markup=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
    return logger
