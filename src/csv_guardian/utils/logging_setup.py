from __future__ import annotations

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "csv_guardian"
_HANDLER_NAME = "csv_guardian.rich"


def configure_logging(level: Union[int, str] = "INFO", console: Optional[Console] = None) -> logging.Logger:
    """
    Route ``csv_guardian.*`` log records to a rich console handler.

    Calling it again replaces the handler installed by the previous call, so
    repeated setup never duplicates output. Other handlers are left alone.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    for handler in list(logger.handlers):
        if handler.get_name() == _HANDLER_NAME:
            logger.removeHandler(handler)

    rich_handler = RichHandler(
        console=console,
        level=level,
        markup=False,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        log_time_format="%Y-%m-%d %H:%M:%S",
    )
    rich_handler.set_name(_HANDLER_NAME)
    # RichHandler renders time and level itself
    rich_handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    logger.addHandler(rich_handler)
    return logger
