import logging as root_logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

_SDK_LOGGER_NAME = "widecolumn"


def setup_sdk_logging(
    level="INFO",
    pretty: bool = False,
    console: Optional[Console] = None,
    propagate: bool = False,
):
    """
    Installs the output handler of the `widecolumn` loggers (stderr by default).

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Threshold of the `widecolumn` logger.
        pretty: Use a `RichHandler` instead of a plain stream handler.
        console: Console of the `RichHandler`; ignored unless `pretty`.
        propagate: Also hand the records to the root logger.
    """
    logger = root_logging.getLogger(_SDK_LOGGER_NAME)

    # A previous call installed its own handler
    if logger.hasHandlers():
        logger.handlers.clear()

    if pretty:
        console = console or Console(stderr=True)

        handler = RichHandler(
            level=level,
            console=console,
            show_time=True,
            show_path=True,
            markup=True,
            rich_tracebacks=True,
            log_time_format="[%X]",
        )
        formatter = root_logging.Formatter(
            fmt="[dim white]%(name)s[/dim white]: %(message)s", datefmt="[%X]"
        )
        handler.setFormatter(formatter)
        init_message = f"SDK Logging initialized at level: [bold]{level}[/bold]"
        extra = {"markup": True}
    else:
        handler = root_logging.StreamHandler(sys.stderr)
        # Time [Level] Name: Message
        formatter = root_logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        init_message = f"SDK Logging initialized at level: {level}"
        extra = {}

    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = propagate

    logger.info(init_message, extra=extra)


def get_logger(name: Optional[str] = None) -> root_logging.Logger:
    """Returns the logger `name`, or the top-level `widecolumn` logger."""
    if name is not None:
        return root_logging.getLogger(name=name)
    return root_logging.getLogger(_SDK_LOGGER_NAME)
