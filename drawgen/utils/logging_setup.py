"""Rich console logging for drawgen runs."""

import logging

from rich.console import Console
from rich.logging import RichHandler

DRAWGEN_LOGGERS = ["drawgen"]


def configure_logging(log_level: str = "INFO", console: Console = None) -> Console:
    """Configure logging with Rich handler; third-party loggers stay at WARNING"""
    console = console or Console(stderr=True)

    rich_handler = RichHandler(
        console=console,
        rich_tracebacks=True,
        show_time=False,
        show_path=True
    )

    # Silence everything by default
    logging.basicConfig(level=logging.WARNING, format="%(message)s", handlers=[rich_handler], force=True)

    for module_name in DRAWGEN_LOGGERS:
        logging.getLogger(module_name).setLevel(log_level)

    return console
