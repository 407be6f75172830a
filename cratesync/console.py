from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

console = Console()

# Runs last minutes because of the fixed pauses, so log lines carry a time.
handler = RichHandler(
    console=console,
    show_time=True,
    log_time_format="%H:%M:%S",
    show_level=True,
    show_path=False,
    markup=True,
)

logger = logging.getLogger("cratesync")
logger.setLevel(logging.INFO)
if not logger.handlers:
    logger.addHandler(handler)

# spotipy and urllib3 log plain text, so they get their own handler without markup.
LIBRARY_LOGGERS = ("spotipy", "urllib3")
library_handler = RichHandler(console=console, show_time=True, log_time_format="%H:%M:%S", show_path=False)


def set_verbose(verbose: bool) -> None:
    """Switch cratesync to DEBUG and let the HTTP libraries speak up too."""
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    for name in LIBRARY_LOGGERS:
        library_logger = logging.getLogger(name)
        library_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
        if library_handler not in library_logger.handlers:
            library_logger.addHandler(library_handler)
        library_logger.propagate = False


__all__ = ["console", "logger", "set_verbose", "LIBRARY_LOGGERS"]
