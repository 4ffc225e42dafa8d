import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# The handler installed by the last configure_logging() call.
_console_handler: Optional[logging.Handler] = None


def configure_logging(production: bool = False) -> None:
    """Install a single console handler on the root logger."""
    global _console_handler

    root = logging.getLogger()
    level = logging.WARNING if production else logging.INFO

    # The app may be built more than once per process (tests, reload).
    if _console_handler is not None:
        root.removeHandler(_console_handler)

    _console_handler = logging.StreamHandler()
    _console_handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    root.addHandler(_console_handler)
    root.setLevel(level)
