"""
Process-wide logging setup.

``setup_logging`` is called once by ``create_app``.  Records go to
stderr and, when ``LOG_FILE`` is set, to that file as well.  Service
modules only ever call ``logging.getLogger(__name__)``.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty below INFO.  python-multipart
# logs every parsed chunk of an upload.
NOISY_LOGGERS = ("multipart", "python_multipart")


def setup_logging(
    level: str = "INFO",
    logfile: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> None:
    """Attach handlers to the root logger unless it already has some.

    ``level`` is a level name, case insensitive; unknown names fall back
    to INFO.  Loggers listed in ``quiet`` never go below INFO, even when
    the application runs at DEBUG.
    """
    root = logging.getLogger()
    if root.handlers:
        # pytest and repeated create_app() calls land here
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(numeric_level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.INFO))
