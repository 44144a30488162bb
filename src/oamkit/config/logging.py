"""Logging setup for the controller process."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] [%(name)s] %(message)s"
# transport chatter from the API server client, silenced unless debugging
CLIENT_LOGGERS = ("httpx", "httpcore")


def configure_logging(*, level: int = logging.INFO, force: bool = False) -> None:
    """Initialise the root logger for a controller run.

    Reconciles run on a worker pool, so every line carries the worker thread
    name next to the logger. HTTP client loggers stay at WARNING unless
    ``level`` is DEBUG. Pass ``force=True`` to reconfigure during tests.
    """

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        force=force,
    )
    client_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(client_level)
