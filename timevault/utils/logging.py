"""Logging setup shared by the ledger server, the verifier and replays."""

from __future__ import annotations

import logging
import sys
from typing import Iterable, TextIO

LOG_FORMAT = "%(asctime)s [%(levelname)-5s] %(name)-25s | %(message)s"


def setup_logging(
    level: str = "INFO",
    *,
    quiet: Iterable[str] = (),
    stream: TextIO | None = None,
) -> None:
    """Route every record through one handler on *stream* (stdout by default).

    Loggers named in *quiet* are held at WARNING or above, for chatty
    third-party clients such as httpx that log each request at INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(numeric_level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers.clear()
    root.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))
