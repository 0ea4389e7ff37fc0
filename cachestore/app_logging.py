"""JSON log output for applications that use the session store."""

import logging
from typing import IO, Optional, Union

from pythonjsonlogger import jsonlogger

from . import config

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s %(message)s'


def setup_logger(level: Optional[Union[int, str]] = None,
                 stream: Optional[IO[str]] = None) -> logging.Handler:
    """
    Send JSON-formatted records from the root logger to ``stream``.

    ``level`` defaults to ``LOGLEVEL`` from :mod:`cachestore.config`.
    Returns the installed handler so that callers can remove it again.
    """
    if level is None:
        level = config.LOGLEVEL
    if isinstance(level, str) and level.isdigit():
        level = int(level)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(jsonlogger.JsonFormatter(
        LOG_FORMAT,
        rename_fields={'levelname': 'level', 'asctime': 'timestamp'}
    ))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(level)
    return handler
