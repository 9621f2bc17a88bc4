"""Root logger setup for the service process."""

from __future__ import annotations

import logging

from pythonjsonlogger.json import JsonFormatter

from .config import Settings

_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings) -> None:
    handler = logging.StreamHandler()
    if settings.log_json:
        handler.setFormatter(
            JsonFormatter(_FORMAT, rename_fields={"levelname": "level", "asctime": "timestamp"})
        )
    else:
        handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level)
