"""
Logging setup for the ``spendsense`` CLI.

``configure_logging`` is called once per CLI command, after config loads.
Library modules only ever do ``logger = logging.getLogger(__name__)``.

Two handlers are installed on the root logger, both named so they can be
found again (tests, re-configuration):

  spendsense.console  stdout
  spendsense.file     ``[logging] log_file``, when set

With ``json_format = true`` each line is a JSON object::

    {"ts": "2024-06-30T12:00:00Z", "level": "INFO", "logger": "spendsense.pipeline.base",
     "msg": "...", "user_id": "u001"}

Fields passed through ``extra=`` (``user_id``, ``run_slug``, ...) are copied
to the top level.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spendsense.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

CONSOLE_HANDLER_NAME = "spendsense.console"
FILE_HANDLER_NAME = "spendsense.file"

# Chatty at INFO; capped at WARNING.
_QUIET_LOGGERS = ("httpx", "httpcore", "pyarrow")

_STANDARD_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record, ``extra=`` fields included."""

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict = {
            "ts": created.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        payload.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _STANDARD_RECORD_ATTRS and not key.startswith("_")
        )
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _make_handler(
    handler: logging.Handler, name: str, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler.set_name(name)
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig") -> None:
    """Install the console and optional file handler on the root logger.

    Replaces any handlers from an earlier call (``force=True``), so calling it
    again with a different config is safe.

    Args:
        config: ``AppConfig.logging``.
    """
    level = logging.getLevelName(config.level)
    if not isinstance(level, int):
        level = logging.INFO

    formatter = (
        JsonLineFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers = [
        _make_handler(logging.StreamHandler(sys.stdout), CONSOLE_HANDLER_NAME, level, formatter)
    ]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_make_handler(
            logging.FileHandler(log_path, encoding="utf-8"), FILE_HANDLER_NAME, level, formatter
        ))

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
