"""
Root logger setup for sales-forecaster commands.

The CLI calls ``configure_logging(config.logging, debug=config.debug)`` once,
right after the config is loaded.  Library modules only ever do
``log = logging.getLogger(__name__)``.

Log lines go to stderr: stdout carries the RMSE and coefficient tables, so
``sales-forecaster backtest > rmse.txt`` captures the report without log
noise.  A copy goes to ``[logging] log_file`` when that is non-empty.

With ``json_format = true`` each line is a JSON object.  Context passed via
``extra=`` (``site_id``, ``window_length``, ``run_slug``...) becomes
top-level keys::

    {"ts": "2026-10-19T15:00:00Z", "level": "INFO",
     "logger": "sales_forecaster.pipeline.backtest", "msg": "...",
     "run_slug": "..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sales_forecaster.config import LoggingConfig

LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# Loggers from the numeric stack that are chatty at INFO/DEBUG.
QUIET_LOGGERS = ("pyarrow", "statsmodels")

# Attributes set on every LogRecord; anything else was passed via ``extra=``.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class _JsonFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg`` plus extras."""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: dict = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc"] = self.formatException(record.exc_info)
        payload.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        )
        return json.dumps(payload, default=str)


def _handler(
    handler: logging.Handler, level: int, formatter: logging.Formatter
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(config: "LoggingConfig", debug: bool = False) -> None:
    """Install stderr (and optional file) handlers on the root logger.

    Args:
        config: ``[logging]`` section of the app config.
        debug:  ``AppConfig.debug``; forces DEBUG regardless of ``config.level``.

    Calling it again replaces the previous handlers.
    """
    level = logging.DEBUG if debug else getattr(logging, config.level.upper(), logging.INFO)
    formatter: logging.Formatter = (
        _JsonFormatter()
        if config.json_format
        else logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    )

    handlers = [_handler(logging.StreamHandler(sys.stderr), level, formatter)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _handler(logging.FileHandler(log_path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
