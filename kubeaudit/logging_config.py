from __future__ import annotations

import logging
from datetime import datetime
from logging.config import dictConfig
from typing import Any, Dict
from zoneinfo import ZoneInfo

DEFAULT_TIMEZONE = "UTC"


class ZonedTimeFormatter(logging.Formatter):
  """Logging formatter that renders timestamps in a fixed IANA time zone."""

  def __init__(self, *args: Any, tz: str = DEFAULT_TIMEZONE, **kwargs: Any) -> None:
    super().__init__(*args, **kwargs)
    self.zone = ZoneInfo(tz)

  def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
    dt = datetime.fromtimestamp(record.created, self.zone)
    if datefmt:
      return dt.strftime(datefmt)
    return dt.isoformat(timespec="seconds")


def _build_config(level: str, tz: str) -> Dict[str, Any]:
  formatter = {
    "()": ZonedTimeFormatter,
    "fmt": "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
    "datefmt": "%Y-%m-%d %H:%M:%S",
    "tz": tz,
  }

  return {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
      "zoned": formatter,
    },
    "handlers": {
      "default": {
        "formatter": "zoned",
        "class": "logging.StreamHandler",
        "stream": "ext://sys.stderr",
      },
    },
    "loggers": {
      "": {"handlers": ["default"], "level": "WARNING"},
      "kubeaudit": {"handlers": ["default"], "level": level, "propagate": False},
    },
  }


def configure_logging(level_name: str = "INFO", tz: str = DEFAULT_TIMEZONE) -> None:
  """Apply the kubeaudit logging configuration."""
  level = level_name.upper()
  if not isinstance(logging.getLevelName(level), int):
    level = "INFO"
  dictConfig(_build_config(level, tz))
