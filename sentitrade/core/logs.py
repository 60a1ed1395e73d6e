"""sentitrade.core.logs

stdlib logging, configured once from :class:`LoggingConfig`.

Messages are snake_case event names; context goes into ``extra=``.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

from sentitrade.core.config import LoggingConfig

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED = set(vars(logging.LogRecord("x", logging.INFO, "", 0, "", None, None))) | {"message", "asctime"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        body: dict[str, object] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "event": record.getMessage(),
        }
        for k, v in vars(record).items():
            if k not in _RESERVED and not k.startswith("_"):
                body[k] = v
        if record.exc_info:
            body["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(body, default=str, sort_keys=True)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)-7s %(name)s %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED and not k.startswith("_")}
        if not extras:
            return base
        ctx = " ".join(f"{k}={v}" for k, v in sorted(extras.items()))
        return f"{base} {ctx}"


def configure_logging(cfg: LoggingConfig) -> None:
    """Install a single stderr handler on the root logger."""

    level = logging.getLevelName(str(cfg.level).upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter() if cfg.json_output else TextFormatter())

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)
    root.addHandler(handler)
    root.setLevel(level)
    # httpx logs every request at INFO; the price loop would drown everything else.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
