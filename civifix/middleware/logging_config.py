"""
Logging configuration.

Production writes one JSON object per line; development and testing write
plain text. Request lines from the timing middleware carry request_id,
user_id and duration, and both formats surface them.

LOG_LEVEL overrides the default level (INFO in production, DEBUG otherwise).
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

# Attributes attached by init_request_timing via ``extra=``
REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "request_id", "user_id")

_QUIET_LOGGERS = ("werkzeug", "sqlalchemy.engine", "alembic", "flask_limiter")


class JSONFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in REQUEST_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False)


class ReadableFormatter(logging.Formatter):
    """``12:00:01 INFO     civifix.middleware.timing: Request: ... [req=ab12 user=u1]``"""

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{ts} {record.levelname:<8} {record.name}: {record.getMessage()}"

        context = []
        request_id = getattr(record, "request_id", None)
        if request_id:
            context.append(f"req={request_id}")
        user_id = getattr(record, "user_id", None)
        if user_id:
            context.append(f"user={user_id}")
        if context:
            line += f" [{' '.join(context)}]"

        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger for ``app``."""
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if is_prod else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    # cleared first so repeated app creation in tests doesn't stack handlers
    root = logging.getLogger()
    root.handlers.clear()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    app.logger.setLevel(level)
