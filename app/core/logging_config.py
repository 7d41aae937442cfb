import json
import logging
import sys
import traceback

from app.core.config import get_settings


class JsonFormatter(logging.Formatter):
    """
    JSON formatter for structured logging in production environments.
    One object per line so log shippers can parse records without a grok step.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        for key in ("event_id", "user_id", "registration_id", "path", "status_code", "duration_ms"):
            if hasattr(record, key):
                log_data[key] = getattr(record, key)

        return json.dumps(log_data, default=str)


def setup_logging(level: str | None = None, json_output: bool | None = None) -> None:
    """Configure the root logger once for the API process and the Celery worker."""
    settings = get_settings()
    level = (level or settings.LOG_LEVEL).upper()
    json_output = settings.LOG_JSON if json_output is None else json_output

    handler = logging.StreamHandler(sys.stdout)
    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    # SQL echo is controlled by DB_ECHO on the engine, keep the logger quiet otherwise
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
