import logging
import logging.config
import sys

from floodguard.core.config import settings

# Third-party loggers pinned to a fixed level regardless of LOG_LEVEL
LIBRARY_LEVELS = {
    "uvicorn": "INFO",
    "uvicorn.access": "INFO",
    "celery": "INFO",
    "httpx": "WARNING",
    "paho": "WARNING",
    "firebase_admin": "WARNING",
}


class RequestIdFilter(logging.Filter):
    """
    Inject request_id into log records.
    Set per HTTP request by middleware and per prediction cycle by the orchestrator.
    """

    def filter(self, record):
        from floodguard.core.middleware import request_id_context

        record.request_id = request_id_context.get() or "system"
        return True


def _logger_entry(level: str) -> dict:
    return {"handlers": ["console"], "level": level, "propagate": False}


def setup_logging():
    """
    Configure logging using logging.dictConfig.
    """
    level = settings.log_level.upper()

    loggers = {name: _logger_entry(lvl) for name, lvl in LIBRARY_LEVELS.items()}
    loggers["root"] = _logger_entry(level)
    loggers["floodguard"] = _logger_entry(level)
    loggers["sqlalchemy.engine"] = _logger_entry(settings.sqlalchemy_log_level.upper())

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"request_id": {"()": RequestIdFilter}},
            "formatters": {
                "console": {
                    "format": "%(asctime)s - %(levelname)s - [%(request_id)s] - %(name)s - %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": "pythonjsonlogger.json.JsonFormatter",
                    "format": "%(asctime)s %(levelname)s %(request_id)s %(name)s %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "stream": sys.stdout,
                    "formatter": "json" if settings.log_format == "json" else "console",
                    "filters": ["request_id"],
                    "level": level,
                },
            },
            "loggers": loggers,
        }
    )
